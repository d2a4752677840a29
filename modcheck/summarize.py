from __future__ import annotations

from typing import Iterable, List

from .model import (
	CODE_ISSUE_KINDS,
	CONSOLE_USAGE,
	FIXME_COMMENT,
	MISSING_RE_EXPORTED_NAME,
	TODO_COMMENT,
	UNDECLARED_IDENTIFIER,
	UNDECLARED_JSX_COMPONENT,
	UNRESOLVED_DEFAULT_IMPORT,
	UNRESOLVED_NAMED_IMPORT,
	UNRESOLVED_RE_EXPORT_ALL_SOURCE,
	UNRESOLVED_RE_EXPORT_SOURCE,
	AnalysisResult,
	Issue,
	Summary,
)


# Issue kinds that count as an unresolved import alongside failed import records
UNRESOLVED_ISSUE_KINDS = frozenset(
	{
		UNRESOLVED_NAMED_IMPORT,
		UNRESOLVED_DEFAULT_IMPORT,
		UNRESOLVED_RE_EXPORT_SOURCE,
		MISSING_RE_EXPORTED_NAME,
		UNRESOLVED_RE_EXPORT_ALL_SOURCE,
	}
)


def _count(issues: List[Issue], kinds: Iterable[str]) -> int:
	wanted = set(kinds)
	return sum(1 for issue in issues if issue.kind in wanted)


def hard_issue_count(result: AnalysisResult) -> int:
	return sum(1 for issue in result.issues if issue.is_hard)


def summarize_results(results: List[AnalysisResult]) -> Summary:
	summary = Summary(total_files=len(results), details=list(results))
	for result in results:
		if result.status == "error":
			summary.files_with_errors += 1
		elif result.status == "warning":
			summary.files_with_warnings += 1

		summary.total_imports += len(result.imports) + len(result.dynamic_imports)
		summary.unresolved_imports += sum(1 for rec in result.imports if rec.status == "failed")
		summary.unresolved_imports += sum(1 for rec in result.dynamic_imports if rec.status == "failed")
		summary.unresolved_imports += _count(result.issues, UNRESOLVED_ISSUE_KINDS)
		summary.unused_imports += len(result.unused_imports)
		summary.total_undeclared_identifiers += _count(
			result.issues, (UNDECLARED_IDENTIFIER, UNDECLARED_JSX_COMPONENT)
		)
		summary.total_critical_code_issues += sum(
			1 for issue in result.issues if issue.is_hard and issue.kind in CODE_ISSUE_KINDS
		)
		summary.total_console_usage += _count(result.issues, (CONSOLE_USAGE,))
		summary.total_todo_fixme_comments += _count(result.issues, (TODO_COMMENT, FIXME_COMMENT))
	return summary
