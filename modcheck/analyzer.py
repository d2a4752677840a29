from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence, Tuple

from .aliases import build_alias_table
from .config_modules import ConfigModuleLoader
from .exports import validate_named_imports, validate_re_exports
from .facts import Extractor, FactCache
from .fs_scan import discover_source_files
from .imports import classify_dynamic_imports, classify_imports
from .model import (
	FILE_NOT_FOUND,
	HARD_ISSUE_KINDS,
	UNUSED_IMPORTS,
	AliasTable,
	AnalysisResult,
	FileStatus,
	Issue,
	Summary,
	SyntaxErrorInfo,
)
from .resolver import PackageLocator, PathResolver
from .summarize import summarize_results

logger = logging.getLogger(__name__)


def classify_status(issues: List[Issue], parse_failed: bool = False) -> FileStatus:
	if parse_failed or any(issue.kind in HARD_ISSUE_KINDS for issue in issues):
		return "error"
	if issues:
		return "warning"
	return "ok"


class Analyzer:
	"""Entry point for one project. Every call builds its own alias table and fact cache."""

	def __init__(
		self,
		project_root: str,
		extractor: Optional[Extractor] = None,
		locator: Optional[PackageLocator] = None,
		config_loader: Optional[ConfigModuleLoader] = None,
	) -> None:
		self.project_root = os.path.abspath(project_root)
		self.extractor = extractor
		self.locator = locator
		self.config_loader = config_loader
		self.alias_table: Optional[AliasTable] = None

	def _start_run(self) -> Tuple[PathResolver, FactCache]:
		table = build_alias_table(self.project_root, self.config_loader)
		self.alias_table = table
		resolver = PathResolver(table, self.project_root, self.locator)
		return resolver, FactCache(self.extractor)

	def analyze_file(self, path: str) -> AnalysisResult:
		resolver, facts = self._start_run()
		return self._analyze(os.path.abspath(path), resolver, facts)

	def analyze_directory(
		self,
		path: str,
		extensions: Optional[Sequence[str]] = None,
		ignore: Optional[Sequence[str]] = None,
		recursive: bool = True,
	) -> Summary:
		directory = os.path.abspath(path)
		files = discover_source_files(
			directory,
			extensions=extensions,
			ignore=ignore,
			recursive=recursive,
			project_root=self.project_root,
		)
		logger.info("Analyzing %d files in %s", len(files), directory)
		resolver, facts = self._start_run()

		results: List[AnalysisResult] = []
		for file_path in files:
			try:
				results.append(self._analyze(file_path, resolver, facts))
			except Exception as e:
				logger.exception("Failed to analyze %s", file_path)
				results.append(
					AnalysisResult(file=file_path, status="error", syntax_error=SyntaxErrorInfo(message=str(e)))
				)
		return summarize_results(results)

	def _analyze(self, path: str, resolver: PathResolver, facts: FactCache) -> AnalysisResult:
		module = facts.get(path)
		if module.file_not_found:
			message = module.syntax_error.message if module.syntax_error else f"File not found: {path}"
			return AnalysisResult(
				file=path,
				status="error",
				syntax_error=module.syntax_error,
				issues=[Issue(kind=FILE_NOT_FOUND, message=message, line=1)],
			)
		if module.syntax_error is not None:
			return AnalysisResult(
				file=path,
				status="error",
				syntax_error=module.syntax_error,
				exports=module.exports,
				unused_imports=module.unused_imports,
			)

		base_dir = os.path.dirname(path)
		issues: List[Issue] = list(module.code_issues)
		imports = classify_imports(module.imports, base_dir, resolver, facts, issues)
		dynamic_imports = classify_dynamic_imports(module.dynamic_imports, base_dir, resolver, issues)

		for record in imports:
			if record.status != "resolved" or record.attached_exports is None:
				continue
			found = validate_named_imports(record, record.attached_exports)
			if found:
				record.status = "warning"
				record.issues = found
				issues.extend(found)

		validate_re_exports(module.exports, base_dir, resolver, facts, issues)

		if module.unused_imports:
			issues.append(
				Issue(
					kind=UNUSED_IMPORTS,
					message=f"Unused imports: {', '.join(module.unused_imports)}",
					identifiers=list(module.unused_imports),
				)
			)

		return AnalysisResult(
			file=path,
			status=classify_status(issues),
			issues=issues,
			imports=imports,
			dynamic_imports=dynamic_imports,
			exports=module.exports,
			unused_imports=module.unused_imports,
		)
