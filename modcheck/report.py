from __future__ import annotations

import json
import os
from typing import List, Union

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .model import (
    CONSOLE_USAGE,
    FIXME_COMMENT,
    TODO_COMMENT,
    UNUSED_IMPORTS,
    AnalysisResult,
    ExportRecord,
    ImportRecord,
    Issue,
    SyntaxErrorInfo,
    Summary,
)
from .summarize import hard_issue_count


Report = Union[AnalysisResult, Summary]

STATUS_STYLES = {"ok": "green", "warning": "yellow", "error": "red"}
IMPORT_MARKS = {
    "resolved": "[green]✓[/green]",
    "external": "[blue]↗[/blue]",
    "warning": "[yellow]![/yellow]",
    "failed": "[red]✗[/red]",
}
TOP_ISSUE_LIMIT = 5


def render_json(result: Report) -> str:
    return json.dumps(result.model_dump(), indent=2)


def _relative(path: str, cwd: str) -> str:
    try:
        return os.path.relpath(path, cwd)
    except ValueError:
        return path


def _status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.upper()}[/{style}]"


def _issue_mark(issue: Issue) -> str:
    if issue.is_hard:
        return "[red]✗[/red]"
    if issue.kind in (TODO_COMMENT, FIXME_COMMENT):
        return "[magenta]✎[/magenta]"
    if issue.kind == CONSOLE_USAGE:
        return "[blue]•[/blue]"
    return "[yellow]![/yellow]"


def _issue_line(issue: Issue) -> str:
    where = f" [dim](line {issue.line})[/dim]" if issue.line else ""
    return f"{_issue_mark(issue)} {escape(issue.message)}{where}"


def format_syntax_error(error: SyntaxErrorInfo) -> str:
    message = error.message
    if error.line is not None:
        message += f" (line {error.line}"
        if error.column is not None:
            message += f", column {error.column + 1}"
        message += ")"
    return message


def _print_counters(console: Console, summary: Summary) -> None:
    table = Table(title="Analysis summary", show_header=False, title_justify="left")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    table.add_row("Total files", f"[cyan]{summary.total_files}[/cyan]")
    table.add_row("Files with errors", f"[red]{summary.files_with_errors}[/red]")
    table.add_row("Files with warnings", f"[yellow]{summary.files_with_warnings}[/yellow]")
    table.add_row("Total imports", str(summary.total_imports))
    table.add_row("Unresolved imports/re-exports", f"[red]{summary.unresolved_imports}[/red]")
    table.add_row("Unused imports", f"[yellow]{summary.unused_imports}[/yellow]")
    table.add_row("Undeclared identifiers", f"[red]{summary.total_undeclared_identifiers}[/red]")
    table.add_row("Critical code issues", f"[red]{summary.total_critical_code_issues}[/red]")
    table.add_row("Console usage", str(summary.total_console_usage))
    table.add_row("TODO/FIXME comments", str(summary.total_todo_fixme_comments))
    console.print(table)


def _print_top_issues(console: Console, details: List[AnalysisResult], cwd: str) -> None:
    ranked = sorted(
        (result for result in details if hard_issue_count(result) > 0),
        key=hard_issue_count,
        reverse=True,
    )[:TOP_ISSUE_LIMIT]
    if not ranked:
        if any(result.status != "ok" for result in details):
            console.print("[yellow]No critical problems; see the per-file report for warnings.[/yellow]")
        else:
            console.print("[green]No problems found![/green]")
        return

    table = Table(title="Files with the most critical problems", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Status")
    table.add_column("Critical", justify="right")
    for index, result in enumerate(ranked, start=1):
        table.add_row(
            str(index),
            escape(_relative(result.file, cwd)),
            _status(result.status),
            str(hard_issue_count(result)),
        )
    console.print(table)


def _is_problematic(result: AnalysisResult) -> bool:
    return result.status == "error" or any(issue.kind != UNUSED_IMPORTS for issue in result.issues)


def _print_problem_files(console: Console, details: List[AnalysisResult], cwd: str) -> None:
    problems = [result for result in details if _is_problematic(result)]
    if not problems:
        return
    console.rule("Problematic files")
    for result in problems:
        console.print(f"\n[cyan]{escape(_relative(result.file, cwd))}[/cyan] ({_status(result.status)})")
        if result.syntax_error is not None:
            console.print(f"  [red]Syntax error:[/red] {escape(format_syntax_error(result.syntax_error))}")
        for issue in result.issues:
            console.print(f"  {_issue_line(issue)}")


def _bindings_text(record: ImportRecord) -> str:
    return ", ".join(binding.alias or binding.name for binding in record.bindings)


def _print_imports(console: Console, title: str, records: List[ImportRecord]) -> None:
    if not records:
        return
    table = Table(title=title, title_justify="left")
    table.add_column("")
    table.add_column("Specifier")
    table.add_column("Line", justify="right")
    table.add_column("Imports")
    table.add_column("Details")
    for record in records:
        details: List[str] = []
        if record.error and record.status in ("failed", "warning"):
            details.append(f"[red]{escape(record.error)}[/red]")
        details.extend(escape(issue.message) for issue in record.issues)
        if not details and record.is_external and record.resolved_path:
            details.append(f"[dim]{escape(record.resolved_path)}[/dim]")
        table.add_row(
            IMPORT_MARKS.get(record.status, "?"),
            escape(record.specifier),
            str(record.line or ""),
            escape(_bindings_text(record)),
            "\n".join(details),
        )
    console.print(table)


def _export_text(exp: ExportRecord) -> str:
    text = exp.kind
    if exp.kind == "re-export":
        pairs = ", ".join(
            pair.local if pair.local == pair.exported else f"{pair.local} as {pair.exported}" for pair in exp.pairs
        )
        text += f": {{ {pairs} }}"
    elif exp.names:
        text += f": {{ {', '.join(exp.names)} }}"
    if exp.source:
        text += f" from {exp.source}"
    if exp.line:
        text += f" (line {exp.line})"
    return text


def _print_single_file(console: Console, result: AnalysisResult, cwd: str) -> None:
    console.rule("File analysis")
    console.print(f"[cyan]File:[/cyan] {escape(_relative(result.file, cwd))}")
    console.print(f"[cyan]Status:[/cyan] {_status(result.status)}")

    if result.syntax_error is not None and result.status == "error":
        console.print(f"\n[red]Syntax error:[/red] {escape(format_syntax_error(result.syntax_error))}")
        for issue in result.issues:
            console.print(f"  {_issue_line(issue)}")
        return

    _print_imports(console, "Imports", result.imports)
    _print_imports(console, "Dynamic imports", result.dynamic_imports)

    if result.exports:
        console.print("\n[bold]Exports[/bold]")
        for exp in result.exports:
            console.print(f"  • {escape(_export_text(exp))}")

    issues = [issue for issue in result.issues if issue.kind != UNUSED_IMPORTS]
    if issues:
        console.print("\n[bold]Issues (excluding unused imports)[/bold]")
        for issue in issues:
            console.print(f"  {_issue_line(issue)}")

    if result.unused_imports:
        console.print("\n[bold]Unused imports[/bold]")
        for name in result.unused_imports:
            console.print(f"  • [yellow]{escape(name)}[/yellow]")


def print_report(console: Console, result: Report, fmt: str, cwd: str) -> None:
    if fmt == "json":
        console.print(render_json(result), markup=False, highlight=False, soft_wrap=True)
        return
    if isinstance(result, AnalysisResult):
        _print_single_file(console, result, cwd)
        return
    _print_counters(console, result)
    _print_top_issues(console, result.details, cwd)
    if fmt == "table":
        _print_problem_files(console, result.details, cwd)
