from __future__ import annotations

import os
from typing import Iterable, List, Optional, Set

from .errors import ResolutionError
from .facts import FactCache
from .imports import is_code_file
from .model import (
    ERROR_IN_RE_EXPORTED_ALL_SOURCE,
    ERROR_IN_RE_EXPORTED_FILE,
    MISSING_RE_EXPORTED_NAME,
    UNRESOLVED_DEFAULT_IMPORT,
    UNRESOLVED_NAMED_IMPORT,
    UNRESOLVED_RE_EXPORT_ALL_SOURCE,
    UNRESOLVED_RE_EXPORT_SOURCE,
    ExportRecord,
    ImportRecord,
    Issue,
    ModuleFacts,
)
from .resolver import ExternalModule, PathResolver


class ExportSurface:
    """What a module makes importable, looking only at its own export statements."""

    def __init__(self, names: Optional[Set[str]] = None, has_default: bool = False, has_export_all: bool = False):
        self.names: Set[str] = names or set()
        self.has_default = has_default
        self.has_export_all = has_export_all

    @classmethod
    def from_exports(cls, exports: Iterable[ExportRecord]) -> "ExportSurface":
        surface = cls()
        for exp in exports:
            if exp.kind == "named":
                surface.names.update(exp.names)
            elif exp.kind == "re-export":
                surface.names.update(pair.exported for pair in exp.pairs)
            elif exp.kind == "default":
                surface.has_default = True
            elif exp.kind == "all":
                surface.has_export_all = True
        return surface

    def provides(self, name: str) -> bool:
        if name in self.names or self.has_export_all:
            return True
        return name == "default" and self.has_default

    def provides_default(self) -> bool:
        return self.has_default or "default" in self.names or self.has_export_all


def validate_named_imports(record: ImportRecord, target_exports: List[ExportRecord]) -> List[Issue]:
    surface = ExportSurface.from_exports(target_exports)
    target_name = os.path.basename(record.resolved_path or record.specifier)
    issues: List[Issue] = []
    for binding in record.bindings:
        if binding.kind == "named" and not surface.provides(binding.name):
            issues.append(
                Issue(
                    kind=UNRESOLVED_NAMED_IMPORT,
                    message=f"Named import '{binding.name}' not found in '{target_name}'.",
                    line=record.line,
                    name=binding.name,
                )
            )
        elif binding.kind == "default" and not surface.provides_default():
            issues.append(
                Issue(
                    kind=UNRESOLVED_DEFAULT_IMPORT,
                    message=f"Default import not found in '{target_name}'.",
                    line=record.line,
                    name="default",
                )
            )
    return issues


def _source_facts(
    source: str,
    base_dir: str,
    resolver: PathResolver,
    facts: FactCache,
) -> Optional[ModuleFacts]:
    """Facts of a re-export source, or None when it lives outside the project."""
    resolution = resolver.resolve(source, base_dir)
    if isinstance(resolution, ExternalModule) or not is_code_file(resolution.path):
        return None
    return facts.get(resolution.path)


def _check_re_export(
    exp: ExportRecord,
    base_dir: str,
    resolver: PathResolver,
    facts: FactCache,
    issues: List[Issue],
) -> None:
    source = exp.source or ""
    try:
        target = _source_facts(source, base_dir, resolver, facts)
    except ResolutionError:
        issues.append(
            Issue(kind=UNRESOLVED_RE_EXPORT_SOURCE, message=f"Cannot resolve re-export source: {source}", line=exp.line)
        )
        return
    if target is None:
        return
    if target.file_not_found:
        issues.append(
            Issue(
                kind=UNRESOLVED_RE_EXPORT_SOURCE,
                message=f"Re-export source file not found: {target.path} (re-exported from {source})",
                line=exp.line,
            )
        )
        return
    if target.syntax_error is not None:
        issues.append(
            Issue(
                kind=ERROR_IN_RE_EXPORTED_FILE,
                message=f"Syntax error in re-exported file {target.path} (re-exported from {source})",
                line=exp.line,
            )
        )
        return

    surface = ExportSurface.from_exports(target.exports)
    for pair in exp.pairs:
        # export * as ns re-exports the whole module
        if pair.local == "*":
            continue
        if not surface.provides(pair.local):
            issues.append(
                Issue(
                    kind=MISSING_RE_EXPORTED_NAME,
                    message=(
                        f"Re-exported name '{pair.local}' (as '{pair.exported}') "
                        f"not found in '{os.path.basename(target.path)}'."
                    ),
                    line=exp.line,
                    name=pair.local,
                )
            )


def _check_export_all(
    exp: ExportRecord,
    base_dir: str,
    resolver: PathResolver,
    facts: FactCache,
    issues: List[Issue],
) -> None:
    source = exp.source or ""
    try:
        target = _source_facts(source, base_dir, resolver, facts)
    except ResolutionError as e:
        issues.append(
            Issue(
                kind=UNRESOLVED_RE_EXPORT_ALL_SOURCE,
                message=f"Cannot resolve source for 'export * from \"{source}\"': {e}",
                line=exp.line,
            )
        )
        return
    if target is None:
        return
    if target.file_not_found:
        issues.append(
            Issue(
                kind=UNRESOLVED_RE_EXPORT_ALL_SOURCE,
                message=f"Source file not found for 'export * from \"{source}\"' (resolved to {target.path}).",
                line=exp.line,
            )
        )
    elif target.syntax_error is not None:
        issues.append(
            Issue(
                kind=ERROR_IN_RE_EXPORTED_ALL_SOURCE,
                message=f"Syntax error in source file for 'export * from \"{source}\"' ({target.path}).",
                line=exp.line,
            )
        )


def validate_re_exports(
    exports: List[ExportRecord],
    base_dir: str,
    resolver: PathResolver,
    facts: FactCache,
    issues: List[Issue],
) -> None:
    for exp in exports:
        if exp.kind == "re-export":
            _check_re_export(exp, base_dir, resolver, facts, issues)
        elif exp.kind == "all":
            _check_export_all(exp, base_dir, resolver, facts, issues)
