from __future__ import annotations

import os
from typing import List

from .errors import ResolutionError
from .facts import FactCache
from .model import (
	ERROR_IN_IMPORTED_FILE,
	UNRESOLVED_DYNAMIC_IMPORT,
	UNRESOLVED_IMPORT,
	DynamicImportDecl,
	ImportDecl,
	ImportRecord,
	Issue,
)
from .resolver import ExternalModule, PathResolver


# Only these get their facts extracted; anything else (css, json, svg...) is an asset
CODE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".vue")


def is_code_file(path: str) -> bool:
	_, ext = os.path.splitext(path)
	return ext in CODE_EXTENSIONS


def classify_imports(
	decls: List[ImportDecl],
	base_dir: str,
	resolver: PathResolver,
	facts: FactCache,
	issues: List[Issue],
) -> List[ImportRecord]:
	records: List[ImportRecord] = []
	for decl in decls:
		record = ImportRecord(specifier=decl.path, bindings=decl.bindings, line=decl.line)
		records.append(record)
		try:
			resolution = resolver.resolve(decl.path, base_dir)
		except ResolutionError as e:
			record.status = "failed"
			record.error = str(e)
			issues.append(Issue(kind=UNRESOLVED_IMPORT, message=f"Cannot resolve: {decl.path}", line=decl.line))
			continue

		if isinstance(resolution, ExternalModule):
			record.status = "external"
			record.is_external = True
			record.resolved_path = resolution.target
			continue

		record.resolved_path = resolution.path
		if not is_code_file(resolution.path):
			record.status = "external"
			record.is_external = True
			continue

		target = facts.get(resolution.path)
		if target.file_not_found:
			record.status = "failed"
			record.error = target.syntax_error.message if target.syntax_error else None
			issues.append(
				Issue(
					kind=UNRESOLVED_IMPORT,
					message=f"Resolved file not found: {resolution.path} (imported as {decl.path})",
					line=decl.line,
				)
			)
		elif target.syntax_error is not None:
			record.status = "warning"
			record.error = target.syntax_error.message
			issues.append(
				Issue(
					kind=ERROR_IN_IMPORTED_FILE,
					message=f"Syntax error in {resolution.path} (imported as {decl.path})",
					line=decl.line,
				)
			)
		else:
			record.status = "resolved"
			record.attached_exports = list(target.exports)
	return records


def classify_dynamic_imports(
	decls: List[DynamicImportDecl],
	base_dir: str,
	resolver: PathResolver,
	issues: List[Issue],
) -> List[ImportRecord]:
	records: List[ImportRecord] = []
	for decl in decls:
		record = ImportRecord(specifier=decl.path, line=decl.line)
		records.append(record)
		try:
			resolution = resolver.resolve(decl.path, base_dir)
		except ResolutionError as e:
			record.status = "failed"
			record.error = str(e)
			issues.append(
				Issue(kind=UNRESOLVED_DYNAMIC_IMPORT, message=f"Cannot resolve dynamic import: {decl.path}", line=decl.line)
			)
			continue
		if isinstance(resolution, ExternalModule):
			record.resolved_path = resolution.target
			record.is_external = True
		else:
			record.resolved_path = resolution.path
			record.is_external = not is_code_file(resolution.path)
	return records
