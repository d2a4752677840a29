from __future__ import annotations

from typing import Dict, Iterator, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


UNRESOLVED_IMPORT = "unresolved-import"
UNRESOLVED_DYNAMIC_IMPORT = "unresolved-dynamic-import"
ERROR_IN_IMPORTED_FILE = "error-in-imported-file"
UNRESOLVED_NAMED_IMPORT = "unresolved-named-import"
UNRESOLVED_DEFAULT_IMPORT = "unresolved-default-import"
FILE_NOT_FOUND = "file-not-found"
UNRESOLVED_RE_EXPORT_SOURCE = "unresolved-re-export-source"
ERROR_IN_RE_EXPORTED_FILE = "error-in-re-exported-file"
MISSING_RE_EXPORTED_NAME = "missing-re-exported-name"
UNRESOLVED_RE_EXPORT_ALL_SOURCE = "unresolved-re-export-all-source"
ERROR_IN_RE_EXPORTED_ALL_SOURCE = "error-in-re-exported-all-source"
UNDECLARED_IDENTIFIER = "undeclared-identifier"
UNDECLARED_JSX_COMPONENT = "undeclared-jsx-component"
EVAL_USAGE = "eval-usage"
DEBUGGER_STATEMENT = "debugger-statement"
DUPLICATE_OBJECT_KEY = "duplicate-object-key"
UNUSED_IMPORTS = "unused-imports"
CONSOLE_USAGE = "console-usage"
TODO_COMMENT = "todo-comment"
FIXME_COMMENT = "fixme-comment"

HARD_ISSUE_KINDS = frozenset(
	{
		UNRESOLVED_IMPORT,
		ERROR_IN_IMPORTED_FILE,
		UNRESOLVED_NAMED_IMPORT,
		UNRESOLVED_DEFAULT_IMPORT,
		FILE_NOT_FOUND,
		UNRESOLVED_RE_EXPORT_SOURCE,
		ERROR_IN_RE_EXPORTED_FILE,
		MISSING_RE_EXPORTED_NAME,
		UNRESOLVED_RE_EXPORT_ALL_SOURCE,
		ERROR_IN_RE_EXPORTED_ALL_SOURCE,
		UNDECLARED_IDENTIFIER,
		UNDECLARED_JSX_COMPONENT,
		EVAL_USAGE,
		DEBUGGER_STATEMENT,
		DUPLICATE_OBJECT_KEY,
	}
)

# Hard issues raised by the fact extractor rather than by cross-file checks.
CODE_ISSUE_KINDS = frozenset(
	{
		UNDECLARED_IDENTIFIER,
		UNDECLARED_JSX_COMPONENT,
		EVAL_USAGE,
		DEBUGGER_STATEMENT,
		DUPLICATE_OBJECT_KEY,
	}
)

ImportStatus = Literal["resolved", "external", "failed", "warning"]
FileStatus = Literal["ok", "warning", "error"]
BindingKind = Literal["named", "default", "namespace", "require"]
ExportKind = Literal["named", "default", "re-export", "all"]


class Issue(BaseModel):
	kind: str
	message: str
	line: Optional[int] = None
	name: Optional[str] = None
	identifiers: List[str] = []

	@property
	def is_hard(self) -> bool:
		return self.kind in HARD_ISSUE_KINDS


class SyntaxErrorInfo(BaseModel):
	message: str
	line: Optional[int] = None
	column: Optional[int] = None


class ImportBinding(BaseModel):
	name: str
	alias: Optional[str] = None
	kind: BindingKind = "named"


class ImportDecl(BaseModel):
	path: str
	bindings: List[ImportBinding] = []
	line: Optional[int] = None


class DynamicImportDecl(BaseModel):
	path: str
	line: Optional[int] = None


class ReExportPair(BaseModel):
	local: str
	exported: str


class ExportRecord(BaseModel):
	kind: ExportKind
	names: List[str] = []
	source: Optional[str] = None
	pairs: List[ReExportPair] = []
	line: Optional[int] = None

	@classmethod
	def named(cls, names: List[str], line: Optional[int] = None) -> "ExportRecord":
		return cls(kind="named", names=names, line=line)

	@classmethod
	def default(cls, line: Optional[int] = None) -> "ExportRecord":
		return cls(kind="default", line=line)

	@classmethod
	def re_export(
		cls, source: str, pairs: List[Tuple[str, str]], line: Optional[int] = None
	) -> "ExportRecord":
		return cls(
			kind="re-export",
			source=source,
			pairs=[ReExportPair(local=local, exported=exported) for local, exported in pairs],
			line=line,
		)

	@classmethod
	def export_all(cls, source: str, line: Optional[int] = None) -> "ExportRecord":
		return cls(kind="all", source=source, line=line)


class ModuleFacts(BaseModel):
	model_config = ConfigDict(frozen=True)

	path: str
	syntax_error: Optional[SyntaxErrorInfo] = None
	imports: List[ImportDecl] = []
	dynamic_imports: List[DynamicImportDecl] = []
	exports: List[ExportRecord] = []
	unused_imports: List[str] = []
	code_issues: List[Issue] = []
	file_not_found: bool = False

	@classmethod
	def not_found(cls, path: str) -> "ModuleFacts":
		return cls(
			path=path,
			syntax_error=SyntaxErrorInfo(message=f"File not found: {path}"),
			file_not_found=True,
		)

	@property
	def parsed(self) -> bool:
		return not self.file_not_found and self.syntax_error is None


class ImportRecord(BaseModel):
	specifier: str
	bindings: List[ImportBinding] = []
	line: Optional[int] = None
	resolved_path: Optional[str] = None
	status: ImportStatus = "resolved"
	is_external: bool = False
	error: Optional[str] = None
	attached_exports: Optional[List[ExportRecord]] = Field(default=None, exclude=True)
	issues: List[Issue] = []


class AliasTable:
	"""Alias prefix -> absolute directory, in config-source priority order.

	Lookups walk the entries in insertion order and stop at the first match,
	so an earlier short alias shadows a later, more specific one.
	"""

	def __init__(self, entries: Optional[Dict[str, str]] = None) -> None:
		self._entries: Dict[str, str] = dict(entries or {})
		self.warnings: List[str] = []

	def merge(self, aliases: Dict[str, str]) -> None:
		# dict assignment keeps an existing key in its original position
		for alias, target in aliases.items():
			self._entries[alias] = target

	def items(self) -> List[Tuple[str, str]]:
		return list(self._entries.items())

	def as_dict(self) -> Dict[str, str]:
		return dict(self._entries)

	def get(self, alias: str) -> Optional[str]:
		return self._entries.get(alias)

	def __iter__(self) -> Iterator[Tuple[str, str]]:
		return iter(self._entries.items())

	def __len__(self) -> int:
		return len(self._entries)

	def __contains__(self, alias: object) -> bool:
		return alias in self._entries

	def __repr__(self) -> str:
		return f"AliasTable({self._entries!r})"


class AnalysisResult(BaseModel):
	file: str
	status: FileStatus
	syntax_error: Optional[SyntaxErrorInfo] = None
	issues: List[Issue] = []
	imports: List[ImportRecord] = []
	dynamic_imports: List[ImportRecord] = []
	exports: List[ExportRecord] = []
	unused_imports: List[str] = []


class Summary(BaseModel):
	total_files: int = 0
	files_with_errors: int = 0
	files_with_warnings: int = 0
	total_imports: int = 0
	unresolved_imports: int = 0
	unused_imports: int = 0
	total_undeclared_identifiers: int = 0
	total_critical_code_issues: int = 0
	total_console_usage: int = 0
	total_todo_fixme_comments: int = 0
	details: List[AnalysisResult] = []
