from __future__ import annotations

import re
from typing import List, Optional, Set, Tuple

from tree_sitter import Node

from .globals import is_known_global
from .model import (
	CONSOLE_USAGE,
	DEBUGGER_STATEMENT,
	DUPLICATE_OBJECT_KEY,
	EVAL_USAGE,
	FIXME_COMMENT,
	TODO_COMMENT,
	UNDECLARED_IDENTIFIER,
	UNDECLARED_JSX_COMPONENT,
	DynamicImportDecl,
	ExportRecord,
	ImportBinding,
	ImportDecl,
	Issue,
	ModuleFacts,
	SyntaxErrorInfo,
)
from .parsing import (
	first_error_node,
	grammar_for_extension,
	line_of,
	node_key,
	node_text,
	parse_source,
	string_value,
	walk,
)


CONSOLE_METHODS = frozenset(
	{"log", "warn", "error", "info", "debug", "table", "dir", "assert", "count", "time", "timeEnd", "trace"}
)

_VUE_SCRIPT_RE = re.compile(r"<script[^>]*>([\s\S]*?)</script>")

# Declarations whose `name` field introduces a binding
_NAMED_DECLARATIONS = {
	"function_declaration",
	"generator_function_declaration",
	"function_expression",
	"function",
	"generator_function",
	"function_signature",
	"class_declaration",
	"abstract_class_declaration",
	"class",
	"interface_declaration",
	"type_alias_declaration",
	"enum_declaration",
	"internal_module",
	"module",
}

_JSX_ELEMENTS = {"jsx_opening_element", "jsx_self_closing_element", "jsx_closing_element"}

_USE_NODE_TYPES = {"identifier", "type_identifier", "shorthand_property_identifier"}

NodeKey = Tuple[int, int, str]


def _pattern_identifiers(node: Optional[Node]) -> List[Node]:
	if node is None:
		return []
	kind = node.type
	if kind in ("identifier", "shorthand_property_identifier_pattern"):
		return [node]
	if kind in ("assignment_pattern", "object_assignment_pattern"):
		return _pattern_identifiers(node.child_by_field_name("left"))
	if kind == "pair_pattern":
		return _pattern_identifiers(node.child_by_field_name("value"))
	if kind in ("required_parameter", "optional_parameter"):
		return _pattern_identifiers(node.child_by_field_name("pattern"))
	if kind in ("object_pattern", "array_pattern", "rest_pattern", "formal_parameters"):
		found: List[Node] = []
		for child in node.named_children:
			found.extend(_pattern_identifiers(child))
		return found
	return []


def _declared_names(declaration: Node) -> List[str]:
	kind = declaration.type
	if kind in ("lexical_declaration", "variable_declaration"):
		names: List[str] = []
		for declarator in declaration.named_children:
			if declarator.type == "variable_declarator":
				names.extend(
					node_text(ident) for ident in _pattern_identifiers(declarator.child_by_field_name("name"))
				)
		return names
	if kind == "ambient_declaration":
		names = []
		for child in declaration.named_children:
			names.extend(_declared_names(child))
		return names
	name = declaration.child_by_field_name("name")
	if name is not None and name.type in ("identifier", "type_identifier"):
		return [node_text(name)]
	return []


def _comment_body(text: str) -> str:
	if text.startswith("//"):
		return text[2:].strip()
	body = text
	if body.startswith("/*"):
		body = body[2:]
	if body.endswith("*/"):
		body = body[:-2]
	return body.strip().lstrip("*").strip()


class _FactCollector:
	def __init__(self, root: Node) -> None:
		self.root = root
		self.imports: List[ImportDecl] = []
		self.dynamic_imports: List[DynamicImportDecl] = []
		self.exports: List[ExportRecord] = []
		self.code_issues: List[Issue] = []
		self.imported_locals: List[str] = []
		self.declared: Set[str] = set()
		self.binding_nodes: Set[NodeKey] = set()
		self.used: Set[str] = set()

	def collect(self) -> None:
		self._collect_bindings()
		skipped: Set[NodeKey] = set()
		stack = [self.root]
		while stack:
			node = stack.pop()
			key = node_key(node)
			if key in skipped:
				continue
			descend = self._visit(node, skipped)
			if descend:
				stack.extend(reversed(node.children))

	def _bind(self, node: Node) -> None:
		self.binding_nodes.add(node_key(node))
		self.declared.add(node_text(node))

	def _collect_bindings(self) -> None:
		for node in walk(self.root):
			kind = node.type
			if kind == "variable_declarator":
				for ident in _pattern_identifiers(node.child_by_field_name("name")):
					self._bind(ident)
			elif kind in _NAMED_DECLARATIONS:
				name = node.child_by_field_name("name")
				if name is not None and name.type in ("identifier", "type_identifier"):
					self._bind(name)
			elif kind == "formal_parameters":
				for ident in _pattern_identifiers(node):
					self._bind(ident)
			elif kind == "arrow_function":
				param = node.child_by_field_name("parameter")
				if param is not None:
					self._bind(param)
			elif kind == "catch_clause":
				for ident in _pattern_identifiers(node.child_by_field_name("parameter")):
					self._bind(ident)
			elif kind == "for_in_statement" and node.child_by_field_name("kind") is not None:
				for ident in _pattern_identifiers(node.child_by_field_name("left")):
					self._bind(ident)
			elif kind == "index_signature":
				name = node.child_by_field_name("name")
				if name is not None:
					self._bind(name)

	def _visit(self, node: Node, skipped: Set[NodeKey]) -> bool:
		kind = node.type
		if kind == "import_statement":
			self._import_statement(node)
			return False
		if kind == "export_statement":
			# exports inside TS namespaces and ambient modules are not module exports
			if node.parent is not None and node.parent.type != "program":
				return True
			return self._export_statement(node, skipped)
		if kind == "call_expression":
			self._call_expression(node)
		elif kind == "debugger_statement":
			self.code_issues.append(
				Issue(kind=DEBUGGER_STATEMENT, message="'debugger' statement found.", line=line_of(node))
			)
		elif kind == "object":
			self._object_keys(node)
		elif kind == "comment":
			self._comment(node)
		elif kind in _JSX_ELEMENTS:
			name = node.child_by_field_name("name")
			if name is not None:
				skipped.add(node_key(name))
				self._jsx_name(name, check=kind != "jsx_closing_element")
		elif kind == "jsx_namespace_name" or kind == "nested_type_identifier":
			for child in node.named_children:
				self.used.add(node_text(child))
			return False
		elif kind in _USE_NODE_TYPES:
			self._reference(node)
		return True

	def _reference(self, node: Node) -> None:
		if node_key(node) in self.binding_nodes:
			return
		name = node_text(node)
		self.used.add(name)
		if node.type == "type_identifier":
			return
		if name in self.declared or name in self.imported_locals or is_known_global(name):
			return
		self.code_issues.append(
			Issue(
				kind=UNDECLARED_IDENTIFIER,
				message=f"Identifier '{name}' is not declared.",
				line=line_of(node),
				name=name,
			)
		)

	def _jsx_name(self, name: Node, check: bool) -> None:
		if name.type != "identifier":
			# <Foo.Bar>, <svg:rect>: the leading object still counts as a use
			for ident in walk(name):
				if ident.type == "identifier":
					self.used.add(node_text(ident))
					break
			return
		tag = node_text(name)
		self.used.add(tag)
		if not check or not tag or not tag[0].isupper():
			return
		if tag in self.declared or tag in self.imported_locals or is_known_global(tag):
			return
		self.code_issues.append(
			Issue(
				kind=UNDECLARED_JSX_COMPONENT,
				message=f"JSX component '<{tag}>' is not declared or imported.",
				line=line_of(name),
				name=tag,
			)
		)

	def _import_statement(self, node: Node) -> None:
		source = node.child_by_field_name("source")
		bindings: List[ImportBinding] = []
		for child in node.named_children:
			if child.type == "import_clause":
				bindings.extend(self._import_clause(child))
			elif child.type == "import_require_clause":
				local = child.named_children[0] if child.named_children else None
				source = child.child_by_field_name("source")
				if local is not None and local.type == "identifier":
					bindings.append(ImportBinding(name="default", alias=node_text(local), kind="require"))
		if source is None:
			return
		path = string_value(source)
		if path is None:
			return
		for binding in bindings:
			if binding.alias and binding.alias not in self.imported_locals:
				self.imported_locals.append(binding.alias)
		self.imports.append(ImportDecl(path=path, bindings=bindings, line=line_of(node)))

	def _import_clause(self, clause: Node) -> List[ImportBinding]:
		bindings: List[ImportBinding] = []
		for child in clause.named_children:
			if child.type == "identifier":
				bindings.append(ImportBinding(name="default", alias=node_text(child), kind="default"))
			elif child.type == "namespace_import":
				local = next((c for c in child.named_children if c.type == "identifier"), None)
				if local is not None:
					bindings.append(ImportBinding(name="*", alias=node_text(local), kind="namespace"))
			elif child.type == "named_imports":
				for spec in child.named_children:
					if spec.type != "import_specifier":
						continue
					name = spec.child_by_field_name("name")
					alias = spec.child_by_field_name("alias")
					if name is None:
						continue
					imported = string_value(name) if name.type == "string" else node_text(name)
					local = node_text(alias) if alias is not None else imported
					bindings.append(ImportBinding(name=imported or "", alias=local, kind="named"))
		return bindings

	def _export_statement(self, node: Node, skipped: Set[NodeKey]) -> bool:
		line = line_of(node)
		source_node = node.child_by_field_name("source")
		source = string_value(source_node) if source_node is not None else None
		children = node.children
		clause = next((c for c in children if c.type == "export_clause"), None)
		namespace = next((c for c in children if c.type == "namespace_export"), None)

		if source is not None:
			if namespace is not None:
				exported = namespace.named_children[-1] if namespace.named_children else None
				exported_name = self._export_name(exported) if exported is not None else "*"
				self.exports.append(ExportRecord.re_export(source, [("*", exported_name)], line))
			elif any(c.type == "*" for c in children):
				self.exports.append(ExportRecord.export_all(source, line))
			elif clause is not None:
				self.exports.append(ExportRecord.re_export(source, self._export_pairs(clause), line))
			return False

		if any(c.type == "default" for c in children):
			self.exports.append(ExportRecord.default(line))
			return True

		declaration = node.child_by_field_name("declaration")
		if declaration is not None:
			names = _declared_names(declaration)
			if names:
				self.exports.append(ExportRecord.named(names, line))
			return True

		if clause is not None:
			pairs = self._export_pairs(clause)
			if pairs:
				self.exports.append(ExportRecord.named([exported for _, exported in pairs], line))
			for spec in clause.named_children:
				alias = spec.child_by_field_name("alias")
				if alias is not None:
					skipped.add(node_key(alias))
		return True

	def _export_name(self, node: Node) -> str:
		if node.type == "string":
			return string_value(node) or ""
		return node_text(node)

	def _export_pairs(self, clause: Node) -> List[Tuple[str, str]]:
		pairs: List[Tuple[str, str]] = []
		for spec in clause.named_children:
			if spec.type != "export_specifier":
				continue
			name = spec.child_by_field_name("name")
			alias = spec.child_by_field_name("alias")
			if name is None:
				continue
			local = self._export_name(name)
			exported = self._export_name(alias) if alias is not None else local
			pairs.append((local, exported))
		return pairs

	def _call_expression(self, node: Node) -> None:
		callee = node.child_by_field_name("function")
		arguments = node.child_by_field_name("arguments")
		if callee is None:
			return
		args = arguments.named_children if arguments is not None else []
		literal = string_value(args[0]) if len(args) == 1 else None

		if callee.type == "import":
			if literal is not None:
				self.dynamic_imports.append(DynamicImportDecl(path=literal, line=line_of(node)))
			return
		if callee.type == "identifier":
			name = node_text(callee)
			if name == "require" and literal is not None:
				self.imports.append(
					ImportDecl(
						path=literal,
						bindings=[ImportBinding(name="default", alias=None, kind="require")],
						line=line_of(node),
					)
				)
			elif name == "eval":
				self.code_issues.append(
					Issue(kind=EVAL_USAGE, message="Usage of 'eval' is discouraged.", line=line_of(node))
				)
			return
		if callee.type == "member_expression":
			obj = callee.child_by_field_name("object")
			prop = callee.child_by_field_name("property")
			if obj is None or prop is None:
				return
			method = node_text(prop)
			if obj.type == "identifier" and node_text(obj) == "console" and method in CONSOLE_METHODS:
				self.code_issues.append(
					Issue(
						kind=CONSOLE_USAGE,
						message=f"Usage of 'console.{method}'.",
						line=line_of(node),
						name=f"console.{method}",
					)
				)

	def _object_keys(self, node: Node) -> None:
		seen: Set[str] = set()
		for prop in node.named_children:
			key_node: Optional[Node] = None
			if prop.type == "pair":
				key_node = prop.child_by_field_name("key")
			elif prop.type == "shorthand_property_identifier":
				key_node = prop
			if key_node is None:
				continue
			if key_node.type in ("property_identifier", "shorthand_property_identifier", "number"):
				key = node_text(key_node)
			elif key_node.type == "string":
				key = string_value(key_node)
			else:
				continue
			if key is None:
				continue
			if key in seen:
				self.code_issues.append(
					Issue(
						kind=DUPLICATE_OBJECT_KEY,
						message=f"Duplicate key '{key}' in object literal.",
						line=line_of(key_node),
						name=key,
					)
				)
			else:
				seen.add(key)

	def _comment(self, node: Node) -> None:
		body = _comment_body(node_text(node))
		marker = body.upper()
		if marker.startswith("TODO"):
			self.code_issues.append(Issue(kind=TODO_COMMENT, message=f"TODO comment: {body}", line=line_of(node)))
		elif marker.startswith("FIXME"):
			self.code_issues.append(Issue(kind=FIXME_COMMENT, message=f"FIXME comment: {body}", line=line_of(node)))

	def unused_imports(self) -> List[str]:
		return [name for name in self.imported_locals if name not in self.used]


def _syntax_error(root: Node) -> Optional[SyntaxErrorInfo]:
	bad = first_error_node(root)
	if bad is None:
		return None
	if bad.is_missing:
		message = f"Missing '{bad.type}'"
	else:
		snippet = node_text(bad).strip().splitlines()[0][:40] if node_text(bad).strip() else ""
		message = f"Unexpected token '{snippet}'" if snippet else "Unexpected token"
	return SyntaxErrorInfo(message=message, line=bad.start_point[0] + 1, column=bad.start_point[1])


def _vue_script(source: str) -> Optional[str]:
	match = _VUE_SCRIPT_RE.search(source)
	if match is None:
		return None
	# Pad with newlines so reported lines point into the .vue file
	offset = source[: match.start(1)].count("\n")
	return "\n" * offset + match.group(1)


def extract_facts(source: str, path: str, ext: str) -> ModuleFacts:
	if ext.lower() == ".vue":
		script = _vue_script(source)
		if script is None:
			return ModuleFacts(path=path)
		source = script

	tree = parse_source(source, grammar_for_extension(ext))
	root = tree.root_node
	syntax_error = _syntax_error(root)
	if syntax_error is not None:
		return ModuleFacts(path=path, syntax_error=syntax_error)

	collector = _FactCollector(root)
	collector.collect()
	return ModuleFacts(
		path=path,
		imports=collector.imports,
		dynamic_imports=collector.dynamic_imports,
		exports=collector.exports,
		unused_imports=collector.unused_imports(),
		code_issues=collector.code_issues,
	)
