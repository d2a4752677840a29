"""Turn build-tool config files (babel, webpack, vite) into plain dicts.

Two loaders share the ``load(path) -> dict`` contract:

- ``StaticConfigModuleLoader`` parses the file and evaluates the exported
  value without running it. Anything it cannot evaluate becomes ``UNKNOWN``.
- ``NodeConfigModuleLoader`` runs the file with ``node`` and reads back the
  exported object as JSON. Only used when config execution is allowed.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from tree_sitter import Node

from .errors import ConfigLoadError
from .parsing import first_error_node, grammar_for_extension, node_text, parse_source, string_value

logger = logging.getLogger(__name__)


class _Unknown:
    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = _Unknown()

PATH_MODULES = {"path", "node:path", "path/posix", "node:path/posix"}
URL_MODULES = {"url", "node:url"}

NODE_TIMEOUT_SECONDS = 15.0


class ConfigModuleLoader(Protocol):
    def load(self, path: str) -> Dict[str, Any]:
        ...


class _PathModule:
    pass


class _PathFunction:
    def __init__(self, name: str):
        self.name = name


class _FileUrlToPath:
    pass


class _ImportMetaUrl:
    pass


class _Function:
    def __init__(self, node: Node):
        self.node = node


class _Member:
    """A destructured binding: ``const { key } = init``."""

    def __init__(self, init: Node, key: str):
        self.init = init
        self.key = key


PATH_MODULE = _PathModule()
FILE_URL_TO_PATH = _FileUrlToPath()
IMPORT_META_URL = _ImportMetaUrl()


def _path_resolve(base: str, segments: List[str]) -> str:
    result = base
    for segment in segments:
        result = os.path.join(result, segment)
    return os.path.normpath(result)


def _path_join(segments: List[str]) -> str:
    if not segments:
        return "."
    return os.path.normpath("/".join(segments))


def _first(node: Node) -> Optional[Node]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


class _Evaluator:
    def __init__(self, source: bytes, filename: str):
        self.source = source
        self.filename = filename
        self.dirname = os.path.dirname(filename)
        self.scopes: List[Dict[str, Any]] = [{}]
        self._evaluating: Set[int] = set()
        self._invoking: Set[Tuple[int, int]] = set()

    # -- scope handling --

    def declare_statements(self, statements: List[Node]) -> None:
        scope = self.scopes[-1]
        for stmt in statements:
            kind = stmt.type
            if kind == "export_statement":
                declaration = stmt.child_by_field_name("declaration")
                if declaration is not None:
                    self.declare_statements([declaration])
            elif kind in ("lexical_declaration", "variable_declaration"):
                for declarator in stmt.named_children:
                    if declarator.type == "variable_declarator":
                        self._declare(scope, declarator)
            elif kind == "import_statement":
                self._declare_import(scope, stmt)
            elif kind in ("function_declaration", "generator_function_declaration"):
                name = stmt.child_by_field_name("name")
                if name is not None:
                    scope[node_text(name)] = _Function(stmt)

    def _declare(self, scope: Dict[str, Any], declarator: Node) -> None:
        name = declarator.child_by_field_name("name")
        value = declarator.child_by_field_name("value")
        if name is None:
            return
        if name.type == "identifier":
            scope[node_text(name)] = value if value is not None else None
            return
        if name.type != "object_pattern" or value is None:
            return
        for prop in name.named_children:
            if prop.type == "shorthand_property_identifier_pattern":
                scope[node_text(prop)] = _Member(value, node_text(prop))
            elif prop.type == "pair_pattern":
                key = prop.child_by_field_name("key")
                local = prop.child_by_field_name("value")
                if key is not None and local is not None and local.type == "identifier":
                    scope[node_text(local)] = _Member(value, node_text(key))

    def _declare_import(self, scope: Dict[str, Any], stmt: Node) -> None:
        source_node = stmt.child_by_field_name("source")
        module = string_value(source_node) if source_node is not None else None
        clause = next((c for c in stmt.named_children if c.type == "import_clause"), None)
        if clause is None:
            return
        for child in clause.named_children:
            if child.type == "identifier":
                scope[node_text(child)] = PATH_MODULE if module in PATH_MODULES else UNKNOWN
            elif child.type == "namespace_import":
                for ident in child.named_children:
                    if ident.type == "identifier":
                        scope[node_text(ident)] = PATH_MODULE if module in PATH_MODULES else UNKNOWN
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias") or imported
                    if imported is None or alias is None:
                        continue
                    scope[node_text(alias)] = self._imported_value(module, node_text(imported))

    def _imported_value(self, module: Optional[str], name: str) -> Any:
        if module in PATH_MODULES:
            return _PathFunction(name)
        if module in URL_MODULES and name == "fileURLToPath":
            return FILE_URL_TO_PATH
        return UNKNOWN

    def lookup(self, name: str) -> Any:
        for scope in reversed(self.scopes):
            if name in scope:
                return self._binding_value(scope, name)
        if name == "__dirname":
            return self.dirname
        if name == "__filename":
            return self.filename
        if name == "fileURLToPath":
            return FILE_URL_TO_PATH
        if name == "undefined":
            return None
        return UNKNOWN

    def _binding_value(self, scope: Dict[str, Any], name: str) -> Any:
        bound = scope[name]
        if isinstance(bound, Node):
            marker = id(bound)
            if marker in self._evaluating:
                return UNKNOWN
            self._evaluating.add(marker)
            try:
                return self.evaluate(bound)
            finally:
                self._evaluating.discard(marker)
        if isinstance(bound, _Member):
            container = self.evaluate(bound.init)
            if container is PATH_MODULE:
                return _PathFunction(bound.key)
            if isinstance(container, dict):
                return container.get(bound.key, UNKNOWN)
            return UNKNOWN
        return bound

    # -- expressions --

    def evaluate(self, node: Optional[Node]) -> Any:
        if node is None:
            return UNKNOWN
        kind = node.type
        if kind in ("string", "template_string"):
            literal = string_value(node)
            if literal is not None:
                return literal
            return self._template(node) if kind == "template_string" else UNKNOWN
        if kind == "number":
            return self._number(node_text(node))
        if kind == "true":
            return True
        if kind == "false":
            return False
        if kind in ("null", "undefined"):
            return None
        if kind == "identifier":
            return self.lookup(node_text(node))
        if kind == "object":
            return self._object(node)
        if kind == "array":
            return self._array(node)
        if kind in ("parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression"):
            inner = _first(node)
            return self.evaluate(inner)
        if kind == "binary_expression":
            return self._binary(node)
        if kind == "member_expression":
            return self._member(node)
        if kind == "subscript_expression":
            return self._subscript(node)
        if kind == "call_expression":
            return self._call(node)
        if kind in ("arrow_function", "function_expression", "function", "function_declaration"):
            return _Function(node)
        if kind == "new_expression":
            return self._new(node)
        if kind == "await_expression":
            return self.evaluate(_first(node))
        return UNKNOWN

    def _number(self, text: str) -> Any:
        try:
            return int(text, 0)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return UNKNOWN

    def _template(self, node: Node) -> Any:
        pieces: List[str] = []
        cursor = node.start_byte + 1
        for child in node.named_children:
            if child.type != "template_substitution":
                continue
            pieces.append(self.source[cursor:child.start_byte].decode("utf-8", errors="replace"))
            inner = _first(child)
            value = self.evaluate(inner)
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                return UNKNOWN
            pieces.append(str(value))
            cursor = child.end_byte
        pieces.append(self.source[cursor:node.end_byte - 1].decode("utf-8", errors="replace"))
        return "".join(pieces)

    def _object(self, node: Node) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for prop in node.named_children:
            kind = prop.type
            if kind == "pair":
                key = self._property_key(prop.child_by_field_name("key"))
                if key is not None:
                    result[key] = self.evaluate(prop.child_by_field_name("value"))
            elif kind == "shorthand_property_identifier":
                result[node_text(prop)] = self.lookup(node_text(prop))
            elif kind == "spread_element":
                spread = self.evaluate(_first(prop))
                if isinstance(spread, dict):
                    result.update(spread)
            elif kind == "method_definition":
                key = self._property_key(prop.child_by_field_name("name"))
                if key is not None:
                    result[key] = _Function(prop)
        return result

    def _property_key(self, key: Optional[Node]) -> Optional[str]:
        if key is None:
            return None
        if key.type in ("property_identifier", "number"):
            return node_text(key)
        if key.type == "string":
            return string_value(key)
        if key.type == "computed_property_name":
            value = self.evaluate(_first(key))
            return value if isinstance(value, str) else None
        return None

    def _array(self, node: Node) -> List[Any]:
        result: List[Any] = []
        for item in node.named_children:
            if item.type == "comment":
                continue
            if item.type == "spread_element":
                spread = self.evaluate(_first(item))
                if isinstance(spread, list):
                    result.extend(spread)
                continue
            result.append(self.evaluate(item))
        return result

    def _binary(self, node: Node) -> Any:
        operator = node.child_by_field_name("operator")
        if operator is None or node_text(operator) != "+":
            return UNKNOWN
        left = self.evaluate(node.child_by_field_name("left"))
        right = self.evaluate(node.child_by_field_name("right"))
        if isinstance(left, str) or isinstance(right, str):
            if isinstance(left, (str, int, float)) and isinstance(right, (str, int, float)):
                return f"{left}{right}"
            return UNKNOWN
        if isinstance(left, (int, float)) and isinstance(right, (int, float)):
            return left + right
        return UNKNOWN

    def _member(self, node: Node) -> Any:
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None:
            return UNKNOWN
        name = node_text(prop)
        if obj.type == "meta_property" or node_text(obj) == "import.meta":
            return IMPORT_META_URL if name == "url" else UNKNOWN
        target = self.evaluate(obj)
        if target is PATH_MODULE:
            if name == "sep":
                return "/"
            return _PathFunction(name)
        if isinstance(target, dict):
            return target.get(name, UNKNOWN)
        return UNKNOWN

    def _subscript(self, node: Node) -> Any:
        target = self.evaluate(node.child_by_field_name("object"))
        index = self.evaluate(node.child_by_field_name("index"))
        if isinstance(target, dict) and isinstance(index, str):
            return target.get(index, UNKNOWN)
        if isinstance(target, list) and isinstance(index, int) and 0 <= index < len(target):
            return target[index]
        return UNKNOWN

    def _arguments(self, node: Node) -> List[Node]:
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return []
        return [arg for arg in arguments.named_children if arg.type != "comment"]

    def _call(self, node: Node) -> Any:
        callee_node = node.child_by_field_name("function")
        args = self._arguments(node)
        if callee_node is None:
            return UNKNOWN

        if callee_node.type == "identifier" and node_text(callee_node) == "require":
            module = string_value(args[0]) if args and args[0].type == "string" else None
            if module in PATH_MODULES:
                return PATH_MODULE
            if module in URL_MODULES:
                return {"fileURLToPath": FILE_URL_TO_PATH}
            return UNKNOWN

        if callee_node.type == "member_expression":
            obj = callee_node.child_by_field_name("object")
            prop = callee_node.child_by_field_name("property")
            if obj is not None and prop is not None and node_text(obj) == "process" and node_text(prop) == "cwd":
                # the project root stands in for the working directory of a build
                return self.dirname

        callee = self.evaluate(callee_node)
        if isinstance(callee, _PathFunction):
            return self._call_path_function(callee.name, [self.evaluate(arg) for arg in args])
        if callee is FILE_URL_TO_PATH:
            return self._file_url_to_path(args[0] if args else None)
        if isinstance(callee, _Function):
            return self.invoke(callee)
        if callee is UNKNOWN and callee_node.type == "identifier" and args:
            # wrapper helpers like defineConfig({...}) return their first argument
            first = self.evaluate(args[0])
            if isinstance(first, _Function):
                return self.invoke(first)
            if isinstance(first, dict):
                return first
        return UNKNOWN

    def _call_path_function(self, name: str, values: List[Any]) -> Any:
        if not all(isinstance(value, str) for value in values):
            return UNKNOWN
        if name == "resolve":
            return _path_resolve(self.dirname, values)
        if name == "join":
            return _path_join(values)
        if name == "dirname" and values:
            return os.path.dirname(values[0])
        if name == "basename" and values:
            return os.path.basename(values[0])
        return UNKNOWN

    def _new(self, node: Node) -> Any:
        constructor = node.child_by_field_name("constructor")
        if constructor is None or node_text(constructor) != "URL":
            return UNKNOWN
        args = self._arguments(node)
        if len(args) != 2:
            return UNKNOWN
        relative = self.evaluate(args[0])
        base = self.evaluate(args[1])
        if isinstance(relative, str) and base is IMPORT_META_URL:
            return ("file-url", _path_resolve(self.dirname, [relative]))
        return UNKNOWN

    def _file_url_to_path(self, arg: Optional[Node]) -> Any:
        value = self.evaluate(arg)
        if value is IMPORT_META_URL:
            return self.filename
        if isinstance(value, tuple) and len(value) == 2 and value[0] == "file-url":
            return value[1]
        if isinstance(value, str) and value.startswith("file://"):
            return value[len("file://"):]
        return UNKNOWN

    def invoke(self, fn: _Function) -> Any:
        node = fn.node
        # recursive calls have no static value
        span = (node.start_byte, node.end_byte)
        if span in self._invoking:
            return UNKNOWN
        scope: Dict[str, Any] = {}
        params = node.child_by_field_name("parameters")
        if params is not None:
            for ident in params.named_children:
                for name in _binding_names(ident):
                    scope[name] = UNKNOWN
        single = node.child_by_field_name("parameter")
        if single is not None:
            scope[node_text(single)] = UNKNOWN
        body = node.child_by_field_name("body")
        if body is None:
            return UNKNOWN
        self.scopes.append(scope)
        self._invoking.add(span)
        try:
            if body.type != "statement_block":
                return self.evaluate(body)
            statements = list(body.named_children)
            self.declare_statements(statements)
            for stmt in statements:
                if stmt.type == "return_statement":
                    value = _first(stmt)
                    return self.evaluate(value)
            return UNKNOWN
        finally:
            self._invoking.discard(span)
            self.scopes.pop()


def _binding_names(node: Node) -> List[str]:
    if node.type == "identifier":
        return [node_text(node)]
    if node.type in ("required_parameter", "optional_parameter"):
        pattern = node.child_by_field_name("pattern")
        return _binding_names(pattern) if pattern is not None else []
    if node.type == "assignment_pattern":
        left = node.child_by_field_name("left")
        return _binding_names(left) if left is not None else []
    names: List[str] = []
    for child in node.named_children:
        if child.type in ("identifier", "shorthand_property_identifier_pattern"):
            names.append(node_text(child))
        elif child.type in ("object_pattern", "array_pattern", "pair_pattern", "rest_pattern", "assignment_pattern"):
            names.extend(_binding_names(child))
    return names


def _exported_value(root: Node) -> Optional[Node]:
    for stmt in root.named_children:
        if stmt.type == "export_statement":
            if any(child.type == "default" for child in stmt.children):
                value = stmt.child_by_field_name("value") or stmt.child_by_field_name("declaration")
                if value is None and stmt.named_children:
                    value = stmt.named_children[-1]
                return value
        elif stmt.type == "expression_statement":
            expr = _first(stmt)
            if expr is None or expr.type != "assignment_expression":
                continue
            left = expr.child_by_field_name("left")
            if left is not None and node_text(left).replace(" ", "") == "module.exports":
                return expr.child_by_field_name("right")
    return None


def to_plain(value: Any) -> Any:
    """Replace evaluator markers with ``UNKNOWN`` so callers only see JSON-like data."""
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return UNKNOWN


def load_jsonc(text: str, path: str = "<jsonc>") -> Any:
    """Parse JSON that may carry comments and trailing commas (tsconfig's dialect)."""
    wrapped = "(\n" + text + "\n)"
    tree = parse_source(wrapped, "javascript")
    if first_error_node(tree.root_node) is not None:
        raise ConfigLoadError(path, "invalid JSON")
    statement = _first(tree.root_node)
    expr = _first(statement) if statement is not None else None
    evaluator = _Evaluator(wrapped.encode("utf-8"), os.path.abspath(path))
    value = to_plain(evaluator.evaluate(expr))
    if value is UNKNOWN:
        raise ConfigLoadError(path, "invalid JSON")
    return value


def load_json_file(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as e:
        raise ConfigLoadError(path, str(e)) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return load_jsonc(text, path)


def _is_json_config(path: str) -> bool:
    name = os.path.basename(path)
    return name.endswith(".json") or name == ".babelrc"


class StaticConfigModuleLoader:
    def load(self, path: str) -> Dict[str, Any]:
        if _is_json_config(path):
            data = load_json_file(path)
            if not isinstance(data, dict):
                raise ConfigLoadError(path, "top-level value is not an object")
            return data

        try:
            with open(path, "r", encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigLoadError(path, str(e)) from e

        _, ext = os.path.splitext(path)
        tree = parse_source(text, grammar_for_extension(ext))
        root = tree.root_node
        if first_error_node(root) is not None:
            raise ConfigLoadError(path, "syntax error")

        evaluator = _Evaluator(text.encode("utf-8"), os.path.abspath(path))
        evaluator.declare_statements(list(root.named_children))
        exported = _exported_value(root)
        if exported is None:
            raise ConfigLoadError(path, "no module.exports or export default found")

        try:
            value = evaluator.evaluate(exported)
            if isinstance(value, _Function):
                value = evaluator.invoke(value)
            value = to_plain(value)
        except RecursionError as e:
            raise ConfigLoadError(path, "config is nested too deeply to evaluate") from e
        except (TypeError, ValueError, AttributeError, KeyError, IndexError) as e:
            raise ConfigLoadError(path, f"could not evaluate: {e}") from e
        if not isinstance(value, dict):
            raise ConfigLoadError(path, "exported value is not a static object")
        logger.debug("Statically evaluated %s", path)
        return value


_NODE_SCRIPT = r"""
const { pathToFileURL } = require('url');
const target = process.argv[1];
(async () => {
  let mod;
  try {
    mod = require(target);
  } catch (err) {
    mod = await import(pathToFileURL(target).href);
  }
  let cfg = mod && mod.default !== undefined ? mod.default : mod;
  if (typeof cfg === 'function') cfg = await cfg({}, { mode: 'development', command: 'serve' });
  process.stdout.write(JSON.stringify(cfg === undefined ? null : cfg));
})().catch((err) => {
  process.stderr.write(String((err && err.message) || err));
  process.exit(1);
});
"""


class NodeConfigModuleLoader:
    """Executes the config with ``node``. Runs project code; opt-in only."""

    def __init__(self, node_executable: Optional[str] = None, timeout: float = NODE_TIMEOUT_SECONDS):
        self.node_executable = node_executable
        self.timeout = timeout

    def load(self, path: str) -> Dict[str, Any]:
        if _is_json_config(path):
            return StaticConfigModuleLoader().load(path)

        node = self.node_executable or shutil.which("node")
        if not node:
            raise ConfigLoadError(path, "node executable not found")
        try:
            proc = subprocess.run(
                [node, "-e", _NODE_SCRIPT, os.path.abspath(path)],
                cwd=os.path.dirname(os.path.abspath(path)),
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ConfigLoadError(path, "node executable not found") from e
        except subprocess.TimeoutExpired as e:
            raise ConfigLoadError(path, f"timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            raise ConfigLoadError(path, proc.stderr.strip() or f"node exited with {proc.returncode}")
        try:
            data = json.loads(proc.stdout or "null")
        except json.JSONDecodeError as e:
            raise ConfigLoadError(path, f"invalid JSON from node: {e}") from e
        if not isinstance(data, dict):
            raise ConfigLoadError(path, "exported value is not an object")
        return data
