from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree


GRAMMAR_BY_EXTENSION: Dict[str, str] = {
	".js": "javascript",
	".jsx": "javascript",
	".mjs": "javascript",
	".cjs": "javascript",
	".ts": "typescript",
	".mts": "typescript",
	".cts": "typescript",
	".tsx": "tsx",
	".vue": "tsx",
}

# Lazily built, one parser per grammar
_parsers: Dict[str, Parser] = {}


def _language(grammar: str) -> Language:
	if grammar == "javascript":
		return Language(tree_sitter_javascript.language())
	if grammar == "typescript":
		return Language(tree_sitter_typescript.language_typescript())
	if grammar == "tsx":
		return Language(tree_sitter_typescript.language_tsx())
	raise ValueError(f"Unknown grammar: {grammar}")


def get_parser(grammar: str) -> Parser:
	parser = _parsers.get(grammar)
	if parser is None:
		parser = Parser(_language(grammar))
		_parsers[grammar] = parser
	return parser


def grammar_for_extension(ext: str) -> str:
	return GRAMMAR_BY_EXTENSION.get(ext.lower(), "javascript")


def parse_source(text: str, grammar: str) -> Tree:
	return get_parser(grammar).parse(bytes(text, "utf-8"))


def node_text(node: Node) -> str:
	raw = node.text
	if raw is None:
		return ""
	return raw.decode("utf-8", errors="replace")


def node_key(node: Node) -> Tuple[int, int, str]:
	return (node.start_byte, node.end_byte, node.type)


def line_of(node: Node) -> int:
	return node.start_point[0] + 1


def string_value(node: Node) -> Optional[str]:
	"""Literal value of a string node, or of a template string without substitutions."""
	if node.type == "string":
		return node_text(node)[1:-1]
	if node.type == "template_string":
		if any(child.type == "template_substitution" for child in node.named_children):
			return None
		return node_text(node)[1:-1]
	return None


def walk(root: Node) -> Iterator[Node]:
	"""Pre-order traversal without recursion; deep expression trees are common in bundles."""
	stack = [root]
	while stack:
		node = stack.pop()
		yield node
		stack.extend(reversed(node.children))


def first_error_node(root: Node) -> Optional[Node]:
	if not root.has_error:
		return None
	for node in walk(root):
		if node.type == "ERROR" or node.is_missing:
			return node
	return root
