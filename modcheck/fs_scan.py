from __future__ import annotations

import fnmatch
import os
from typing import Iterable, List, Optional, Sequence


DEFAULT_EXTENSIONS = [".js", ".jsx", ".ts", ".tsx", ".vue"]
DEFAULT_IGNORE = ["node_modules/**", "dist/**", "build/**", ".git/**"]


def _pattern_variants(pattern: str) -> List[str]:
	variants = [pattern, "*/" + pattern]
	if pattern.startswith("**/"):
		variants.append(pattern[3:])
	return variants


def match_ignore(rel_path: str, patterns: Sequence[str], is_dir: bool = False) -> bool:
	rel_path = rel_path.replace(os.sep, "/")
	# a directory matches "dir/**" through its trailing slash
	candidates = [rel_path + "/"] if is_dir else [rel_path]
	for pattern in patterns:
		for variant in _pattern_variants(pattern):
			if any(fnmatch.fnmatchcase(candidate, variant) for candidate in candidates):
				return True
	return False


def _is_ignored(path: str, bases: Iterable[str], patterns: Sequence[str], is_dir: bool) -> bool:
	for base in bases:
		rel_path = os.path.relpath(path, base)
		if rel_path.startswith(".."):
			continue
		if match_ignore(rel_path, patterns, is_dir=is_dir):
			return True
	return False


def discover_source_files(
	root: str,
	extensions: Optional[Sequence[str]] = None,
	ignore: Optional[Sequence[str]] = None,
	recursive: bool = True,
	project_root: Optional[str] = None,
) -> List[str]:
	root = os.path.abspath(root)
	extensions = tuple(extensions if extensions is not None else DEFAULT_EXTENSIONS)
	ignore = list(ignore if ignore is not None else DEFAULT_IGNORE)
	bases = [root]
	if project_root is not None and os.path.abspath(project_root) != root:
		bases.append(os.path.abspath(project_root))

	files: List[str] = []
	for dirpath, dirnames, filenames in os.walk(root):
		if recursive:
			dirnames[:] = [
				d for d in dirnames if not _is_ignored(os.path.join(dirpath, d), bases, ignore, is_dir=True)
			]
		else:
			dirnames[:] = []
		for filename in filenames:
			if not filename.endswith(extensions):
				continue
			path = os.path.join(dirpath, filename)
			if _is_ignored(path, bases, ignore, is_dir=False):
				continue
			files.append(path)
	return sorted(files)
