from __future__ import annotations

import json
import logging
import os
from typing import List, Literal, Optional, Protocol, Tuple, Union

from pydantic import BaseModel

from .errors import FileNotFound, ModuleNotResolvable
from .model import AliasTable

logger = logging.getLogger(__name__)


BUILTIN_MODULES = frozenset(
	"""
	assert assert/strict async_hooks buffer child_process cluster console constants crypto dgram
	diagnostics_channel dns dns/promises domain events fs fs/promises http http2 https inspector
	inspector/promises module net os path path/posix path/win32 perf_hooks process punycode
	querystring readline readline/promises repl stream stream/consumers stream/promises stream/web
	string_decoder sys timers timers/promises tls trace_events tty url util util/types v8 vm wasi
	worker_threads zlib test sqlite
	""".split()
)

SOURCE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".json", ".vue")

# What Node's own lookup appends inside a package
PACKAGE_EXTENSIONS = (".js", ".json", ".node", ".mjs", ".cjs")


class ResolvedFile(BaseModel):
	path: str


class ExternalModule(BaseModel):
	target: str
	reason: Literal["builtin", "package"]


Resolution = Union[ResolvedFile, ExternalModule]


def is_builtin_module(specifier: str) -> bool:
	if specifier.startswith("node:"):
		return True
	return specifier in BUILTIN_MODULES


def is_inside_dependency(path: str) -> bool:
	return "node_modules" in path.split(os.sep)


def find_existing_file(base: str) -> str:
	if os.path.isfile(base):
		return base
	_, ext = os.path.splitext(base)
	if not ext:
		for candidate_ext in SOURCE_EXTENSIONS:
			candidate = base + candidate_ext
			if os.path.isfile(candidate):
				return candidate
		if os.path.isdir(base):
			for candidate_ext in SOURCE_EXTENSIONS:
				candidate = os.path.join(base, "index" + candidate_ext)
				if os.path.isfile(candidate):
					return candidate
	raise FileNotFound(base)


class PackageLocator(Protocol):
	def locate(self, specifier: str, from_dir: str) -> Optional[str]:
		...


def split_package_specifier(specifier: str) -> Tuple[str, str]:
	"""'@scope/pkg/a/b' -> ('@scope/pkg', 'a/b'); 'pkg/a' -> ('pkg', 'a')."""
	parts = specifier.split("/")
	if specifier.startswith("@") and len(parts) >= 2:
		return "/".join(parts[:2]), "/".join(parts[2:])
	return parts[0], "/".join(parts[1:])


class NodePackageLocator:
	"""Node's node_modules lookup: walk up from the importing directory, then from the project root.

	Conditional export maps are not evaluated. A package that exists but only
	declares its entry points through ``exports`` is reported by its directory.
	"""

	def __init__(self, project_root: str) -> None:
		self.project_root = os.path.abspath(project_root)

	def _search_dirs(self, from_dir: str) -> List[str]:
		dirs: List[str] = []
		for start in (os.path.abspath(from_dir), self.project_root):
			current = start
			while True:
				candidate = os.path.join(current, "node_modules")
				if candidate not in dirs and os.path.isdir(candidate):
					dirs.append(candidate)
				parent = os.path.dirname(current)
				if parent == current:
					break
				current = parent
		return dirs

	def locate(self, specifier: str, from_dir: str) -> Optional[str]:
		name, subpath = split_package_specifier(specifier)
		if not name:
			return None
		for modules_dir in self._search_dirs(from_dir):
			package_dir = os.path.join(modules_dir, name)
			if not os.path.isdir(package_dir):
				continue
			found = self._resolve_in_package(package_dir, subpath)
			if found is not None:
				return os.path.realpath(found)
		return None

	def _read_manifest(self, package_dir: str) -> dict:
		manifest = os.path.join(package_dir, "package.json")
		if not os.path.isfile(manifest):
			return {}
		try:
			with open(manifest, "r", encoding="utf-8") as fh:
				data = json.load(fh)
		except (OSError, ValueError) as e:
			logger.debug("Unreadable package.json %s: %s", manifest, e)
			return {}
		return data if isinstance(data, dict) else {}

	def _probe(self, base: str) -> Optional[str]:
		if os.path.isfile(base):
			return base
		for ext in PACKAGE_EXTENSIONS:
			if os.path.isfile(base + ext):
				return base + ext
		if os.path.isdir(base):
			main = self._read_manifest(base).get("main")
			if isinstance(main, str) and main:
				found = self._probe_file(os.path.join(base, main))
				if found is not None:
					return found
			for ext in PACKAGE_EXTENSIONS:
				index = os.path.join(base, "index" + ext)
				if os.path.isfile(index):
					return index
		return None

	def _probe_file(self, base: str) -> Optional[str]:
		if os.path.isfile(base):
			return base
		for ext in PACKAGE_EXTENSIONS:
			if os.path.isfile(base + ext):
				return base + ext
		for ext in PACKAGE_EXTENSIONS:
			index = os.path.join(base, "index" + ext)
			if os.path.isfile(index):
				return index
		return None

	def _resolve_in_package(self, package_dir: str, subpath: str) -> Optional[str]:
		target = os.path.join(package_dir, subpath) if subpath else package_dir
		found = self._probe(target)
		if found is not None:
			return found
		if "exports" in self._read_manifest(package_dir):
			return package_dir
		return None


class PathResolver:
	def __init__(
		self,
		alias_table: AliasTable,
		project_root: str,
		locator: Optional[PackageLocator] = None,
	) -> None:
		self.alias_table = alias_table
		self.project_root = os.path.abspath(project_root)
		self.locator = locator or NodePackageLocator(self.project_root)

	def resolve(self, specifier: str, from_dir: str) -> Resolution:
		if specifier.startswith(".") or os.path.isabs(specifier):
			return ResolvedFile(path=find_existing_file(os.path.normpath(os.path.join(from_dir, specifier))))

		if is_builtin_module(specifier):
			return ExternalModule(target=specifier, reason="builtin")

		# first match wins, in table order
		for alias, target in self.alias_table:
			if specifier == alias or specifier.startswith(alias + "/"):
				return ResolvedFile(path=find_existing_file(target + specifier[len(alias):]))

		located = self.locator.locate(specifier, from_dir)
		if located is None:
			raise ModuleNotResolvable(specifier, from_dir)
		if is_inside_dependency(located):
			return ExternalModule(target=located, reason="package")
		return ResolvedFile(path=find_existing_file(located))
