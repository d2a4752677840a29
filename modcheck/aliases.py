from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config_modules import ConfigModuleLoader, StaticConfigModuleLoader, load_json_file
from .errors import ConfigLoadError
from .model import AliasTable

logger = logging.getLogger(__name__)


BABEL_CONFIG_FILES = ["babel.config.js", "babel.config.cjs", "babel.config.mjs", "babel.config.json", ".babelrc"]
WEBPACK_CONFIG_FILES = ["webpack.config.js", "webpack.config.cjs", "webpack.config.mjs", "webpack.config.ts"]
VITE_CONFIG_FILES = ["vite.config.js", "vite.config.mjs", "vite.config.cjs", "vite.config.ts", "vite.config.mts"]
NEXTJS_ALIAS_DIRS = ["pages", "components", "lib", "utils"]
MODULE_RESOLVER_NAMES = {"module-resolver", "babel-plugin-module-resolver"}


def _strip_wildcard(value: str) -> str:
	return value[:-2] if value.endswith("/*") else value


def _first_existing(root: str, candidates: List[str]) -> Optional[str]:
	for name in candidates:
		path = os.path.join(root, name)
		if os.path.isfile(path):
			return path
	return None


def _extends_target(config_path: str, extends: Any) -> Optional[str]:
	# only relative extends; package-provided bases are out of reach without a resolver
	if isinstance(extends, list):
		extends = extends[0] if extends else None
	if not isinstance(extends, str) or not extends.startswith("."):
		return None
	target = os.path.normpath(os.path.join(os.path.dirname(config_path), extends))
	if not os.path.isfile(target) and os.path.isfile(target + ".json"):
		target += ".json"
	return target if os.path.isfile(target) else None


def _path_mapping_chain(config_path: str) -> List[Tuple[str, Dict[str, Any]]]:
	"""compilerOptions of a jsconfig/tsconfig and of every file it extends, nearest first."""
	chain: List[Tuple[str, Dict[str, Any]]] = []
	seen = set()
	current: Optional[str] = config_path
	while current is not None:
		real = os.path.realpath(current)
		if real in seen:
			break
		seen.add(real)
		try:
			data = load_json_file(current)
		except ConfigLoadError:
			if current == config_path:
				raise
			logger.warning("Ignoring unreadable extended config %s", current)
			break
		if not isinstance(data, dict):
			if current == config_path:
				raise ConfigLoadError(current, "top-level value is not an object")
			break
		options = data.get("compilerOptions")
		chain.append((current, options if isinstance(options, dict) else {}))
		current = _extends_target(current, data.get("extends"))
	return chain


def aliases_from_path_mapping(project_root: str, filename: str) -> Dict[str, str]:
	config_path = os.path.join(project_root, filename)
	if not os.path.isfile(config_path):
		return {}

	chain = _path_mapping_chain(config_path)
	paths: Optional[Dict[str, Any]] = None
	paths_dir = os.path.dirname(config_path)
	base_url: Optional[str] = None
	for declared_in, options in chain:
		if paths is None and isinstance(options.get("paths"), dict):
			paths = options["paths"]
			paths_dir = os.path.dirname(declared_in)
		if base_url is None and isinstance(options.get("baseUrl"), str):
			base_url = os.path.join(os.path.dirname(declared_in), options["baseUrl"])
	if not paths:
		return {}
	if base_url is None:
		# without a baseUrl, targets are relative to the config declaring paths
		base_url = paths_dir

	aliases: Dict[str, str] = {}
	for alias, targets in paths.items():
		if isinstance(targets, str):
			targets = [targets]
		if not isinstance(targets, list) or not targets or not isinstance(targets[0], str):
			continue
		aliases[_strip_wildcard(alias)] = os.path.normpath(os.path.join(base_url, _strip_wildcard(targets[0])))
	return aliases


def _resolve_alias_values(config_path: str, raw: Dict[str, Any]) -> Dict[str, str]:
	base = os.path.dirname(config_path)
	aliases: Dict[str, str] = {}
	for alias, target in raw.items():
		if isinstance(target, str):
			aliases[alias] = os.path.normpath(os.path.join(base, target))
	return aliases


def _flatten_alias_list(entries: List[Any], key_field: str, value_field: str) -> Dict[str, Any]:
	flat: Dict[str, Any] = {}
	for entry in entries:
		if isinstance(entry, dict) and isinstance(entry.get(key_field), str):
			flat[entry[key_field]] = entry.get(value_field)
	return flat


def _resolve_section_alias(config: Dict[str, Any], key_field: str, value_field: str) -> Dict[str, Any]:
	resolve = config.get("resolve")
	if not isinstance(resolve, dict):
		return {}
	alias = resolve.get("alias")
	if isinstance(alias, list):
		return _flatten_alias_list(alias, key_field, value_field)
	return alias if isinstance(alias, dict) else {}


def aliases_from_babel(project_root: str, loader: ConfigModuleLoader) -> Dict[str, str]:
	config_path = _first_existing(project_root, BABEL_CONFIG_FILES)
	if config_path is None:
		return {}
	config = loader.load(config_path)
	plugins = config.get("plugins")
	if not isinstance(plugins, list):
		return {}
	for plugin in plugins:
		if (
			isinstance(plugin, list)
			and len(plugin) >= 2
			and plugin[0] in MODULE_RESOLVER_NAMES
			and isinstance(plugin[1], dict)
		):
			alias = plugin[1].get("alias")
			if isinstance(alias, dict):
				return _resolve_alias_values(config_path, alias)
	return {}


def aliases_from_webpack(project_root: str, loader: ConfigModuleLoader) -> Dict[str, str]:
	config_path = _first_existing(project_root, WEBPACK_CONFIG_FILES)
	if config_path is None:
		return {}
	config = loader.load(config_path)
	return _resolve_alias_values(config_path, _resolve_section_alias(config, "name", "alias"))


def aliases_from_vite(project_root: str, loader: ConfigModuleLoader) -> Dict[str, str]:
	config_path = _first_existing(project_root, VITE_CONFIG_FILES)
	if config_path is None:
		return {}
	config = loader.load(config_path)
	return _resolve_alias_values(config_path, _resolve_section_alias(config, "find", "replacement"))


def aliases_from_nextjs(project_root: str) -> Dict[str, str]:
	aliases: Dict[str, str] = {}
	for name in NEXTJS_ALIAS_DIRS:
		target = os.path.join(project_root, name)
		if os.path.isdir(target):
			aliases[f"@/{name}"] = target
	return aliases


def build_alias_table(project_root: str, loader: Optional[ConfigModuleLoader] = None) -> AliasTable:
	"""Merge aliases from every supported config source; later sources win on key clashes."""
	root = os.path.abspath(project_root)
	loader = loader or StaticConfigModuleLoader()
	sources: List[Tuple[str, Callable[[], Dict[str, str]]]] = [
		("jsconfig.json", lambda: aliases_from_path_mapping(root, "jsconfig.json")),
		("tsconfig.json", lambda: aliases_from_path_mapping(root, "tsconfig.json")),
		("babel", lambda: aliases_from_babel(root, loader)),
		("webpack", lambda: aliases_from_webpack(root, loader)),
		("vite", lambda: aliases_from_vite(root, loader)),
		("nextjs", lambda: aliases_from_nextjs(root)),
	]

	table = AliasTable()
	for name, extract in sources:
		try:
			found = extract()
		except (ConfigLoadError, OSError, ValueError) as e:
			message = f"Failed to read aliases from {name}: {e}"
			logger.warning(message)
			table.warnings.append(message)
			continue
		if found:
			logger.debug("Loaded %d aliases from %s", len(found), name)
		table.merge(found)
	return table
