import os

import pytest

from modcheck.errors import FileNotFound, ModuleNotResolvable, ResolutionError
from modcheck.model import AliasTable
from modcheck.resolver import (
	ExternalModule,
	NodePackageLocator,
	PathResolver,
	ResolvedFile,
	find_existing_file,
	split_package_specifier,
)


def test_find_existing_file_probing(write_project):
	root = write_project(
		{
			"src/a.ts": "export const a = 1;\n",
			"src/a.js": "export const a = 1;\n",
			"src/comp/index.tsx": "export default 1;\n",
			"src/style.css": "body {}\n",
		}
	)
	src = os.path.join(str(root), "src")
	# .js is probed before .ts
	assert find_existing_file(os.path.join(src, "a")) == os.path.join(src, "a.js")
	assert find_existing_file(os.path.join(src, "comp")) == os.path.join(src, "comp", "index.tsx")
	exact = os.path.join(src, "style.css")
	assert find_existing_file(exact) == exact
	assert find_existing_file(find_existing_file(exact)) == exact
	with pytest.raises(FileNotFound):
		find_existing_file(os.path.join(src, "missing.css"))
	with pytest.raises(ResolutionError):
		find_existing_file(os.path.join(src, "nothing"))


def test_builtins_are_external(tmp_path):
	resolver = PathResolver(AliasTable(), str(tmp_path))
	for specifier in ("fs", "fs/promises", "node:path", "node:test"):
		resolved = resolver.resolve(specifier, str(tmp_path))
		assert isinstance(resolved, ExternalModule)
		assert resolved.reason == "builtin"
		assert resolved.target == specifier


def test_relative_specifiers_ignore_aliases(write_project):
	root = write_project({"src/util.js": "export const u = 1;\n", "elsewhere/util.js": ""})
	src = os.path.join(str(root), "src")
	table = AliasTable({".": os.path.join(str(root), "elsewhere"), "./util": os.path.join(str(root), "elsewhere")})
	resolved = PathResolver(table, str(root)).resolve("./util", src)
	assert resolved == ResolvedFile(path=os.path.join(src, "util.js"))


def test_first_matching_alias_wins(write_project):
	root = write_project(
		{
			"short/components/button.ts": "",
			"specific/button.ts": "",
		}
	)
	table = AliasTable(
		{
			"@": os.path.join(str(root), "short"),
			"@/components": os.path.join(str(root), "specific"),
		}
	)
	resolved = PathResolver(table, str(root)).resolve("@/components/button", str(root))
	assert resolved.path == os.path.join(str(root), "short", "components", "button.ts")


def test_alias_requires_exact_or_slash_boundary(write_project):
	root = write_project({"app/index.ts": "", "app/widget.ts": ""})
	table = AliasTable({"@app": os.path.join(str(root), "app")})
	resolver = PathResolver(table, str(root))
	assert resolver.resolve("@app", str(root)).path == os.path.join(str(root), "app", "index.ts")
	assert resolver.resolve("@app/widget", str(root)).path == os.path.join(str(root), "app", "widget.ts")
	with pytest.raises(ModuleNotResolvable):
		resolver.resolve("@apple", str(root))


def test_packages_in_node_modules_are_external(write_project):
	root = write_project(
		{
			"node_modules/lib/package.json": '{"name": "lib", "main": "dist/main"}',
			"node_modules/lib/dist/main.js": "module.exports = {};\n",
			"node_modules/@scope/pkg/index.js": "",
			"node_modules/esm-only/package.json": '{"name": "esm-only", "exports": {".": "./x.mjs"}}',
			"src/deep/file.js": "",
		}
	)
	resolver = PathResolver(AliasTable(), str(root))
	from_dir = os.path.join(str(root), "src", "deep")

	lib = resolver.resolve("lib", from_dir)
	assert isinstance(lib, ExternalModule)
	assert lib.reason == "package"
	assert lib.target == os.path.realpath(os.path.join(str(root), "node_modules", "lib", "dist", "main.js"))

	scoped = resolver.resolve("@scope/pkg", from_dir)
	assert isinstance(scoped, ExternalModule)

	assert isinstance(resolver.resolve("esm-only", from_dir), ExternalModule)

	with pytest.raises(ModuleNotResolvable) as excinfo:
		resolver.resolve("not-installed", from_dir)
	assert str(excinfo.value) == f"Cannot resolve module: not-installed (from {from_dir})"


def test_symlinked_workspace_package_is_internal(write_project):
	root = write_project({"packages/ui/index.js": "export const x = 1;\n"})
	(root / "node_modules").mkdir()
	os.symlink(str(root / "packages" / "ui"), str(root / "node_modules" / "ui"))
	resolved = PathResolver(AliasTable(), str(root)).resolve("ui", str(root))
	assert isinstance(resolved, ResolvedFile)
	assert resolved.path == os.path.realpath(str(root / "packages" / "ui" / "index.js"))


def test_custom_locator_is_used(tmp_path):
	class FixedLocator:
		def __init__(self):
			self.calls = []

		def locate(self, specifier, from_dir):
			self.calls.append((specifier, from_dir))
			return None

	locator = FixedLocator()
	resolver = PathResolver(AliasTable(), str(tmp_path), locator=locator)
	with pytest.raises(ModuleNotResolvable):
		resolver.resolve("anything", str(tmp_path))
	assert locator.calls == [("anything", str(tmp_path))]


def test_split_package_specifier():
	assert split_package_specifier("@scope/pkg/sub/path") == ("@scope/pkg", "sub/path")
	assert split_package_specifier("lodash/fp") == ("lodash", "fp")
	assert split_package_specifier("react") == ("react", "")


def test_locator_walks_up_from_importing_dir(write_project):
	root = write_project(
		{
			"node_modules/outer/index.js": "",
			"app/node_modules/inner/index.js": "",
			"app/src/x.js": "",
		}
	)
	locator = NodePackageLocator(str(root))
	from_dir = os.path.join(str(root), "app", "src")
	assert locator.locate("inner", from_dir) == os.path.realpath(
		os.path.join(str(root), "app", "node_modules", "inner", "index.js")
	)
	assert locator.locate("outer", from_dir) == os.path.realpath(os.path.join(str(root), "node_modules", "outer", "index.js"))
	assert locator.locate("inner", str(root)) is None
