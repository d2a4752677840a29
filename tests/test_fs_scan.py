import os

from modcheck.fs_scan import discover_source_files, match_ignore


def test_match_ignore_patterns():
	assert match_ignore("node_modules", ["node_modules/**"], is_dir=True)
	assert match_ignore("packages/app/node_modules", ["node_modules/**"], is_dir=True)
	assert match_ignore("src/a.test.js", ["**/*.test.js"])
	assert match_ignore("a.test.js", ["**/*.test.js"])
	assert not match_ignore("src/a.js", ["**/*.test.js", "dist/**"])


def test_discover_respects_extensions_and_ignores(write_project):
	root = write_project(
		{
			"src/a.js": "",
			"src/B.JS": "",
			"src/c.ts": "",
			"src/c.test.ts": "",
			"src/readme.md": "",
			"build/out.js": "",
			"vendor/lib.js": "",
		}
	)
	files = discover_source_files(str(root), extensions=[".js", ".ts"], ignore=["build/**", "**/*.test.ts", "vendor"])
	rel = [os.path.relpath(path, str(root)) for path in files]
	assert rel == [os.path.join("src", "a.js"), os.path.join("src", "c.ts"), os.path.join("vendor", "lib.js")]


def test_ignore_relative_to_project_root(write_project):
	root = write_project({"app/generated/x.js": "", "app/y.js": ""})
	files = discover_source_files(str(root / "app"), ignore=["app/generated/**"], project_root=str(root))
	assert files == [str(root / "app" / "y.js")]
