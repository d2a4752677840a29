import os

import pytest

from modcheck.config_modules import (
	UNKNOWN,
	NodeConfigModuleLoader,
	StaticConfigModuleLoader,
	load_jsonc,
)
from modcheck.errors import ConfigLoadError


def test_webpack_module_exports_with_path_resolve(write_project):
	root = write_project(
		{
			"webpack.config.js": """
				const path = require('path');
				const SRC = path.resolve(__dirname, 'src');

				module.exports = {
					mode: 'development',
					resolve: {
						alias: {
							'@': SRC,
							'@lib': path.join(__dirname, 'lib'),
							shared: './shared',
						},
					},
				};
			""",
		}
	)
	config = StaticConfigModuleLoader().load(str(root / "webpack.config.js"))
	alias = config["resolve"]["alias"]
	assert alias["@"] == os.path.join(str(root), "src")
	assert alias["@lib"] == os.path.join(str(root), "lib")
	assert alias["shared"] == "./shared"
	assert config["mode"] == "development"


def test_vite_define_config_with_file_url(write_project):
	root = write_project(
		{
			"vite.config.ts": """
				import { defineConfig } from 'vite';
				import { fileURLToPath, URL } from 'node:url';
				import react from '@vitejs/plugin-react';

				export default defineConfig({
					plugins: [react()],
					resolve: {
						alias: {
							'@': fileURLToPath(new URL('./src', import.meta.url)),
						},
					},
				});
			""",
		}
	)
	config = StaticConfigModuleLoader().load(str(root / "vite.config.ts"))
	assert config["resolve"]["alias"]["@"] == os.path.join(str(root), "src")
	assert config["plugins"] == [UNKNOWN]


def test_config_factory_and_spread(write_project):
	root = write_project(
		{
			"vite.config.mjs": """
				const base = { '~': '/abs/base' };

				export default ({ mode }) => {
					const extra = { [`@${'x'}`]: 'x-dir' };
					return { resolve: { alias: { ...base, ...extra, mode } } };
				};
			""",
		}
	)
	config = StaticConfigModuleLoader().load(str(root / "vite.config.mjs"))
	alias = config["resolve"]["alias"]
	assert alias["~"] == "/abs/base"
	assert alias["@x"] == "x-dir"
	assert alias["mode"] is UNKNOWN


def test_babel_json_config(write_project):
	root = write_project(
		{
			".babelrc": """
				{
					// comments are tolerated
					"plugins": [["module-resolver", { "alias": { "@c": "./components" } }],],
				}
			""",
		}
	)
	config = StaticConfigModuleLoader().load(str(root / ".babelrc"))
	assert config["plugins"][0][1]["alias"] == {"@c": "./components"}


def test_load_jsonc_rejects_garbage():
	assert load_jsonc('{"a": [1, 2,], /* c */ "b": null}') == {"a": [1, 2], "b": None}
	with pytest.raises(ConfigLoadError):
		load_jsonc("{ not json at all ::: }")


def test_static_loader_errors(write_project):
	root = write_project(
		{
			"no-export.js": "const a = 1;\n",
			"array.js": "module.exports = [1, 2];\n",
			"broken.js": "module.exports = {\n",
		}
	)
	loader = StaticConfigModuleLoader()
	for name in ("no-export.js", "array.js", "broken.js"):
		with pytest.raises(ConfigLoadError):
			loader.load(str(root / name))


def test_node_loader_without_node(write_project, tmp_path):
	root = write_project({"webpack.config.js": "module.exports = {};\n"})
	loader = NodeConfigModuleLoader(node_executable=str(tmp_path / "missing-node"))
	with pytest.raises(ConfigLoadError):
		loader.load(str(root / "webpack.config.js"))
