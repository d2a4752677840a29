import os

from modcheck.analyzer import Analyzer, classify_status
from modcheck.extract import extract_facts
from modcheck.model import Issue


def test_missing_named_import_is_an_error(write_project):
	root = write_project(
		{
			"a.ts": """
				import { missing } from './b';

				console.log(missing);
			""",
			"b.ts": "export const present = 1;\n",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "a.ts"))
	assert result.status == "error"
	named = [issue for issue in result.issues if issue.kind == "unresolved-named-import"]
	assert len(named) == 1
	assert named[0].name == "missing"
	assert named[0].line == 2
	assert result.imports[0].status == "warning"
	assert result.imports[0].issues == named


def test_missing_asset_is_unresolved(write_project):
	root = write_project({"a.js": "import './nonexistent.css';\n"})
	result = Analyzer(str(root)).analyze_file(str(root / "a.js"))
	assert result.status == "error"
	assert [issue.kind for issue in result.issues] == ["unresolved-import"]
	assert result.imports[0].status == "failed"
	assert result.imports[0].error.startswith("File not found:")


def test_tsconfig_alias_resolves_to_internal_file(write_project):
	root = write_project(
		{
			"tsconfig.json": '{"compilerOptions": {"baseUrl": ".", "paths": {"@app/*": ["src/app/*"]}}}',
			"src/app/widget.ts": "export const Widget = 1;\n",
			"src/main.ts": """
				import { Widget } from '@app/widget';

				export const run = () => Widget;
			""",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "src" / "main.ts"))
	record = result.imports[0]
	assert record.status == "resolved"
	assert record.is_external is False
	assert record.resolved_path == os.path.join(str(root), "src", "app", "widget.ts")
	assert result.status == "ok"


def test_export_all_from_broken_file(write_project):
	root = write_project(
		{
			"index.js": "export * from './utils';\n",
			"utils.js": "export function = broken\n",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "index.js"))
	assert [issue.kind for issue in result.issues] == ["error-in-re-exported-all-source"]
	assert result.status == "error"


def test_external_and_dynamic_imports(write_project):
	root = write_project(
		{
			"node_modules/lib/index.js": "module.exports = {};\n",
			"page.js": """
				import path from 'path';
				import lib from 'lib';
				import data from './data.json';

				export const load = () => [path, lib, data, import('./lazy'), import('./gone')];
			""",
			"data.json": "{}\n",
			"lazy.js": "export default 1;\n",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "page.js"))
	assert [record.status for record in result.imports] == ["external", "external", "external"]
	assert all(record.is_external for record in result.imports)
	assert all(record.attached_exports is None for record in result.imports)
	assert [record.status for record in result.dynamic_imports] == ["resolved", "failed"]
	assert [issue.kind for issue in result.issues] == ["unresolved-dynamic-import"]
	assert result.status == "warning"


def test_imported_file_with_syntax_error(write_project):
	root = write_project(
		{
			"a.js": "import { x } from './b';\nexport default x;\n",
			"b.js": "export const x = ;\n",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "a.js"))
	assert result.imports[0].status == "warning"
	assert [issue.kind for issue in result.issues] == ["error-in-imported-file"]
	assert result.status == "error"


def test_issue_order_and_unused_imports(write_project):
	root = write_project(
		{
			"a.js": """
				import { used, nope } from './b';
				import { idle } from './b';

				// TODO: remove
				export default used;
			""",
			"b.js": "export const used = 1, idle = 2;\n",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "a.js"))
	assert [issue.kind for issue in result.issues] == [
		"todo-comment",
		"unresolved-named-import",
		"unused-imports",
	]
	unused = result.issues[-1]
	assert unused.identifiers == ["nope", "idle"]
	assert unused.message == "Unused imports: nope, idle"
	assert result.unused_imports == ["nope", "idle"]


def test_missing_file_and_syntax_error_results(write_project):
	root = write_project({"bad.js": "export const a = 1;\nlet = ;\n"})
	analyzer = Analyzer(str(root))

	missing = analyzer.analyze_file(str(root / "ghost.js"))
	assert missing.status == "error"
	assert [(issue.kind, issue.line) for issue in missing.issues] == [("file-not-found", 1)]

	bad = analyzer.analyze_file(str(root / "bad.js"))
	assert bad.status == "error"
	assert bad.syntax_error is not None
	assert bad.issues == []


def test_directory_scan_survives_broken_files(write_project):
	root = write_project(
		{
			"src/ok.js": "export const ok = 1;\n",
			"src/bad.js": "const = ;\n",
			"src/uses.js": "import { ok } from './ok';\nconsole.log(ok);\n",
			"src/nested/deep.ts": "export {};\n",
			"node_modules/dep/index.js": "export const x = ;\n",
			"dist/out.js": "const = ;\n",
		}
	)
	summary = Analyzer(str(root)).analyze_directory(str(root))
	files = [os.path.relpath(result.file, str(root)) for result in summary.details]
	assert files == sorted(files)
	assert set(files) == {
		os.path.join("src", "bad.js"),
		os.path.join("src", "nested", "deep.ts"),
		os.path.join("src", "ok.js"),
		os.path.join("src", "uses.js"),
	}
	assert summary.total_files == 4
	assert summary.files_with_errors == 1
	assert summary.files_with_warnings == 1
	assert summary.total_imports == 1
	assert summary.total_console_usage == 1

	shallow = Analyzer(str(root)).analyze_directory(str(root / "src"), recursive=False)
	assert shallow.total_files == 3


def test_extractor_crash_becomes_error_result(write_project):
	root = write_project({"a.js": "export const a = 1;\n", "b.js": "export const b = 2;\n"})

	def flaky_extractor(source, path, ext):
		if path.endswith("a.js"):
			raise RuntimeError("boom")
		return extract_facts(source, path, ext)

	summary = Analyzer(str(root), extractor=flaky_extractor).analyze_directory(str(root))
	by_name = {os.path.basename(result.file): result for result in summary.details}
	assert by_name["a.js"].status == "error"
	assert by_name["a.js"].syntax_error.message == "boom"
	assert by_name["b.js"].status == "ok"


def test_summary_counters(write_project):
	root = write_project(
		{
			"a.jsx": """
				import { gone } from './b';
				import { extra } from './b';
				import './missing';

				debugger;
				export const A = () => <Unknown value={gone} />;
			""",
			"b.js": "export const extra = 1;\n// FIXME: later\n",
		}
	)
	summary = Analyzer(str(root)).analyze_directory(str(root))
	assert summary.total_files == 2
	assert summary.total_imports == 3
	# one failed import plus one unresolved named import
	assert summary.unresolved_imports == 2
	assert summary.unused_imports == 1
	assert summary.total_undeclared_identifiers == 1
	assert summary.total_critical_code_issues == 2
	assert summary.total_todo_fixme_comments == 1


def test_classify_status():
	assert classify_status([]) == "ok"
	assert classify_status([Issue(kind="console-usage", message="c")]) == "warning"
	assert classify_status([Issue(kind="unresolved-dynamic-import", message="d")]) == "warning"
	assert classify_status([Issue(kind="eval-usage", message="e")]) == "error"
	assert classify_status([], parse_failed=True) == "error"


def test_name_two_hops_away_is_unresolved(write_project):
	root = write_project(
		{
			"a.js": "import { deep } from './middle';\nexport default deep;\n",
			"middle.js": "export { other } from './leaf';\n",
			"leaf.js": "export const deep = 1, other = 2;\n",
		}
	)
	result = Analyzer(str(root)).analyze_file(str(root / "a.js"))
	assert [issue.kind for issue in result.issues] == ["unresolved-named-import"]
	assert result.issues[0].name == "deep"
	assert result.status == "error"


def test_recursive_build_config_does_not_stop_the_scan(write_project):
	root = write_project(
		{
			"webpack.config.js": "function build() {\n\treturn build();\n}\nmodule.exports = build();\n",
			"src/ok.js": "export const ok = 1;\n",
		}
	)
	analyzer = Analyzer(str(root))
	summary = analyzer.analyze_directory(str(root / "src"))
	assert summary.total_files == 1
	assert summary.details[0].status == "ok"
	assert len(analyzer.alias_table.warnings) == 1
