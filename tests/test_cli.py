import json

import pytest

from cli import build_parser, main


@pytest.fixture
def project(write_project, monkeypatch):
	root = write_project(
		{
			"src/a.js": "import { b } from './b';\nexport default b;\n",
			"src/b.js": "export const b = 1;\n",
			"src/c.js": "import './missing';\n",
		}
	)
	monkeypatch.chdir(root)
	return root


def test_missing_target(project, capsys):
	assert main(["analyze"]) == 1
	assert "Target file or directory not specified" in capsys.readouterr().err


def test_nonexistent_target(project, capsys):
	assert main(["analyze", "nope"]) == 1
	assert "File or directory not found" in capsys.readouterr().err


def test_json_written_to_output_file(project):
	assert main(["analyze", "src", "-f", "json", "-o", "out.json"]) == 0
	data = json.loads((project / "out.json").read_text())
	assert data["total_files"] == 3
	assert data["files_with_errors"] == 1
	assert data["unresolved_imports"] == 1


def test_target_from_config_file(project, capsys):
	(project / ".analyzerconfig.json").write_text('{"target": "src/a.js", "format": "json"}')
	assert main(["analyze"]) == 0
	data = json.loads(capsys.readouterr().out)
	assert data["status"] == "ok"
	assert data["imports"][0]["resolved_path"] == str(project / "src" / "b.js")


def test_table_report_to_file(project):
	assert main(["analyze", "src", "--no-recursive", "-o", "report.txt"]) == 0
	text = (project / "report.txt").read_text()
	assert "Analysis summary" in text
	assert "Problematic files" in text


def test_parser_flags():
	args = build_parser().parse_args(["analyze", "src", "-e", ".ts, .tsx", "-i", "gen/**", "--no-recursive"])
	assert args.extensions == [".ts", ".tsx"]
	assert args.ignore == ["gen/**"]
	assert args.recursive is False
	assert build_parser().parse_args(["analyze"]).recursive is None
