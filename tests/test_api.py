from fastapi.testclient import TestClient

from api import create_app


def _client():
	return TestClient(create_app())


def test_analyze_directory(write_project):
	root = write_project(
		{
			"src/a.ts": "import { b } from './b';\nexport const a = b;\n",
			"src/b.ts": "export const b = 1;\n",
			"other/c.ts": "import './missing';\n",
		}
	)
	res = _client().post("/analyze", json={"root_path": str(root), "target": "src"})
	assert res.status_code == 200
	body = res.json()
	assert body["total_files"] == 2
	assert body["files_with_errors"] == 0
	assert len(body["details"]) == 2


def test_analyze_file(write_project):
	root = write_project({"a.js": "import { nope } from './b';\nexport default nope;\n", "b.js": "export const b = 1;\n"})
	res = _client().post("/analyze/file", json={"root_path": str(root), "target": "a.js"})
	assert res.status_code == 200
	body = res.json()
	assert body["status"] == "error"
	assert body["issues"][0]["kind"] == "unresolved-named-import"
	assert "attached_exports" not in body["imports"][0]


def test_bad_paths_are_rejected(tmp_path):
	client = _client()
	assert client.post("/analyze", json={"root_path": str(tmp_path / "missing")}).status_code == 400
	assert client.post("/analyze/file", json={"root_path": str(tmp_path), "target": "ghost.js"}).status_code == 400
