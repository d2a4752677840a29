from textwrap import dedent

import pytest


@pytest.fixture
def write_project(tmp_path):
	"""Write {relative path: source} into tmp_path and return the project root."""

	def _write(files):
		for rel_path, text in files.items():
			p = tmp_path / rel_path
			p.parent.mkdir(parents=True, exist_ok=True)
			p.write_text(dedent(text))
		return tmp_path

	return _write
