from modcheck.config import AnalyzerOptions, load_file_config, merge_options


def test_defaults():
	options = AnalyzerOptions()
	assert options.recursive is True
	assert options.extensions == [".js", ".jsx", ".ts", ".tsx", ".vue"]
	assert options.ignore == ["node_modules/**", "dist/**", "build/**", ".git/**"]
	assert options.format == "table"
	assert options.allow_config_execution is False


def test_cli_beats_file_beats_defaults(write_project):
	root = write_project(
		{".analyzerconfig.json": '{"target": "src", "recursive": false, "format": "summary", "extensions": ".ts,.tsx"}'}
	)
	file_config = load_file_config(str(root))
	options = merge_options(file_config, {"format": "json", "recursive": None, "target": None})
	assert options.target == "src"
	assert options.recursive is False
	assert options.format == "json"
	assert options.extensions == [".ts", ".tsx"]
	assert options.ignore == AnalyzerOptions().ignore


def test_unparsable_config_is_ignored(write_project, caplog):
	root = write_project({".analyzerconfig.json": "{ nope"})
	with caplog.at_level("WARNING", logger="modcheck"):
		assert load_file_config(str(root)) == {}
	assert "Could not parse" in caplog.text


def test_invalid_values_fall_back_to_defaults(caplog):
	with caplog.at_level("WARNING", logger="modcheck"):
		options = merge_options({"format": "xml"}, {"target": "x"})
	assert options.format == "table"
	assert options.target == "x"
	assert "Ignoring invalid" in caplog.text


def test_missing_config_file(tmp_path):
	assert load_file_config(str(tmp_path)) == {}
