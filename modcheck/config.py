from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ValidationError, field_validator

from .fs_scan import DEFAULT_EXTENSIONS, DEFAULT_IGNORE

logger = logging.getLogger(__name__)


CONFIG_FILENAME = ".analyzerconfig.json"

OutputFormat = Literal["json", "table", "summary"]


class AnalyzerOptions(BaseModel):
	target: Optional[str] = None
	recursive: bool = True
	extensions: List[str] = list(DEFAULT_EXTENSIONS)
	ignore: List[str] = list(DEFAULT_IGNORE)
	format: OutputFormat = "table"
	output: Optional[str] = None
	allow_config_execution: bool = False

	@field_validator("extensions", "ignore", mode="before")
	@classmethod
	def _split_comma_list(cls, value: Any) -> Any:
		if isinstance(value, str):
			return [part.strip() for part in value.split(",") if part.strip()]
		return value


def load_file_config(cwd: str, filename: str = CONFIG_FILENAME) -> Dict[str, Any]:
	path = os.path.join(os.path.abspath(cwd), filename)
	if not os.path.isfile(path):
		return {}
	try:
		with open(path, "r", encoding="utf-8") as fh:
			data = json.load(fh)
	except (OSError, ValueError) as e:
		logger.warning("Could not parse %s at %s: %s", filename, path, e)
		return {}
	if not isinstance(data, dict):
		logger.warning("Ignoring %s at %s: top-level value is not an object", filename, path)
		return {}
	logger.info("Loaded configuration from %s", path)
	return data


def merge_options(file_config: Dict[str, Any], cli_overrides: Dict[str, Any]) -> AnalyzerOptions:
	"""CLI flags beat the config file, which beats the defaults. ``None`` means "flag not given"."""
	merged = AnalyzerOptions().model_dump()
	if file_config:
		try:
			from_file = AnalyzerOptions.model_validate(file_config)
		except ValidationError as e:
			logger.warning("Ignoring invalid %s: %s", CONFIG_FILENAME, e)
		else:
			given = set(file_config) & set(AnalyzerOptions.model_fields)
			merged.update(from_file.model_dump(include=given))
	merged.update({key: value for key, value in cli_overrides.items() if value is not None})
	return AnalyzerOptions.model_validate(merged)
