from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV = "MODCHECK_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_LEVELS = {
	"CRITICAL": logging.CRITICAL,
	"ERROR": logging.ERROR,
	"WARNING": logging.WARNING,
	"INFO": logging.INFO,
	"DEBUG": logging.DEBUG,
}

_handler: Optional[logging.Handler] = None


def _resolve_level(level: Optional[Union[str, int]]) -> int:
	if level is None:
		level = os.getenv(LOG_LEVEL_ENV) or "WARNING"
	if isinstance(level, int):
		return level
	name = str(level).strip().upper()
	try:
		return int(name)
	except ValueError:
		return _LEVELS.get(name, logging.WARNING)


def setup_logging(level: Optional[Union[str, int]] = None, stream=None) -> logging.Logger:
	"""Configure the ``modcheck`` logger: explicit level > $MODCHECK_LOG_LEVEL > WARNING.

	Safe to call more than once; the handler is installed only the first time.
	"""
	global _handler
	logger = logging.getLogger("modcheck")
	logger.setLevel(_resolve_level(level))
	if _handler is None:
		_handler = logging.StreamHandler(stream or sys.stderr)
		_handler.setFormatter(logging.Formatter(LOG_FORMAT))
		logger.addHandler(_handler)
	return logger
