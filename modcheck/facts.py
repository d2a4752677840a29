from __future__ import annotations

import logging
import os
from typing import Callable, Dict, Optional

from .extract import extract_facts
from .model import ModuleFacts, SyntaxErrorInfo

logger = logging.getLogger(__name__)


Extractor = Callable[[str, str, str], ModuleFacts]


class FactCache:
	"""Per-run memo of ModuleFacts keyed by absolute path. Each path is extracted at most once."""

	def __init__(self, extractor: Optional[Extractor] = None) -> None:
		self.extractor = extractor or extract_facts
		self._facts: Dict[str, ModuleFacts] = {}

	def __contains__(self, path: str) -> bool:
		return os.path.abspath(path) in self._facts

	def __len__(self) -> int:
		return len(self._facts)

	def get(self, path: str) -> ModuleFacts:
		key = os.path.abspath(path)
		cached = self._facts.get(key)
		if cached is not None:
			return cached
		logger.debug("Extracting facts for %s", key)
		facts = self._extract(key)
		self._facts[key] = facts
		return facts

	def _extract(self, path: str) -> ModuleFacts:
		if not os.path.isfile(path):
			return ModuleFacts.not_found(path)
		try:
			with open(path, "r", encoding="utf-8") as fh:
				text = fh.read()
		except (OSError, UnicodeDecodeError) as e:
			return ModuleFacts(path=path, syntax_error=SyntaxErrorInfo(message=f"Could not read file: {e}"))
		_, ext = os.path.splitext(path)
		return self.extractor(text, path, ext)
