from __future__ import annotations


class ModcheckError(Exception):
	pass


class ResolutionError(ModcheckError):
	pass


class ModuleNotResolvable(ResolutionError):
	def __init__(self, specifier: str, from_dir: str) -> None:
		super().__init__(f"Cannot resolve module: {specifier} (from {from_dir})")
		self.specifier = specifier
		self.from_dir = from_dir


class FileNotFound(ResolutionError):
	def __init__(self, path: str) -> None:
		super().__init__(f"File not found: {path}")
		self.path = path


class ConfigLoadError(ModcheckError):
	def __init__(self, path: str, reason: str) -> None:
		super().__init__(f"Could not load {path}: {reason}")
		self.path = path
		self.reason = reason
