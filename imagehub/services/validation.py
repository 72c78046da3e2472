from __future__ import annotations

from pathlib import PurePath

from imagehub.config import StoreConfig


def file_extension(file_name: str) -> str:
	"""Lower-cased suffix including the dot, or "" when there is none."""
	return PurePath(file_name or "").suffix.lower()


def is_admissible(file_name: str, declared_size: int, config: StoreConfig) -> bool:
	if declared_size < 0 or declared_size > config.max_upload_bytes:
		return False
	return file_extension(file_name) in config.allowed_extensions
