from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List

from pydantic import ValidationError

from imagehub.services.errors import (
	AlreadyExistsError,
	CorruptRecordError,
	InvalidInputError,
	NotFoundError,
	StorageIOError,
)
from imagehub.services.models import ImageRecord

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
ORIGINAL_STEM = "original"

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def check_safe_name(value: str, kind: str = "identifier") -> str:
	"""Reject anything that could act as a path (separators, '..', empty)."""
	if not isinstance(value, str) or not _SAFE_NAME.match(value):
		raise InvalidInputError(f"Invalid {kind}: {value!r}")
	return value


class ImageStorage(ABC):
	"""Key-value-of-files store: id -> {original, variants, metadata}."""

	@abstractmethod
	def create_directory(self, image_id: str) -> None:
		"""
		Create an empty container for `image_id`.

		Raises:
			AlreadyExistsError: if one already exists.
		"""
		pass

	@abstractmethod
	def write_original(self, image_id: str, data: bytes, extension: str) -> str:
		"""Store the uploaded bytes; returns the path relative to the storage root."""
		pass

	@abstractmethod
	def write_variant(self, image_id: str, variant: str, data: bytes, extension: str) -> str:
		"""Store one resized variant; returns the path relative to the storage root."""
		pass

	@abstractmethod
	def write_metadata(self, image_id: str, record: ImageRecord) -> str:
		"""Store the metadata record. Written last; its presence marks the upload complete."""
		pass

	@abstractmethod
	def read_variant(self, image_id: str, variant: str, extension: str) -> bytes:
		pass

	@abstractmethod
	def read_metadata(self, image_id: str) -> ImageRecord:
		pass

	@abstractmethod
	def delete(self, image_id: str) -> bool:
		"""Remove everything stored for `image_id`. False if there was nothing."""
		pass

	@abstractmethod
	def list_ids(self) -> List[str]:
		pass

	@abstractmethod
	def is_complete(self, image_id: str) -> bool:
		pass

	@abstractmethod
	def check_health(self, min_free_ratio: float = 0.10) -> Dict[str, Any]:
		"""
		Report whether the backing store is usable.

		Returns:
			{"status": "Healthy" | "Degraded" | "Unhealthy", "description": str, "data": dict}
		"""
		pass


class LocalImageStorage(ImageStorage):
	"""Directory per image under a local root."""

	def __init__(self, root: str | os.PathLike):
		self.root = Path(root).resolve()
		try:
			self.root.mkdir(parents=True, exist_ok=True)
		except OSError as e:
			raise StorageIOError(f"Cannot create storage root {self.root}: {e}") from e
		logger.debug(f"LocalImageStorage initialized with root {self.root}")

	def _dir(self, image_id: str) -> Path:
		check_safe_name(image_id)
		path = (self.root / image_id).resolve()
		if path.parent != self.root:
			raise InvalidInputError(f"Invalid identifier: {image_id!r}")
		return path

	def _relative(self, path: Path) -> str:
		return str(PurePosixPath(*path.relative_to(self.root).parts))

	def _write_atomic(self, path: Path, data: bytes) -> str:
		if not path.parent.is_dir():
			raise NotFoundError(f"No storage directory for {path.parent.name}")
		tmp_name = None
		try:
			with tempfile.NamedTemporaryFile(dir=path.parent, prefix=f".{path.name}.", delete=False) as tmp:
				tmp_name = tmp.name
				tmp.write(data)
			os.replace(tmp_name, path)
		except OSError as e:
			logger.error(f"Failed to write {path}: {e}")
			if tmp_name is not None and os.path.exists(tmp_name):
				os.remove(tmp_name)
			raise StorageIOError(f"Failed to write {path.name}") from e
		logger.debug(f"Wrote {len(data)} bytes to {path}")
		return self._relative(path)

	def _read(self, path: Path) -> bytes:
		try:
			return path.read_bytes()
		except (FileNotFoundError, NotADirectoryError) as e:
			raise NotFoundError(f"{self._relative(path)} not found") from e
		except OSError as e:
			logger.error(f"Failed to read {path}: {e}")
			raise StorageIOError(f"Failed to read {path.name}") from e

	def create_directory(self, image_id: str) -> None:
		path = self._dir(image_id)
		try:
			path.mkdir()
		except FileExistsError as e:
			raise AlreadyExistsError(f"Directory for {image_id} already exists") from e
		except OSError as e:
			logger.error(f"Failed to create {path}: {e}")
			raise StorageIOError(f"Failed to create directory for {image_id}") from e

	def write_original(self, image_id: str, data: bytes, extension: str) -> str:
		return self._write_atomic(self._dir(image_id) / f"{ORIGINAL_STEM}{extension.lower()}", data)

	def write_variant(self, image_id: str, variant: str, data: bytes, extension: str) -> str:
		check_safe_name(variant, "variant name")
		return self._write_atomic(self._dir(image_id) / f"{variant}.{extension}", data)

	def write_metadata(self, image_id: str, record: ImageRecord) -> str:
		payload = record.model_dump_json(indent=2).encode("utf-8")
		return self._write_atomic(self._dir(image_id) / METADATA_FILE, payload)

	def read_variant(self, image_id: str, variant: str, extension: str) -> bytes:
		check_safe_name(variant, "variant name")
		return self._read(self._dir(image_id) / f"{variant}.{extension}")

	def read_metadata(self, image_id: str) -> ImageRecord:
		raw = self._read(self._dir(image_id) / METADATA_FILE)
		try:
			return ImageRecord.model_validate_json(raw)
		except ValidationError as e:
			logger.error(f"Corrupt metadata for {image_id}: {e}")
			raise CorruptRecordError(f"Metadata for {image_id} is unreadable") from e

	def delete(self, image_id: str) -> bool:
		path = self._dir(image_id)
		if not path.is_dir():
			logger.debug(f"Nothing to delete for {image_id}")
			return False
		try:
			shutil.rmtree(path)
		except FileNotFoundError:
			# lost a race with another delete
			return False
		except OSError as e:
			logger.error(f"Failed to delete {path}: {e}")
			raise StorageIOError(f"Failed to delete {image_id}") from e
		logger.info(f"Deleted image directory {path}")
		return True

	def list_ids(self) -> List[str]:
		try:
			return sorted(p.name for p in self.root.iterdir() if p.is_dir() and _SAFE_NAME.match(p.name))
		except OSError as e:
			raise StorageIOError(f"Failed to list {self.root}") from e

	def is_complete(self, image_id: str) -> bool:
		return (self._dir(image_id) / METADATA_FILE).is_file()

	def check_health(self, min_free_ratio: float = 0.10) -> Dict[str, Any]:
		data: Dict[str, Any] = {"storage_path": str(self.root)}
		if not self.root.is_dir():
			return {"status": "Unhealthy", "description": "Storage directory does not exist", "data": data}
		try:
			with tempfile.NamedTemporaryFile(dir=self.root, prefix=".healthcheck.") as probe:
				probe.write(b"ok")
			usage = shutil.disk_usage(self.root)
		except OSError as e:
			logger.warning(f"Storage health check failed: {e}")
			return {"status": "Unhealthy", "description": "Storage check failed", "data": data}
		ratio = usage.free / usage.total if usage.total else 0.0
		data.update({"free_space": usage.free, "total_space": usage.total, "free_space_ratio": ratio})
		if ratio < min_free_ratio:
			return {"status": "Degraded", "description": "Low disk space", "data": data}
		return {"status": "Healthy", "description": "Storage is healthy", "data": data}
