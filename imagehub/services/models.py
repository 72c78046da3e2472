from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class ImageRecord(BaseModel):
	"""
	Metadata for one uploaded image, persisted as metadata.json in its directory.

	Paths are relative to the storage root so a record stays valid when the
	root moves. EXIF-derived fields are None when the source carries no value.
	"""

	model_config = ConfigDict(frozen=True)

	id: str = ""
	original_file_name: str
	file_size: int = 0
	content_type: Optional[str] = None
	upload_timestamp: datetime = Field(default_factory=_utcnow)

	capture_timestamp: Optional[datetime] = None
	camera_make: Optional[str] = None
	camera_model: Optional[str] = None
	latitude: Optional[float] = None
	longitude: Optional[float] = None

	width: Optional[int] = None
	height: Optional[int] = None

	original_path: Optional[str] = None
	variant_paths: Dict[str, str] = Field(default_factory=dict)

	@property
	def has_exif(self) -> bool:
		return any(
			v is not None
			for v in (self.capture_timestamp, self.camera_make, self.camera_model, self.latitude, self.longitude)
		)


class UploadManifest(BaseModel):
	id: str
	original_file_name: str
	variant_urls: Dict[str, str]
	metadata_url: str
