from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, NamedTuple, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VariantSize(NamedTuple):
	width: int
	height: int


DEFAULT_VARIANTS: Mapping[str, VariantSize] = MappingProxyType({
	"phone": VariantSize(640, 480),
	"tablet": VariantSize(1024, 768),
	"desktop": VariantSize(1920, 1080),
})

DEFAULT_EXTENSIONS: FrozenSet[str] = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"})

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class StoreConfig:
	"""Process-wide, read-only settings handed to the ImageStore."""

	variants: Mapping[str, VariantSize] = field(default_factory=lambda: DEFAULT_VARIANTS)
	allowed_extensions: FrozenSet[str] = DEFAULT_EXTENSIONS
	max_upload_bytes: int = MAX_UPLOAD_BYTES
	variant_format: str = "WEBP"
	variant_extension: str = "webp"
	variant_content_type: str = "image/webp"
	variant_quality: int = 80
	max_workers: int = 3
	url_prefix: str = "/api/images"

	def __post_init__(self) -> None:
		if not self.variants:
			raise ValueError("At least one variant size must be configured")
		variants = {name: VariantSize(*size) for name, size in self.variants.items()}
		for name, size in variants.items():
			if size.width <= 0 or size.height <= 0:
				raise ValueError(f"Variant {name!r} has a non-positive bounding box")
		# freeze whatever mapping the caller passed in
		object.__setattr__(self, "variants", MappingProxyType(variants))
		object.__setattr__(self, "allowed_extensions", frozenset(e.lower() for e in self.allowed_extensions))


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_prefix="IMAGEHUB_", env_file=".env", extra="ignore")

	PROJECT_NAME: str = "ImageHub"
	ENVIRONMENT: str = "development"
	LOG_LEVEL: str = "INFO"
	CORS_ORIGINS: Union[str, List[str]] = "*"

	# Storage
	STORAGE_ROOT: str = "./storage"
	MIN_FREE_SPACE_RATIO: float = 0.10

	# Processing
	MAX_UPLOAD_BYTES: int = MAX_UPLOAD_BYTES
	VARIANT_QUALITY: int = 80
	VARIANT_WORKERS: int = 3

	@field_validator("CORS_ORIGINS", mode="before")
	@classmethod
	def _split_origins(cls, v):
		if isinstance(v, str):
			return [o.strip() for o in v.split(",") if o.strip()]
		return v

	def store_config(self) -> StoreConfig:
		return StoreConfig(
			max_upload_bytes=self.MAX_UPLOAD_BYTES,
			variant_quality=self.VARIANT_QUALITY,
			max_workers=self.VARIANT_WORKERS,
		)


@lru_cache
def get_settings() -> Settings:
	return Settings()
