from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Tuple

from imagehub.config import StoreConfig, VariantSize
from imagehub.services.errors import ImageStoreError, InvalidInputError
from imagehub.services.metadata import extract_metadata
from imagehub.services.models import ImageRecord, UploadManifest
from imagehub.services.storage import ImageStorage, check_safe_name
from imagehub.services.validation import file_extension, is_admissible
from imagehub.services.variants import generate_variant

logger = logging.getLogger(__name__)


class ImageStore:
	"""
	Upload, read and delete images kept as one directory per identifier.

	An upload writes the original, every configured variant and finally the
	metadata record. Only directories holding a metadata file are complete;
	anything else is left over from a failed upload and can be purged.
	"""

	def __init__(self, storage: ImageStorage, config: Optional[StoreConfig] = None):
		self.storage = storage
		self.config = config or StoreConfig()
		for name in self.config.variants:
			check_safe_name(name, "variant name")

	def upload(self, file_bytes: bytes, file_name: str, content_type: Optional[str] = None) -> UploadManifest:
		# 1) Validate before touching storage
		if not is_admissible(file_name, len(file_bytes), self.config):
			logger.warning(f"Rejected upload {file_name!r} ({len(file_bytes)} bytes)")
			raise InvalidInputError(
				f"Invalid file format or size: allowed extensions are "
				f"{', '.join(sorted(self.config.allowed_extensions))}, "
				f"maximum size is {self.config.max_upload_bytes} bytes"
			)

		# 2) Allocate id and directory
		image_id = uuid.uuid4().hex
		self.storage.create_directory(image_id)
		logger.info(f"Processing upload {file_name!r} as {image_id}")

		try:
			# 3) Extract metadata
			partial = extract_metadata(file_bytes, file_name)

			# 4) Save original
			original_path = self.storage.write_original(image_id, file_bytes, file_extension(file_name))

			# 5) Variants
			variant_paths = self._generate_variants(image_id, file_bytes)

			# 6) Metadata last
			record = partial.model_copy(update={
				"id": image_id,
				"file_size": len(file_bytes),
				"content_type": content_type,
				"original_path": original_path,
				"variant_paths": variant_paths,
			})
			self.storage.write_metadata(image_id, record)
		except ImageStoreError:
			self._discard(image_id)
			raise

		logger.info(f"Stored {image_id} with variants {sorted(variant_paths)}")
		return UploadManifest(
			id=image_id,
			original_file_name=file_name,
			variant_urls={name: self._url(image_id, name) for name in self.config.variants},
			metadata_url=self._url(image_id, "metadata"),
		)

	def _generate_variants(self, image_id: str, file_bytes: bytes) -> Dict[str, str]:
		"""Generate and write every variant concurrently; raise the first failure once all settle."""
		paths: Dict[str, str] = {}
		errors: List[Tuple[str, ImageStoreError]] = []
		workers = max(1, min(self.config.max_workers, len(self.config.variants)))
		with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="variant") as pool:
			futures = {
				pool.submit(self._make_variant, image_id, file_bytes, name, size): name
				for name, size in self.config.variants.items()
			}
			for fut in as_completed(futures):
				name = futures[fut]
				try:
					paths[name] = fut.result()
				except ImageStoreError as e:
					logger.warning(f"Variant {name} failed for {image_id}: {e}")
					errors.append((name, e))
		if errors:
			raise errors[0][1]
		return paths

	def _make_variant(self, image_id: str, file_bytes: bytes, name: str, size: VariantSize) -> str:
		data = generate_variant(file_bytes, size, self.config.variant_format, self.config.variant_quality)
		return self.storage.write_variant(image_id, name, data, self.config.variant_extension)

	def _discard(self, image_id: str) -> None:
		try:
			self.storage.delete(image_id)
		except ImageStoreError as e:
			logger.error(f"Could not clean up incomplete upload {image_id}: {e}")

	def _url(self, image_id: str, leaf: str) -> str:
		return f"{self.config.url_prefix}/{image_id}/{leaf}"

	def get_variant(self, image_id: str, variant: str) -> Tuple[bytes, str]:
		if variant not in self.config.variants:
			raise InvalidInputError(f"Invalid size parameter: {variant!r}")
		data = self.storage.read_variant(image_id, variant, self.config.variant_extension)
		return data, self.config.variant_content_type

	def get_metadata(self, image_id: str) -> ImageRecord:
		return self.storage.read_metadata(image_id)

	def delete_image(self, image_id: str) -> bool:
		return self.storage.delete(image_id)

	def purge_incomplete(self) -> List[str]:
		"""
		Remove directories left behind by uploads that never wrote metadata.

		An upload in flight looks the same as an abandoned one, so only call
		this while no uploads are running (the app does it at startup).
		"""
		removed = []
		for image_id in self.storage.list_ids():
			if not self.storage.is_complete(image_id) and self.storage.delete(image_id):
				removed.append(image_id)
		if removed:
			logger.info(f"Purged {len(removed)} incomplete uploads")
		return removed
