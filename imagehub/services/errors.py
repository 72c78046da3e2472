"""Exceptions raised by the image store and its storage layout."""


class ImageStoreError(Exception):
	"""Base exception for image store errors."""
	pass


class InvalidInputError(ImageStoreError):
	"""Raised for a bad extension, oversized upload, unknown variant or unsafe identifier."""
	pass


class NotFoundError(ImageStoreError):
	"""Raised when the directory or file for an identifier does not exist."""
	pass


class DecodeError(ImageStoreError):
	"""Raised when uploaded bytes are not a supported raster image."""
	pass


class CorruptRecordError(ImageStoreError):
	"""Raised when a metadata file exists but cannot be parsed."""
	pass


class StorageIOError(ImageStoreError):
	"""Raised when the underlying filesystem fails (disk full, permission denied, ...)."""
	pass


class AlreadyExistsError(StorageIOError):
	"""Raised when a directory is created twice for the same identifier."""
	pass
