from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from imagehub.config import VariantSize
from imagehub.services.errors import DecodeError
from imagehub.services.image_utils import apply_exif_orientation, fit_within, normalize_mode

logger = logging.getLogger(__name__)


def generate_variant(image_bytes: bytes, max_size: VariantSize, image_format: str = "WEBP", quality: int = 80) -> bytes:
	"""
	Shrink `image_bytes` to fit inside `max_size` and re-encode as `image_format`.

	Aspect ratio is preserved and images smaller than the box keep their size.
	Each call decodes from its own buffer, so concurrent calls may share the
	same source bytes.
	"""
	try:
		img = Image.open(BytesIO(image_bytes))
		img.load()
	except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
		raise DecodeError(f"Not a supported raster image: {e}") from e

	with img:
		out = normalize_mode(apply_exif_orientation(img))
		target = fit_within(out.size, (max_size.width, max_size.height))
		if target != out.size:
			out = out.resize(target, Image.Resampling.LANCZOS)
		buf = BytesIO()
		out.save(buf, format=image_format, quality=quality)
	logger.debug(f"Generated {image_format} variant {target[0]}x{target[1]} within {max_size.width}x{max_size.height}")
	return buf.getvalue()
