from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Optional, Tuple

import piexif
from PIL import Image

from imagehub.services.image_utils import oriented_size
from imagehub.services.models import ImageRecord

logger = logging.getLogger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def _rational_to_float(x: Any) -> Optional[float]:
	if x is None:
		return None
	if isinstance(x, tuple) and len(x) == 2:
		num, den = x
		if not den:
			return None
		return float(num) / float(den)
	try:
		return float(x)
	except (TypeError, ValueError):
		return None


def _bytes_to_str(v: Any) -> Optional[str]:
	if v is None:
		return None
	if isinstance(v, bytes):
		v = v.decode("utf-8", errors="ignore")
	s = str(v).strip("\x00 \t\r\n")
	return s or None


def _parse_exif_datetime(v: Any) -> Optional[datetime]:
	s = _bytes_to_str(v)
	if not s:
		return None
	try:
		return datetime.strptime(s, EXIF_DATETIME_FORMAT)
	except ValueError:
		logger.debug(f"Unparsable EXIF timestamp: {s!r}")
		return None


def _dms_to_decimal(dms: Any, ref: Any) -> Optional[float]:
	"""Convert ((deg), (min), (sec)) rationals plus an N/S/E/W ref to signed decimal degrees."""
	if not dms or len(dms) != 3:
		return None
	parts = [_rational_to_float(p) for p in dms]
	if any(p is None for p in parts):
		return None
	decimal = parts[0] + parts[1] / 60.0 + parts[2] / 3600.0
	if _bytes_to_str(ref) in ("S", "W"):
		decimal = -decimal
	return decimal


def _gps_coordinates(gps: Dict[int, Any]) -> Tuple[Optional[float], Optional[float]]:
	lat_ref = gps.get(piexif.GPSIFD.GPSLatitudeRef)
	lon_ref = gps.get(piexif.GPSIFD.GPSLongitudeRef)
	if not lat_ref or not lon_ref:
		return None, None
	lat = _dms_to_decimal(gps.get(piexif.GPSIFD.GPSLatitude), lat_ref)
	lon = _dms_to_decimal(gps.get(piexif.GPSIFD.GPSLongitude), lon_ref)
	if lat is None or lon is None:
		return None, None
	return lat, lon


def _load_exif(image_bytes: bytes, img: Optional[Image.Image]) -> Dict[str, Any]:
	# piexif reads JPEG, TIFF and WebP containers directly; for the rest fall
	# back to the raw exif blob Pillow found while opening the image.
	try:
		return piexif.load(image_bytes)
	except Exception as e:
		logger.debug(f"piexif could not read container directly: {e}")
	raw = img.info.get("exif") if img is not None else None
	if not raw:
		return {}
	return piexif.load(raw)


def extract_metadata(image_bytes: bytes, original_file_name: str) -> ImageRecord:
	"""
	Best-effort descriptive metadata for an upload.

	Never raises: an image without (or with broken) EXIF yields a record whose
	optional fields are all None.
	"""
	fields: Dict[str, Any] = {}
	img: Optional[Image.Image] = None
	try:
		img = Image.open(BytesIO(image_bytes))
		fields["width"], fields["height"] = oriented_size(img)
	except Exception as e:
		logger.debug(f"Could not open {original_file_name} for metadata: {e}")

	try:
		ex = _load_exif(image_bytes, img)
		zeroth = ex.get("0th") or {}
		exif = ex.get("Exif") or {}
		gps = ex.get("GPS") or {}
		fields["camera_make"] = _bytes_to_str(zeroth.get(piexif.ImageIFD.Make))
		fields["camera_model"] = _bytes_to_str(zeroth.get(piexif.ImageIFD.Model))
		fields["capture_timestamp"] = _parse_exif_datetime(exif.get(piexif.ExifIFD.DateTimeOriginal))
		if gps:
			fields["latitude"], fields["longitude"] = _gps_coordinates(gps)
	except Exception as e:
		# If EXIF missing or unreadable, keep base info only
		logger.debug(f"No usable EXIF in {original_file_name}: {e}")
	finally:
		if img is not None:
			img.close()

	return ImageRecord(original_file_name=original_file_name, **fields)
