"""
Pytest configuration and fixtures for imagehub tests
"""

import os
import tempfile
from io import BytesIO

import numpy as np
import piexif
import pytest
from PIL import Image

# Importing imagehub.main builds a module-level app; keep its storage out of the repo
os.environ.setdefault("IMAGEHUB_STORAGE_ROOT", tempfile.mkdtemp(prefix="imagehub-test-"))
os.environ.setdefault("IMAGEHUB_LOG_LEVEL", "DEBUG")

from imagehub.config import StoreConfig  # noqa: E402
from imagehub.services.image_store import ImageStore  # noqa: E402
from imagehub.services.storage import LocalImageStorage  # noqa: E402


def _gradient(width, height, channels=3):
	"""A smooth colour gradient so encoders have something real to compress."""
	x = np.linspace(0, 255, width, dtype=np.float32)[None, :]
	y = np.linspace(0, 255, height, dtype=np.float32)[:, None]
	planes = [np.broadcast_to(x, (height, width)), np.broadcast_to(y, (height, width)), (x + y) / 2.0]
	if channels == 4:
		planes.append(np.full((height, width), 128, dtype=np.float32))
	return np.clip(np.dstack(planes[:channels]), 0, 255).astype(np.uint8)


def encode_image(width, height, fmt="JPEG", exif=None, alpha=False):
	img = Image.fromarray(_gradient(width, height, 4 if alpha else 3))
	buf = BytesIO()
	kwargs = {}
	if exif is not None:
		kwargs["exif"] = exif
	img.save(buf, format=fmt, **kwargs)
	return buf.getvalue()


def camera_exif(make="Acme", model="X1", taken="2023:06:14 09:30:15", lat_ref="N", lon_ref="W"):
	exif = {
		"0th": {piexif.ImageIFD.Make: make, piexif.ImageIFD.Model: model},
		"Exif": {piexif.ExifIFD.DateTimeOriginal: taken},
		"GPS": {
			piexif.GPSIFD.GPSLatitudeRef: lat_ref,
			piexif.GPSIFD.GPSLatitude: ((52, 1), (31, 1), (1230, 100)),
			piexif.GPSIFD.GPSLongitudeRef: lon_ref,
			piexif.GPSIFD.GPSLongitude: ((0, 1), (7, 1), (3960, 100)),
		},
	}
	return piexif.dump(exif)


def decode(data):
	img = Image.open(BytesIO(data))
	img.load()
	return img


@pytest.fixture
def config():
	return StoreConfig()


@pytest.fixture
def storage(tmp_path):
	return LocalImageStorage(tmp_path / "storage")


@pytest.fixture
def store(storage, config):
	return ImageStore(storage, config)


@pytest.fixture
def plain_jpeg():
	return encode_image(800, 600)


@pytest.fixture
def camera_jpeg():
	return encode_image(2000, 1500, exif=camera_exif())
