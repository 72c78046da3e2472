import piexif
import pytest

from conftest import decode, encode_image
from imagehub.config import VariantSize
from imagehub.services.errors import DecodeError
from imagehub.services.image_utils import fit_within
from imagehub.services.variants import generate_variant


@pytest.mark.parametrize(
	"box,expected",
	[
		(VariantSize(640, 480), (640, 480)),
		(VariantSize(1024, 768), (1024, 768)),
		(VariantSize(1920, 1080), (1440, 1080)),
	],
)
def test_large_source_shrinks_to_fit(camera_jpeg, box, expected):
	out = decode(generate_variant(camera_jpeg, box))
	assert out.format == "WEBP"
	assert out.size == expected


def test_small_source_is_not_upscaled():
	out = decode(generate_variant(encode_image(100, 50), VariantSize(640, 480)))
	assert out.size == (100, 50)


def test_aspect_ratio_preserved_for_wide_image():
	out = decode(generate_variant(encode_image(3000, 1000), VariantSize(640, 480)))
	w, h = out.size
	assert w <= 640 and h <= 480
	assert w / h == pytest.approx(3.0, rel=0.01)


@pytest.mark.parametrize("fmt", ["PNG", "GIF", "BMP", "WEBP"])
def test_output_codec_is_fixed(fmt):
	out = decode(generate_variant(encode_image(120, 90, fmt=fmt), VariantSize(64, 48)))
	assert out.format == "WEBP"
	assert out.size == (64, 48)


def test_transparency_survives():
	out = decode(generate_variant(encode_image(80, 80, fmt="PNG", alpha=True), VariantSize(40, 40)))
	assert out.mode == "RGBA"


def test_exif_orientation_is_applied():
	exif = piexif.dump({"0th": {piexif.ImageIFD.Orientation: 6}})
	out = decode(generate_variant(encode_image(400, 200, exif=exif), VariantSize(640, 480)))
	assert out.size == (200, 400)


def test_jpeg_output_when_configured(plain_jpeg):
	out = decode(generate_variant(plain_jpeg, VariantSize(100, 100), image_format="JPEG", quality=70))
	assert out.format == "JPEG"
	assert out.size == (100, 75)


def test_undecodable_bytes_raise():
	with pytest.raises(DecodeError):
		generate_variant(b"GIF89a but not really", VariantSize(10, 10))


def test_same_source_reused(plain_jpeg):
	first = generate_variant(plain_jpeg, VariantSize(200, 200))
	second = generate_variant(plain_jpeg, VariantSize(200, 200))
	assert decode(first).size == decode(second).size == (200, 150)


@pytest.mark.parametrize(
	"size,box,expected",
	[
		((2000, 1500), (640, 480), (640, 480)),
		((100, 50), (640, 480), (100, 50)),
		((3000, 1000), (640, 480), (640, 213)),
		((1000, 3000), (640, 480), (160, 480)),
		((5000, 1), (100, 100), (100, 1)),
	],
)
def test_fit_within(size, box, expected):
	assert fit_within(size, box) == expected
