from __future__ import annotations

from typing import Tuple

from PIL import ExifTags, Image

_ORIENTATION_TAG = next(k for k, v in ExifTags.TAGS.items() if v == "Orientation")


def exif_orientation(img: Image.Image) -> int:
	try:
		return int(img.getexif().get(_ORIENTATION_TAG, 1))
	except (TypeError, ValueError):
		return 1


def oriented_size(img: Image.Image) -> Tuple[int, int]:
	"""Displayed (w, h) without decoding pixels; orientations 5-8 swap the axes."""
	if exif_orientation(img) in (5, 6, 7, 8):
		return (img.height, img.width)
	return img.size


def apply_exif_orientation(img: Image.Image) -> Image.Image:
	orientation = exif_orientation(img)
	if orientation == 2:
		return img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
	if orientation == 3:
		return img.rotate(180, expand=True)
	if orientation == 4:
		return img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
	if orientation == 5:
		return img.transpose(Image.Transpose.FLIP_LEFT_RIGHT).rotate(90, expand=True)
	if orientation == 6:
		return img.rotate(270, expand=True)
	if orientation == 7:
		return img.transpose(Image.Transpose.FLIP_LEFT_RIGHT).rotate(270, expand=True)
	if orientation == 8:
		return img.rotate(90, expand=True)
	return img


def fit_within(size: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
	"""
	Largest (w, h) with the aspect ratio of `size` that fits inside `box`.
	Never larger than `size`; each side is at least 1px.
	"""
	w, h = size
	max_w, max_h = box
	scale = min(max_w / float(w), max_h / float(h), 1.0)
	if scale >= 1.0:
		return (w, h)
	return (max(1, round(w * scale)), max(1, round(h * scale)))


def normalize_mode(img: Image.Image) -> Image.Image:
	"""RGBA for anything carrying transparency, RGB otherwise."""
	if img.mode in ("RGB", "RGBA"):
		return img
	has_alpha = img.mode in ("LA", "PA") or (img.mode == "P" and "transparency" in img.info)
	return img.convert("RGBA" if has_alpha else "RGB")
