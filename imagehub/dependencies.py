from fastapi import Request

from imagehub.config import Settings
from imagehub.services.image_store import ImageStore


def get_image_store(request: Request) -> ImageStore:
	return request.app.state.image_store


def get_app_settings(request: Request) -> Settings:
	return request.app.state.settings
