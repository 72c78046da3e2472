from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from imagehub.dependencies import get_image_store
from imagehub.services.image_store import ImageStore
from imagehub.services.models import ImageRecord, UploadManifest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])


@router.post("", response_model=UploadManifest, summary="Upload an image and generate its variants")
async def upload(file: UploadFile = File(...), store: ImageStore = Depends(get_image_store)):
	data = await file.read()
	if not data:
		raise HTTPException(status_code=400, detail="No file uploaded")
	# resizing is CPU bound; keep it off the event loop
	return await asyncio.to_thread(store.upload, data, file.filename or "", file.content_type)


@router.get("/{image_id}/metadata", response_model=ImageRecord, summary="Get image metadata")
def metadata(image_id: str, store: ImageStore = Depends(get_image_store)):
	return store.get_metadata(image_id)


@router.get("/{image_id}/{variant}", summary="Get a resized variant")
def variant(image_id: str, variant: str, store: ImageStore = Depends(get_image_store)):
	data, content_type = store.get_variant(image_id, variant)
	return Response(content=data, media_type=content_type)


@router.delete("/{image_id}", summary="Delete an image and all its variants")
def delete(image_id: str, store: ImageStore = Depends(get_image_store)):
	if not store.delete_image(image_id):
		raise HTTPException(status_code=404, detail="Not Found")
	return {"id": image_id, "deleted": True}
