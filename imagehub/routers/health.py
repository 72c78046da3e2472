from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from imagehub.config import Settings
from imagehub.dependencies import get_app_settings, get_image_store
from imagehub.services.image_store import ImageStore

router = APIRouter(tags=["health"])


@router.get("/health", summary="Storage health")
def health(store: ImageStore = Depends(get_image_store), settings: Settings = Depends(get_app_settings)):
	report = store.storage.check_health(settings.MIN_FREE_SPACE_RATIO)
	code = 503 if report["status"] == "Unhealthy" else 200
	return JSONResponse(status_code=code, content=report)
