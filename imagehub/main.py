import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from imagehub.config import Settings, get_settings
from imagehub.logging_config import setup_logging
from imagehub.routers.health import router as health_router
from imagehub.routers.images import router as images_router
from imagehub.services.errors import (
	DecodeError,
	ImageStoreError,
	InvalidInputError,
	NotFoundError,
)
from imagehub.services.image_store import ImageStore
from imagehub.services.storage import LocalImageStorage

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidInputError)
	@app.exception_handler(DecodeError)
	async def _bad_request(request: Request, exc: ImageStoreError):
		logger.warning(f"{request.method} {request.url.path}: {exc}")
		return JSONResponse(status_code=400, content={"detail": str(exc)})

	@app.exception_handler(NotFoundError)
	async def _not_found(request: Request, exc: NotFoundError):
		return JSONResponse(status_code=404, content={"detail": "Not Found"})

	@app.exception_handler(ImageStoreError)
	async def _server_error(request: Request, exc: ImageStoreError):
		# storage and corrupt-record failures: log details, answer opaquely
		logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc)
		return JSONResponse(
			status_code=500,
			content={"detail": "An error occurred while processing your request"},
		)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
	settings = settings or get_settings()
	setup_logging(settings)

	store = ImageStore(LocalImageStorage(settings.STORAGE_ROOT), settings.store_config())

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		purged = store.purge_incomplete()
		if purged:
			logger.info(f"Removed incomplete uploads on startup: {purged}")
		yield

	app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0", lifespan=lifespan)
	app.state.settings = settings
	app.state.image_store = store

	# CORS (adjust origins in production)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.CORS_ORIGINS,
		allow_credentials=False,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	_register_error_handlers(app)

	# Routers
	app.include_router(health_router)
	app.include_router(images_router)

	return app


app = create_app()


if __name__ == "__main__":
	# Local dev server: uvicorn imagehub.main:app --reload
	import uvicorn

	uvicorn.run("imagehub.main:app", host="0.0.0.0", port=8000, reload=True)
