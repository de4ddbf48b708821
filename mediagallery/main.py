"""
JSON API over the gallery core.

Run with: `uvicorn mediagallery.main:app --reload`
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api import register_routers
from .config import Settings, get_settings
from .errors import GalleryError
from .service import GalleryService

log = logging.getLogger("mediagallery")


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    gallery = GalleryService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await gallery.startup()
        log.info("Serving catalog %s and uploads from %s", settings.catalog_path, settings.upload_path)
        yield

    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)
    app.state.gallery = gallery

    register_routers(app)
    app.mount(
        settings.PUBLIC_CONTENT_PATH,
        StaticFiles(directory=settings.upload_path, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("Request %s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error("Unhandled error: %s", exc, exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


app = create_app()
