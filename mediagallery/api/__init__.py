from __future__ import annotations

from fastapi import FastAPI

from . import images, pastes, settings, videos


def register_routers(app: FastAPI) -> None:
    app.include_router(videos.router)
    app.include_router(images.router)
    app.include_router(pastes.router)
    app.include_router(settings.router)
