from __future__ import annotations

from fastapi import APIRouter

from .. import models
from .dependencies import Gallery

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=models.GallerySettings)
async def get_settings(gallery: Gallery):
    return await gallery.get_settings()


@router.post("/toggle-theme", response_model=models.GallerySettings)
async def toggle_theme(gallery: Gallery):
    return await gallery.toggle_dark_mode()
