from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, File, UploadFile, status

from .. import models
from .dependencies import Gallery, to_incoming

router = APIRouter(prefix="/images", tags=["Images"])


@router.get("", response_model=List[models.ImageEntry])
async def list_images(gallery: Gallery):
    return await gallery.list_images()


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_image(gallery: Gallery, image: Optional[UploadFile] = File(None)) -> dict[str, str]:
    filename = await gallery.ingest_image(to_incoming(image))
    return {"filename": filename}


@router.get("/{filename}", response_model=models.ImageEntry)
async def get_image(filename: str, gallery: Gallery):
    return await gallery.get_image(filename)
