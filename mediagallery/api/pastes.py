from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Form, status
from fastapi.responses import PlainTextResponse

from .. import models
from .dependencies import Gallery

router = APIRouter(prefix="/pastes", tags=["Pastes"])


@router.get("", response_model=List[models.PasteEntry])
async def list_pastes(gallery: Gallery):
    return await gallery.list_pastes()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_paste(
    gallery: Gallery,
    title: Optional[str] = Form(None),
    code: Optional[str] = Form(None),
) -> dict[str, str]:
    paste_id = await gallery.ingest_paste(title, code)
    return {"id": paste_id}


@router.get("/{paste_id}", response_model=models.PasteEntry)
async def get_paste(paste_id: str, gallery: Gallery):
    return await gallery.get_paste(paste_id)


@router.get("/{paste_id}/raw", response_class=PlainTextResponse)
async def get_paste_raw(paste_id: str, gallery: Gallery) -> PlainTextResponse:
    return PlainTextResponse(await gallery.get_paste_raw(paste_id))
