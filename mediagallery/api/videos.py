from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, File, Form, UploadFile, status

from .. import models
from .dependencies import Gallery, to_incoming

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get("", response_model=List[models.VideoEntry])
async def list_videos(gallery: Gallery):
    return await gallery.list_videos()


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_video(
    gallery: Gallery,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
) -> dict[str, str]:
    video_id = await gallery.ingest_video(title, description, to_incoming(video), to_incoming(thumbnail))
    return {"id": video_id}


@router.get("/{video_id}", response_model=models.VideoEntry)
async def get_video(video_id: str, gallery: Gallery):
    return await gallery.get_video(video_id)


@router.post("/{video_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: str,
    gallery: Gallery,
    name: Optional[str] = Form(None),
    text: Optional[str] = Form(None),
) -> dict[str, str]:
    await gallery.add_comment(video_id, name, text)
    return {"status": "ok"}
