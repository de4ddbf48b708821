from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request, UploadFile

from ..service import GalleryService
from ..validation import IncomingUpload


def get_gallery(request: Request) -> GalleryService:
    return request.app.state.gallery


Gallery = Annotated[GalleryService, Depends(get_gallery)]


def to_incoming(upload: Optional[UploadFile]) -> Optional[IncomingUpload]:
    if upload is None:
        return None
    return IncomingUpload(
        filename=upload.filename or "",
        content_type=upload.content_type,
        stream=upload.file,
        size=upload.size,
    )
