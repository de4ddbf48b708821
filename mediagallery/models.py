from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogModel(BaseModel):
    # Persisted documents use camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True)


class Comment(CatalogModel):
    name: str
    text: str
    created_at: str = Field(default_factory=utcnow, alias="createdAt")


class VideoEntry(CatalogModel):
    id: str
    title: str
    description: str
    video: str
    thumbnail: Optional[str] = None
    comments: List[Comment] = Field(default_factory=list)
    created_at: str = Field(default_factory=utcnow, alias="createdAt")

    def blob_references(self) -> List[str]:
        return [ref for ref in (self.video, self.thumbnail) if ref]


class ImageEntry(CatalogModel):
    filename: str
    original_name: str = Field(alias="originalName")
    size: int = Field(ge=0)
    uploaded_at: str = Field(default_factory=utcnow, alias="uploadedAt")


class PasteEntry(CatalogModel):
    id: str
    title: str
    code: str
    created_at: str = Field(default_factory=utcnow, alias="createdAt")


class GallerySettings(CatalogModel):
    dark_mode: bool = Field(default=True, alias="darkMode")


class CatalogDocument(CatalogModel):
    videos: List[VideoEntry] = Field(default_factory=list)
    images: List[ImageEntry] = Field(default_factory=list)
    pastes: List[PasteEntry] = Field(default_factory=list)
    settings: GallerySettings = Field(default_factory=GallerySettings)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "CatalogDocument":
        return cls.model_validate_json(raw)


def find_video_by_id(document: CatalogDocument, video_id: str) -> Optional[VideoEntry]:
    return next((video for video in document.videos if video.id == video_id), None)


def find_image_by_filename(document: CatalogDocument, filename: str) -> Optional[ImageEntry]:
    return next((image for image in document.images if image.filename == filename), None)


def find_paste_by_id(document: CatalogDocument, paste_id: str) -> Optional[PasteEntry]:
    return next((paste for paste in document.pastes if paste.id == paste_id), None)
