from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import anyio.to_thread

from . import models
from .blob_store import LocalBlobStore, StoredBlob
from .catalog import CatalogStore, new_entry_id
from .config import Settings
from .errors import NotFound, ValidationError
from .validation import (
    IMAGE_POLICY,
    VIDEO_POLICY,
    IncomingUpload,
    UploadPolicy,
    is_present,
    policies_from_settings,
    validate_upload,
)

logger = logging.getLogger(__name__)


def require_text(value: Optional[str], field: str, message: str) -> str:
    if not value:
        raise ValidationError(message, field=field)
    return value


class GalleryService:
    """
    Coordinates upload validation, blob storage and the catalog document.

    Every ingestion validates all of its inputs before any durable side
    effect. Blobs written for an entry whose catalog append then fails are
    deleted again before the error propagates.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        blobs: LocalBlobStore,
        video_policy: UploadPolicy = VIDEO_POLICY,
        image_policy: UploadPolicy = IMAGE_POLICY,
    ) -> None:
        self.catalog = catalog
        self.blobs = blobs
        self.video_policy = video_policy
        self.image_policy = image_policy

    @classmethod
    def from_settings(cls, settings: Settings) -> "GalleryService":
        video_policy, image_policy = policies_from_settings(settings)
        return cls(
            catalog=CatalogStore(settings.catalog_path),
            blobs=LocalBlobStore(settings.upload_path),
            video_policy=video_policy,
            image_policy=image_policy,
        )

    async def startup(self) -> None:
        await anyio.to_thread.run_sync(self.blobs.ensure_root)
        await self.catalog.initialize()

    # ---- Listings and lookups ----

    async def list_videos(self) -> List[models.VideoEntry]:
        return (await self.catalog.read()).videos

    async def list_images(self) -> List[models.ImageEntry]:
        return (await self.catalog.read()).images

    async def list_pastes(self) -> List[models.PasteEntry]:
        return (await self.catalog.read()).pastes

    async def get_video(self, video_id: str) -> models.VideoEntry:
        video = models.find_video_by_id(await self.catalog.read(), video_id)
        if video is None:
            raise NotFound("video", video_id)
        return video

    async def get_image(self, filename: str) -> models.ImageEntry:
        image = models.find_image_by_filename(await self.catalog.read(), filename)
        if image is None:
            raise NotFound("image", filename)
        return image

    async def get_paste(self, paste_id: str) -> models.PasteEntry:
        paste = models.find_paste_by_id(await self.catalog.read(), paste_id)
        if paste is None:
            raise NotFound("paste", paste_id)
        return paste

    async def get_paste_raw(self, paste_id: str) -> str:
        return (await self.get_paste(paste_id)).code

    def blob_path(self, reference: str) -> Path:
        if not self.blobs.exists(reference):
            raise NotFound("file", reference)
        return self.blobs.path_for(reference)

    # ---- Ingestion ----

    async def ingest_video(
        self,
        title: Optional[str],
        description: Optional[str],
        video: Optional[IncomingUpload],
        thumbnail: Optional[IncomingUpload] = None,
    ) -> str:
        title = require_text(title, "title", "Title is required.")
        description = require_text(description, "description", "Description is required.")
        video = validate_upload(video, self.video_policy, field="video")
        if is_present(thumbnail):
            thumbnail = validate_upload(thumbnail, self.image_policy, field="thumbnail")
        else:
            thumbnail = None

        stored: List[StoredBlob] = []
        try:
            stored.append(await self._store(video, self.video_policy))
            if thumbnail is not None:
                stored.append(await self._store(thumbnail, self.image_policy))

            def append(document: models.CatalogDocument) -> str:
                entry = models.VideoEntry(
                    id=new_entry_id(v.id for v in document.videos),
                    title=title,
                    description=description,
                    video=stored[0].reference,
                    thumbnail=stored[1].reference if len(stored) > 1 else None,
                )
                document.videos.append(entry)
                return entry.id

            video_id = await self.catalog.mutate(append)
        except Exception:
            await self._discard(stored)
            raise

        logger.info("Ingested video %s", video_id)
        return video_id

    async def ingest_image(self, image: Optional[IncomingUpload]) -> str:
        image = validate_upload(image, self.image_policy, field="image")

        stored: List[StoredBlob] = []
        try:
            stored.append(await self._store(image, self.image_policy))
            blob = stored[0]

            def append(document: models.CatalogDocument) -> str:
                document.images.append(
                    models.ImageEntry(filename=blob.reference, original_name=image.filename, size=blob.size)
                )
                return blob.reference

            reference = await self.catalog.mutate(append)
        except Exception:
            await self._discard(stored)
            raise

        logger.info("Ingested image %s", reference)
        return reference

    async def ingest_paste(self, title: Optional[str], code: Optional[str]) -> str:
        title = require_text(title, "title", "Title and code are required.")
        code = require_text(code, "code", "Title and code are required.")

        def append(document: models.CatalogDocument) -> str:
            entry = models.PasteEntry(id=new_entry_id(p.id for p in document.pastes), title=title, code=code)
            document.pastes.append(entry)
            return entry.id

        paste_id = await self.catalog.mutate(append)
        logger.info("Ingested paste %s", paste_id)
        return paste_id

    # ---- Comments ----

    async def add_comment(self, video_id: str, name: Optional[str], text: Optional[str]) -> None:
        def append(document: models.CatalogDocument) -> None:
            video = models.find_video_by_id(document, video_id)
            if video is None:
                raise NotFound("video", video_id)
            require_text(name, "name", "Name and comment text are required.")
            require_text(text, "text", "Name and comment text are required.")
            video.comments.append(models.Comment(name=name, text=text))

        await self.catalog.mutate(append)

    # ---- Settings ----

    async def get_settings(self) -> models.GallerySettings:
        return (await self.catalog.read()).settings

    async def toggle_dark_mode(self) -> models.GallerySettings:
        def toggle(document: models.CatalogDocument) -> models.GallerySettings:
            document.settings.dark_mode = not document.settings.dark_mode
            return document.settings

        return await self.catalog.mutate(toggle)

    # ---- Internals ----

    async def _store(self, upload: IncomingUpload, policy: UploadPolicy) -> StoredBlob:
        return await anyio.to_thread.run_sync(self.blobs.store, upload, policy)

    async def _discard(self, stored: List[StoredBlob]) -> None:
        for blob in stored:
            logger.warning("Discarding blob %s after failed ingestion", blob.reference)
            await anyio.to_thread.run_sync(self.blobs.delete, blob.reference)
