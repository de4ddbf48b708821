"""
Upload validation for the gallery.

Checks the declared extension AND the declared content type of an upload
against a per-category policy, plus the byte ceiling. File headers are not
inspected; this is advisory validation of what the client declared.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import BinaryIO, FrozenSet, Optional

from .config import MIB, Settings
from .errors import UploadRejected, ValidationError


@dataclass(frozen=True)
class UploadPolicy:
    category: str
    extensions: FrozenSet[str]
    content_types: FrozenSet[str]
    max_bytes: int

    def describe_limit(self) -> str:
        return f"{self.max_bytes // MIB}MB" if self.max_bytes % MIB == 0 else f"{self.max_bytes} bytes"


VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mov"})
VIDEO_CONTENT_TYPES = frozenset({"video/mp4", "video/webm", "video/quicktime"})
IMAGE_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif"})
IMAGE_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif"})

VIDEO_POLICY = UploadPolicy("video", VIDEO_EXTENSIONS, VIDEO_CONTENT_TYPES, 100 * MIB)
IMAGE_POLICY = UploadPolicy("image", IMAGE_EXTENSIONS, IMAGE_CONTENT_TYPES, 20 * MIB)


def policies_from_settings(settings: Settings) -> tuple[UploadPolicy, UploadPolicy]:
    video = UploadPolicy("video", VIDEO_EXTENSIONS, VIDEO_CONTENT_TYPES, settings.MAX_VIDEO_BYTES)
    image = UploadPolicy("image", IMAGE_EXTENSIONS, IMAGE_CONTENT_TYPES, settings.MAX_IMAGE_BYTES)
    return video, image


@dataclass
class IncomingUpload:
    """A file as declared by the client: name, content type and a readable stream."""

    filename: str
    content_type: Optional[str]
    stream: BinaryIO
    size: Optional[int] = None

    @property
    def extension(self) -> str:
        return PurePath(self.filename).suffix


def is_present(upload: Optional[IncomingUpload]) -> bool:
    # Browsers submit an empty part with no filename for untouched file inputs.
    return upload is not None and bool(upload.filename)


def normalize_content_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def validate_upload(upload: Optional[IncomingUpload], policy: UploadPolicy, field: str) -> IncomingUpload:
    if not is_present(upload):
        raise ValidationError(f"{policy.category.capitalize()} file is required.", field=field)

    extension_ok = upload.extension.lower() in policy.extensions
    content_type_ok = normalize_content_type(upload.content_type) in policy.content_types
    if not (extension_ok and content_type_ok):
        raise UploadRejected(f"Only {policy.category} files are allowed!")

    if upload.size is not None and upload.size > policy.max_bytes:
        raise UploadRejected(f"File too large: {policy.category} uploads are limited to {policy.describe_limit()}.")
    return upload
