from __future__ import annotations

from typing import Optional


class GalleryError(Exception):
    """Base for every recoverable, request-scoped failure of the gallery core."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(GalleryError):
    status_code = 400

    def __init__(self, detail: str, field: Optional[str] = None) -> None:
        super().__init__(detail)
        self.field = field


class UploadRejected(GalleryError):
    status_code = 400

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NotFound(GalleryError):
    status_code = 404

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind.capitalize()} not found.")
        self.kind = kind
        self.key = key


class PersistenceError(GalleryError):
    status_code = 500
