from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from mediagallery.config import Settings
from mediagallery.main import create_app
from mediagallery.service import GalleryService
from mediagallery.validation import IncomingUpload


class ZeroStream(io.RawIOBase):
    """Yields ``size`` zero bytes without holding them in memory."""

    def __init__(self, size: int) -> None:
        self.remaining = size

    def readable(self) -> bool:
        return True

    def read(self, n: int = -1) -> bytes:
        if n is None or n < 0:
            n = self.remaining
        n = min(n, self.remaining)
        self.remaining -= n
        return b"\x00" * n


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(DATA_DIR=tmp_path / "data")


@pytest.fixture()
def gallery(settings: Settings) -> GalleryService:
    return GalleryService.from_settings(settings)


@pytest.fixture()
def client(settings: Settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture()
def make_upload():
    def _make(
        filename: str,
        content_type: Optional[str],
        data: bytes = b"\x89PNG fake payload",
        size: Optional[int] = None,
    ) -> IncomingUpload:
        return IncomingUpload(filename=filename, content_type=content_type, stream=io.BytesIO(data), size=size)

    return _make


@pytest.fixture()
def zero_upload():
    def _make(filename: str, content_type: str, size: int) -> IncomingUpload:
        return IncomingUpload(filename=filename, content_type=content_type, stream=ZeroStream(size))

    return _make


@pytest.fixture()
def uploaded_files(settings: Settings):
    def _list() -> list[str]:
        directory = settings.upload_path
        if not directory.exists():
            return []
        return sorted(p.name for p in directory.iterdir())

    return _list
