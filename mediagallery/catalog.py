"""
JSON-file persistence for the gallery catalog.

The whole catalog lives in one document that is loaded fresh for every
operation and written back in full after each mutation. A single
asyncio.Lock per store serializes mutations; every write goes to a temp file
that is atomically renamed over the canonical one, so concurrent readers see
either the old or the new document and never a truncated one.
"""

from __future__ import annotations

import asyncio
import logging
import os
import secrets
import tempfile
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple, TypeVar

import anyio.to_thread
from pydantic import ValidationError as SchemaError

from .errors import PersistenceError
from .models import CatalogDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadState(str, Enum):
    OK = "ok"
    MISSING = "missing"
    CORRUPT = "corrupt"


def new_entry_id(taken: Iterable[str]) -> str:
    """Timestamp-prefixed id with a random suffix, unique among ``taken``."""
    taken = set(taken)
    while True:
        candidate = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"
        if candidate not in taken:
            return candidate


class CatalogStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create and persist an empty catalog if none exists yet."""
        async with self._lock:
            _, state = await anyio.to_thread.run_sync(self._load)
            if state is LoadState.MISSING:
                await anyio.to_thread.run_sync(self._save, CatalogDocument())
                logger.info("Initialized empty catalog at %s", self.path)

    async def read(self) -> CatalogDocument:
        document, state = await anyio.to_thread.run_sync(self._load)
        if state is LoadState.MISSING:
            await self.initialize()
        return document

    async def mutate(self, fn: Callable[[CatalogDocument], T]) -> T:
        """
        Apply ``fn`` to a freshly loaded document and persist the result.

        ``fn`` edits the document in place and may return a value, which is
        passed through. If ``fn`` raises, nothing is written.
        """
        async with self._lock:
            document, state = await anyio.to_thread.run_sync(self._load)
            result = fn(document)
            if state is LoadState.CORRUPT:
                await anyio.to_thread.run_sync(self._quarantine)
            await anyio.to_thread.run_sync(self._save, document)
            return result

    def _load(self) -> Tuple[CatalogDocument, LoadState]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return CatalogDocument(), LoadState.MISSING
        except OSError as exc:
            logger.exception("Failed reading catalog %s", self.path)
            raise PersistenceError("Could not read catalog.") from exc

        try:
            return CatalogDocument.from_json(raw), LoadState.OK
        except (SchemaError, UnicodeDecodeError) as exc:
            logger.error("Catalog %s is unreadable, using an empty catalog: %s", self.path, exc)
            return CatalogDocument(), LoadState.CORRUPT

    def _save(self, document: CatalogDocument) -> None:
        payload = document.to_json()
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            logger.exception("Failed writing catalog %s", self.path)
            raise PersistenceError("Could not save catalog.") from exc

    def _quarantine(self) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError as exc:
            logger.exception("Failed moving corrupt catalog aside")
            raise PersistenceError("Could not preserve corrupt catalog.") from exc
        logger.error("Moved corrupt catalog %s to %s", self.path, target)
