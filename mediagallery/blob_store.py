from __future__ import annotations

import logging
import os
import random
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from .errors import PersistenceError, UploadRejected
from .validation import IncomingUpload, UploadPolicy

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
TEMP_PREFIX = ".upload-"


@dataclass(frozen=True)
class StoredBlob:
    reference: str
    size: int


class LocalBlobStore:
    """
    Stores uploaded bytes in one content directory under generated names.

    Bytes are streamed into a hidden temp file first and only linked to their
    public name once complete, so readers never see a partial blob and an
    existing file is never overwritten.
    """

    def __init__(self, root: Path, max_name_attempts: int = 5) -> None:
        self.root = Path(root)
        self.max_name_attempts = max_name_attempts

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_name(extension: str) -> str:
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return unique_suffix + extension

    def store(self, upload: IncomingUpload, policy: UploadPolicy) -> StoredBlob:
        self.ensure_root()
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".part", dir=self.root)
        except OSError as exc:
            raise PersistenceError(f"Could not store {policy.category} file.") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                size = self._copy(upload.stream, out, policy)
                out.flush()
                os.fsync(out.fileno())
            reference = self._commit(tmp_path, upload.extension)
        except UploadRejected:
            logger.warning("Discarded oversized %s upload %r", policy.category, upload.filename)
            raise
        except OSError as exc:
            logger.exception("Failed writing %s upload %r", policy.category, upload.filename)
            raise PersistenceError(f"Could not store {policy.category} file.") from exc
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.info("Stored %s blob %s (%s bytes)", policy.category, reference, size)
        return StoredBlob(reference=reference, size=size)

    def _copy(self, source: BinaryIO, out: BinaryIO, policy: UploadPolicy) -> int:
        written = 0
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                return written
            written += len(chunk)
            if written > policy.max_bytes:
                raise UploadRejected(
                    f"File too large: {policy.category} uploads are limited to {policy.describe_limit()}."
                )
            out.write(chunk)

    def _commit(self, tmp_path: Path, extension: str) -> str:
        for _ in range(self.max_name_attempts):
            reference = self.generate_name(extension)
            try:
                # link() fails on an existing target, unlike rename().
                os.link(tmp_path, self.root / reference)
            except FileExistsError:
                continue
            return reference
        raise PersistenceError("Could not allocate a unique blob name.")

    def path_for(self, reference: str) -> Optional[Path]:
        if not reference or reference.startswith(".") or "/" in reference or "\\" in reference:
            return None
        return self.root / reference

    def exists(self, reference: str) -> bool:
        path = self.path_for(reference)
        return path is not None and path.is_file()

    def delete(self, reference: str) -> None:
        path = self.path_for(reference)
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Failed removing blob %s", reference)
            return
        logger.info("Removed blob %s", reference)
