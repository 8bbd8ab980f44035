"""
Attachment file store.

Uploaded documents are written to a flat directory (UPLOADS_DIR, default
./uploads) under a collision-avoiding name, and referenced from the
``documents`` table by path. The same directory is served read-only at
/uploads by the API.
"""

from __future__ import annotations

import logging
import os
import random
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Iterable

from services.errors import FileStoreError
from services.validation import Attachment

logger = logging.getLogger(__name__)

UPLOADS_DIR = os.getenv("UPLOADS_DIR", "./uploads")
UPLOADS_URL_PREFIX = "/uploads"

_FIELD_NAME = "documents"


class FileStore:
    """Filesystem directory holding attachment bytes."""

    def __init__(self, root: str | Path = UPLOADS_DIR) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _unique_name(self, original_name: str) -> str:
        suffix = Path(original_name or "").suffix
        stamp = int(time.time() * 1000)
        return f"{_FIELD_NAME}-{stamp}-{random.randint(0, 10**9)}{suffix}"

    def save(self, stream: BinaryIO, original_name: str, content_type: str | None) -> Attachment:
        """Copy an uploaded stream into the store and describe the stored file."""
        path = self.root / self._unique_name(original_name)
        try:
            with open(path, "wb") as out:
                shutil.copyfileobj(stream, out)
            size = path.stat().st_size
        except OSError as e:
            logger.exception("Failed to store attachment %r: %s", original_name, e)
            self.remove(str(path))
            raise FileStoreError(f"Could not store attachment {original_name!r}") from e

        logger.info("Stored attachment %r at %s (%d bytes)", original_name, path, size)
        return Attachment(
            original_name=original_name,
            content_type=content_type or "",
            size=size,
            storage_path=str(path),
        )

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def remove(self, path: str) -> bool:
        """Delete a stored file; failures are logged, never raised."""
        try:
            if os.path.exists(path):
                os.unlink(path)
                logger.info("Deleted attachment file: %s", path)
                return True
        except OSError as e:
            logger.error("Error deleting file %s: %s", path, e)
        return False

    def remove_all(self, paths: Iterable[str]) -> int:
        return sum(1 for p in paths if self.remove(p))

    def url_for(self, path: str) -> str:
        return f"{UPLOADS_URL_PREFIX}/{os.path.basename(path)}"
