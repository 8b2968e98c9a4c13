"""
Photo store for captured check-in images.

Only the returned reference is stored on attendance records.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Protocol

from shiftclock.core.config import settings

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class MediaStore(Protocol):
    async def save(self, data: bytes, content_type: str = "image/jpeg") -> str: ...

    async def delete(self, url: str) -> None: ...


class FilesystemMediaStore:
    """Writes images under ``MEDIA_DIR`` and returns their public URL."""

    def __init__(self, root: str | Path | None = None, url_prefix: str | None = None) -> None:
        self.root = Path(root or settings.MEDIA_DIR)
        self.url_prefix = (url_prefix or settings.MEDIA_URL_PREFIX).rstrip("/")

    async def save(self, data: bytes, content_type: str = "image/jpeg") -> str:
        name = f"{uuid.uuid4().hex}{_EXTENSIONS.get(content_type, '.bin')}"
        path = self.root / "captures" / name
        await asyncio.to_thread(self._write, path, data)
        logger.info("Stored capture %s (%d bytes)", name, len(data))
        return f"{self.url_prefix}/captures/{name}"

    async def delete(self, url: str) -> None:
        """Remove a capture stored by ``save``; unknown URLs are ignored."""
        relative = url.removeprefix(self.url_prefix).lstrip("/")
        path = (self.root / relative).resolve()
        if self.root.resolve() not in path.parents:
            logger.warning("Refusing to delete media outside %s: %s", self.root, url)
            return
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info("Removed capture %s", path.name)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
