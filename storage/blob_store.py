"""Blob storage contract plus an in-memory implementation."""

from __future__ import annotations

import asyncio
import re
import time
from typing import Callable, Optional, Protocol

ProgressCallback = Callable[[int, int], None]

CHUNK_SIZE = 256 * 1024
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(Exception):
    """Raised when an upload, download or delete fails."""


def photo_path(uid: str, folder: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """users/{uid}/{folder}/{millis}_{filename}, with the filename sanitized."""
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    safe = _UNSAFE.sub("_", filename).strip("_") or "upload"
    return f"users/{uid}/{folder}/{stamp}_{safe}"


def progress_percent(transferred: int, total: int) -> float:
    return 100.0 if total == 0 else transferred / total * 100


class BlobStore(Protocol):
    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Upload bytes and return a retrievable URL."""
        ...

    async def delete(self, path: str) -> None: ...


class InMemoryBlobStore:
    """Keeps blobs in a dict; uploads in chunks so progress is observable."""

    def __init__(self, base_url: str = "memory://blobs", chunk_size: int = CHUNK_SIZE) -> None:
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size
        self._blobs: dict[str, tuple[bytes, str]] = {}

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        total = len(data)
        sent = 0
        while True:
            await asyncio.sleep(0)
            sent = min(sent + self.chunk_size, total)
            if on_progress:
                on_progress(sent, total)
            if sent >= total:
                break
        self._blobs[path] = (bytes(data), content_type)
        return f"{self.base_url}/{path}"

    def get(self, path: str) -> Optional[bytes]:
        blob = self._blobs.get(path)
        return blob[0] if blob else None

    async def delete(self, path: str) -> None:
        await asyncio.sleep(0)
        if self._blobs.pop(path, None) is None:
            raise StorageError(f"Blob {path} not found")
