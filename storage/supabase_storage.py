"""Blob storage backed by a Supabase Storage bucket."""

from __future__ import annotations

import logging
import os
from typing import Optional

from supabase import AsyncClient

from storage.blob_store import ProgressCallback, StorageError

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Storage adapter for a Supabase bucket.

    The Python client uploads in a single request, so progress is reported
    once at the start and once on completion.
    """

    def __init__(self, client: AsyncClient, bucket: str | None = None) -> None:
        self.client = client
        self.bucket = bucket or os.getenv("SUPABASE_STORAGE_BUCKET", "golf-journal")

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        total = len(data)
        if on_progress:
            on_progress(0, total)
        bucket = self.client.storage.from_(self.bucket)
        try:
            await bucket.upload(
                path=path,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"},
            )
            url = await bucket.get_public_url(path)
        except Exception as exc:
            logger.warning("Upload of %s failed: %s", path, exc)
            raise StorageError(f"Storage upload failed: {exc}") from exc
        if on_progress:
            on_progress(total, total)
        return url

    async def delete(self, path: str) -> None:
        try:
            await self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            raise StorageError(f"Storage delete failed: {exc}") from exc
