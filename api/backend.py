"""Builds the backend adapters for the configured mode."""

import logging
from dataclasses import dataclass
from typing import Optional

from auth.memory_provider import InMemoryAuthProvider
from auth.provider import AuthProvider
from config import AppConfig
from database.connection import DatabasePool
from database.db_manager import DatabaseManager
from storage.blob_store import BlobStore, InMemoryBlobStore

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    auth: AuthProvider
    db: DatabaseManager
    storage: BlobStore
    pool: Optional[DatabasePool] = None

    async def health_check(self) -> bool:
        if self.pool is None:
            return True
        return await self.pool.health_check()

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()


async def build_backend(config: AppConfig) -> Backend:
    if not config.is_hosted:
        logger.info("Using in-memory backend")
        return Backend(
            auth=InMemoryAuthProvider(),
            db=DatabaseManager.in_memory(),
            storage=InMemoryBlobStore(),
        )

    from auth.supabase_provider import SupabaseAuthProvider
    from database.postgres_store import PostgresDocumentStore
    from storage.supabase_storage import SupabaseStorage

    pool = DatabasePool()
    await pool.initialize(dsn=config.database_url)
    await pool.ensure_schema()
    auth = await SupabaseAuthProvider.create(
        config.supabase_url,
        config.supabase_anon_key,
        config.supabase_service_role_key,
    )
    logger.info("Using hosted backend at %s", config.supabase_url)
    return Backend(
        auth=auth,
        db=DatabaseManager(PostgresDocumentStore(pool.pool)),
        storage=SupabaseStorage(auth.client, config.storage_bucket),
        pool=pool,
    )
