"""Document store over a single PostgreSQL JSONB table (see schema.sql)."""

import asyncpg
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from uuid import uuid4

from database.documents import (
    Document,
    apply_update,
    check_collection_path,
    split_document_path,
)
from database.exceptions import DatabaseError, NotFoundError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _backend_errors(operation: str, path: str):
    """Re-raise driver and network failures as DatabaseError."""
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.warning("Document %s failed for %s: %s", operation, path, e)
        raise DatabaseError(f"{operation} {path} failed: {e}") from e


class PostgresDocumentStore:
    """Async document CRUD backed by asyncpg."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        collection, doc_id = split_document_path(path)
        async with _backend_errors("get", path):
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT data FROM documents WHERE collection = $1 AND id = $2",
                    collection, doc_id,
                )
        return json.loads(row["data"]) if row else None

    async def query(
        self,
        collection: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]:
        collection = check_collection_path(collection)
        direction = "DESC" if descending else "ASC"
        # The field name is bound as a parameter; only the direction is inlined.
        order_clause = (
            f"ORDER BY data -> $2 {direction} NULLS LAST, id" if order_by else "ORDER BY id"
        )
        async with _backend_errors("query", collection):
            async with self._pool.acquire() as conn:
                if order_by:
                    rows = await conn.fetch(
                        f"SELECT id, data FROM documents WHERE collection = $1 "
                        f"{order_clause} LIMIT $3",
                        collection, order_by, limit,
                    )
                else:
                    rows = await conn.fetch(
                        f"SELECT id, data FROM documents WHERE collection = $1 "
                        f"{order_clause} LIMIT $2",
                        collection, limit,
                    )
        return [Document(id=r["id"], data=json.loads(r["data"])) for r in rows]

    # ================================================================
    # Write
    # ================================================================

    async def set(self, path: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        collection, doc_id = split_document_path(path)
        on_conflict = (
            "documents.data || EXCLUDED.data" if merge else "EXCLUDED.data"
        )
        async with _backend_errors("set", path):
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"""INSERT INTO documents (collection, id, data)
                        VALUES ($1, $2, $3::jsonb)
                        ON CONFLICT (collection, id)
                        DO UPDATE SET data = {on_conflict}, updated_at = NOW()""",
                    collection, doc_id, json.dumps(data),
                )

    async def create_if_absent(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert unless the document exists; return whatever is stored afterwards."""
        collection, doc_id = split_document_path(path)
        async with _backend_errors("create", path):
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """INSERT INTO documents (collection, id, data)
                       VALUES ($1, $2, $3::jsonb)
                       ON CONFLICT (collection, id) DO NOTHING""",
                    collection, doc_id, json.dumps(data),
                )
                row = await conn.fetchrow(
                    "SELECT data FROM documents WHERE collection = $1 AND id = $2",
                    collection, doc_id,
                )
        return json.loads(row["data"])

    async def update(
        self,
        path: str,
        fields: Optional[Dict[str, Any]] = None,
        *,
        increments: Optional[Dict[str, float]] = None,
    ) -> Dict[str, Any]:
        """Update an existing document under a row lock so increments are atomic."""
        collection, doc_id = split_document_path(path)
        async with _backend_errors("update", path):
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        """SELECT data FROM documents
                           WHERE collection = $1 AND id = $2 FOR UPDATE""",
                        collection, doc_id,
                    )
                    if row is None:
                        raise NotFoundError(f"Document {path} not found")
                    data = apply_update(json.loads(row["data"]), fields, increments)
                    await conn.execute(
                        """UPDATE documents SET data = $3::jsonb, updated_at = NOW()
                           WHERE collection = $1 AND id = $2""",
                        collection, doc_id, json.dumps(data),
                    )
        return data

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        collection = check_collection_path(collection)
        doc_id = uuid4().hex
        async with _backend_errors("add", collection):
            async with self._pool.acquire() as conn:
                await conn.execute(
                    "INSERT INTO documents (collection, id, data) VALUES ($1, $2, $3::jsonb)",
                    collection, doc_id, json.dumps(data),
                )
        return doc_id

    # ================================================================
    # Delete
    # ================================================================

    async def delete(self, path: str) -> bool:
        collection, doc_id = split_document_path(path)
        async with _backend_errors("delete", path):
            async with self._pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM documents WHERE collection = $1 AND id = $2",
                    collection, doc_id,
                )
        return result == "DELETE 1"

    async def delete_collection(self, collection: str) -> int:
        collection = check_collection_path(collection)
        async with _backend_errors("delete", collection):
            async with self._pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM documents WHERE collection = $1", collection
                )
        return int(result.split()[-1])
