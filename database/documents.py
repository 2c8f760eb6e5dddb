"""Document store abstraction plus an in-memory implementation.

Paths follow the hosted-backend convention: a collection path has an odd
number of segments (``users/abc/rounds``), a document path an even number
(``users/abc/rounds/r1``).
"""

import asyncio
import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from uuid import uuid4

from database.exceptions import InvalidPathError, NotFoundError


@dataclass(frozen=True)
class Document:
    id: str
    data: Dict[str, Any]


def _segments(path: str) -> List[str]:
    parts = path.strip("/").split("/")
    if not path or any(not p for p in parts):
        raise InvalidPathError(f"Malformed path: {path!r}")
    return parts


def split_document_path(path: str) -> Tuple[str, str]:
    """'users/u1/rounds/r1' -> ('users/u1/rounds', 'r1')."""
    parts = _segments(path)
    if len(parts) % 2:
        raise InvalidPathError(f"Not a document path: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


def check_collection_path(path: str) -> str:
    parts = _segments(path)
    if len(parts) % 2 == 0:
        raise InvalidPathError(f"Not a collection path: {path!r}")
    return "/".join(parts)


def apply_update(
    data: Dict[str, Any],
    fields: Optional[Dict[str, Any]],
    increments: Optional[Dict[str, float]],
) -> Dict[str, Any]:
    """Merge plain fields, then add numeric deltas (missing counts as 0)."""
    result = dict(data)
    result.update(fields or {})
    for name, delta in (increments or {}).items():
        result[name] = (result.get(name) or 0) + delta
    return result


def sort_documents(
    docs: List[Document], order_by: Optional[str], descending: bool
) -> List[Document]:
    """Order by a field; documents missing the field always sort last."""
    if not order_by:
        return sorted(docs, key=lambda d: d.id)
    present = [d for d in docs if d.data.get(order_by) is not None]
    missing = [d for d in docs if d.data.get(order_by) is None]
    present.sort(key=lambda d: d.data[order_by], reverse=descending)
    return present + missing


class DocumentStore(Protocol):
    """Async document CRUD used by the repositories."""

    async def get(self, path: str) -> Optional[Dict[str, Any]]: ...

    async def set(self, path: str, data: Dict[str, Any], *, merge: bool = False) -> None: ...

    async def create_if_absent(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(
        self,
        path: str,
        fields: Optional[Dict[str, Any]] = None,
        *,
        increments: Optional[Dict[str, float]] = None,
    ) -> Dict[str, Any]: ...

    async def delete(self, path: str) -> bool: ...

    async def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    async def query(
        self,
        collection: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]: ...

    async def delete_collection(self, collection: str) -> int: ...


class InMemoryDocumentStore:
    """Process-local document store for development and tests.

    Every operation yields to the event loop once before touching state so
    concurrent callers interleave the way they would against a remote store.
    Each operation is atomic once it resumes.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        collection, doc_id = split_document_path(path)
        await asyncio.sleep(0)
        data = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    async def set(self, path: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        collection, doc_id = split_document_path(path)
        await asyncio.sleep(0)
        docs = self._collections.setdefault(collection, {})
        if merge and doc_id in docs:
            docs[doc_id] = {**docs[doc_id], **copy.deepcopy(data)}
        else:
            docs[doc_id] = copy.deepcopy(data)

    async def create_if_absent(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        collection, doc_id = split_document_path(path)
        await asyncio.sleep(0)
        docs = self._collections.setdefault(collection, {})
        stored = docs.setdefault(doc_id, copy.deepcopy(data))
        return copy.deepcopy(stored)

    async def update(
        self,
        path: str,
        fields: Optional[Dict[str, Any]] = None,
        *,
        increments: Optional[Dict[str, float]] = None,
    ) -> Dict[str, Any]:
        collection, doc_id = split_document_path(path)
        await asyncio.sleep(0)
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise NotFoundError(f"Document {path} not found")
        docs[doc_id] = apply_update(docs[doc_id], copy.deepcopy(fields), increments)
        return copy.deepcopy(docs[doc_id])

    async def delete(self, path: str) -> bool:
        collection, doc_id = split_document_path(path)
        await asyncio.sleep(0)
        return self._collections.get(collection, {}).pop(doc_id, None) is not None

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        collection = check_collection_path(collection)
        await asyncio.sleep(0)
        doc_id = uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    async def query(
        self,
        collection: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]:
        collection = check_collection_path(collection)
        await asyncio.sleep(0)
        docs = [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collections.get(collection, {}).items()
        ]
        docs = sort_documents(docs, order_by, descending)
        return docs[:limit] if limit is not None else docs

    async def delete_collection(self, collection: str) -> int:
        collection = check_collection_path(collection)
        await asyncio.sleep(0)
        return len(self._collections.pop(collection, {}))
