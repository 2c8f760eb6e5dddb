"""CRUD operations for users/{uid}/rounds documents."""

from datetime import datetime, timezone
from typing import List, Optional

from models import Round
from database.converters import round_from_doc, round_to_doc
from database.documents import DocumentStore


def rounds_path(uid: str) -> str:
    return f"users/{uid}/rounds"


class RoundRepository:
    """Async CRUD for a user's rounds. Rounds are append-only."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_round(self, uid: str, round_id: str) -> Optional[Round]:
        doc = await self._store.get(f"{rounds_path(uid)}/{round_id}")
        return round_from_doc(round_id, doc) if doc is not None else None

    async def list_rounds(self, uid: str, limit: Optional[int] = None) -> List[Round]:
        """Rounds, most recent first."""
        docs = await self._store.query(
            rounds_path(uid), order_by="date", descending=True, limit=limit
        )
        return [round_from_doc(d.id, d.data) for d in docs]

    async def create_round(self, uid: str, round_obj: Round) -> Round:
        """Store a new round. Returns Round with store-generated id and timestamps."""
        now = datetime.now(timezone.utc)
        round_obj = round_obj.model_copy(update={
            "user_id": uid,
            "created_at": now,
            "updated_at": now,
        })
        round_id = await self._store.add(rounds_path(uid), round_to_doc(round_obj))
        return round_obj.model_copy(update={"id": round_id})

    async def delete_all_rounds(self, uid: str) -> int:
        """Delete every round for the user. Returns the number deleted."""
        return await self._store.delete_collection(rounds_path(uid))
