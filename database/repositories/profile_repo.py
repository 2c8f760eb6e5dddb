"""CRUD operations for users/{uid} profile documents."""

from datetime import date
from typing import Any, Dict, Optional

from models import Profile
from database.converters import (
    profile_changes_to_doc,
    profile_from_doc,
    profile_to_doc,
)
from database.documents import DocumentStore


def profile_path(uid: str) -> str:
    return f"users/{uid}"


class ProfileRepository:
    """Async CRUD for profiles."""

    def __init__(self, store: DocumentStore):
        self._store = store

    # ================================================================
    # Read
    # ================================================================

    async def get_profile(self, uid: str) -> Optional[Profile]:
        """Get a profile by identity id."""
        doc = await self._store.get(profile_path(uid))
        return profile_from_doc(uid, doc) if doc is not None else None

    # ================================================================
    # Create
    # ================================================================

    async def create_profile_if_absent(self, profile: Profile) -> Profile:
        """Create the profile unless one exists. Returns the stored profile.

        An existing document is never overwritten, so concurrent first
        sign-ins cannot reset counters.
        """
        doc = await self._store.create_if_absent(
            profile_path(profile.id), profile_to_doc(profile)
        )
        return profile_from_doc(profile.id, doc)

    # ================================================================
    # Update
    # ================================================================

    async def merge_profile(self, uid: str, changes: Dict[str, Any]) -> None:
        """Merge-write only the given fields."""
        if not changes:
            return
        await self._store.set(
            profile_path(uid), profile_changes_to_doc(changes), merge=True
        )

    async def record_round(self, uid: str, played_on: date) -> Profile:
        """Bump totalRounds and move lastPlayedDate forward if needed."""
        doc = await self._store.update(profile_path(uid), increments={"totalRounds": 1})
        last = doc.get("lastPlayedDate")
        if last is None or last < played_on.isoformat():
            doc = await self._store.update(
                profile_path(uid), {"lastPlayedDate": played_on.isoformat()}
            )
        return profile_from_doc(uid, doc)

    async def adjust_course_count(self, uid: str, delta: int) -> Profile:
        """Atomic adjustment of totalCourses."""
        doc = await self._store.update(profile_path(uid), increments={"totalCourses": delta})
        return profile_from_doc(uid, doc)

    async def set_most_played_course(self, uid: str, course_id: Optional[str]) -> None:
        await self._store.update(profile_path(uid), {"mostPlayedCourseId": course_id})

    # ================================================================
    # Delete
    # ================================================================

    async def delete_profile(self, uid: str) -> bool:
        """Delete the profile document. Returns True if it existed."""
        return await self._store.delete(profile_path(uid))
