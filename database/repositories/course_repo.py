"""CRUD operations for users/{uid}/coursesPlayed documents."""

from datetime import date
from typing import List, Optional

from models import Course
from database.converters import course_from_doc, course_to_doc
from database.documents import DocumentStore
from database.exceptions import NotFoundError

MIN_SEARCH_LENGTH = 2


def courses_path(uid: str) -> str:
    return f"users/{uid}/coursesPlayed"


def course_path(uid: str, course_id: str) -> str:
    return f"{courses_path(uid)}/{course_id}"


class CourseRepository:
    """Async CRUD for a user's courses."""

    def __init__(self, store: DocumentStore):
        self._store = store

    # ================================================================
    # Read
    # ================================================================

    async def get_course(self, uid: str, course_id: str) -> Optional[Course]:
        doc = await self._store.get(course_path(uid, course_id))
        return course_from_doc(course_id, doc) if doc is not None else None

    async def list_courses(self, uid: str, limit: Optional[int] = None) -> List[Course]:
        """Courses ordered by most recently played; never-played courses last."""
        docs = await self._store.query(
            courses_path(uid), order_by="lastPlayed", descending=True, limit=limit
        )
        return [course_from_doc(d.id, d.data) for d in docs]

    async def search_courses(self, uid: str, text: str) -> List[Course]:
        """Case-insensitive name/location search over the user's courses."""
        text = text.strip()
        if len(text) < MIN_SEARCH_LENGTH:
            return []
        return [c for c in await self.list_courses(uid) if c.matches(text)]

    # ================================================================
    # Create
    # ================================================================

    async def create_course(self, uid: str, course: Course) -> Course:
        """Create a course. Returns Course with store-generated id."""
        course = course.model_copy(update={
            "added_by_id": course.added_by_id or uid,
            "added_on": course.added_on or date.today(),
        })
        course_id = await self._store.add(courses_path(uid), course_to_doc(course))
        return course.model_copy(update={"id": course_id})

    # ================================================================
    # Update
    # ================================================================

    async def update_course(self, uid: str, course_id: str, **fields) -> Course:
        """Update editable course fields (name, location, address, coordinates, country, state, rating)."""
        allowed = {"name", "location", "address", "latitude", "longitude", "country", "state", "rating"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        current = await self.get_course(uid, course_id)
        if current is None:
            raise NotFoundError(f"Course {course_id} not found")
        if not updates:
            return current

        # Validate through the model before anything is written
        updated = Course.model_validate({**current.model_dump(), **updates})
        doc = course_to_doc(updated)
        changed = {k: v for k, v in doc.items() if k not in ("timesPlayed", "lastPlayed")}
        await self._store.update(course_path(uid, course_id), changed)
        return updated

    async def record_play(self, uid: str, course_id: str, played_on: date) -> Course:
        """Bump timesPlayed and move lastPlayed forward if needed."""
        path = course_path(uid, course_id)
        doc = await self._store.update(path, increments={"timesPlayed": 1})
        last = doc.get("lastPlayed")
        if last is None or last < played_on.isoformat():
            doc = await self._store.update(path, {"lastPlayed": played_on.isoformat()})
        return course_from_doc(course_id, doc)

    # ================================================================
    # Delete
    # ================================================================

    async def delete_course(self, uid: str, course_id: str) -> bool:
        """Delete one course. Returns True if deleted."""
        return await self._store.delete(course_path(uid, course_id))

    async def delete_all_courses(self, uid: str) -> int:
        """Delete every course for the user. Returns the number deleted."""
        return await self._store.delete_collection(courses_path(uid))
