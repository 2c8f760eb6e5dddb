"""Groups the repositories over one document store."""

from database.documents import DocumentStore, InMemoryDocumentStore
from database.repositories import CourseRepository, ProfileRepository, RoundRepository


class DatabaseManager:
    """Entry point for document access: ``db.profiles``, ``db.courses``, ``db.rounds``."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.profiles = ProfileRepository(store)
        self.courses = CourseRepository(store)
        self.rounds = RoundRepository(store)

    @classmethod
    def in_memory(cls) -> "DatabaseManager":
        return cls(InMemoryDocumentStore())
