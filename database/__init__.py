from database.connection import DatabasePool
from database.db_manager import DatabaseManager
from database.documents import Document, DocumentStore, InMemoryDocumentStore
from database.postgres_store import PostgresDocumentStore
from database.repositories import CourseRepository, ProfileRepository, RoundRepository
from database.exceptions import DatabaseError, InvalidPathError, NotFoundError

__all__ = [
    "DatabasePool",
    "DatabaseManager",
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "PostgresDocumentStore",
    "CourseRepository",
    "ProfileRepository",
    "RoundRepository",
    "DatabaseError",
    "InvalidPathError",
    "NotFoundError",
]
