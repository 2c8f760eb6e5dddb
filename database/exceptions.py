class DatabaseError(Exception):
    """Base for all document store errors."""


class NotFoundError(DatabaseError):
    """Document not found."""


class InvalidPathError(DatabaseError):
    """Document or collection path is malformed."""
