from session.errors import (
    AccountDeletionError,
    AuthError,
    BackendUnavailableError,
    GolfJournalError,
    NotAuthenticatedError,
    ValidationError,
)
from session.notifications import Notification, NotificationChannel, NotificationKind
from session.router import GuardedRouter, RouteDecision, decide
from session.state import SessionState, SessionStatus
from session.store import SessionStore

__all__ = [
    "AccountDeletionError",
    "AuthError",
    "BackendUnavailableError",
    "GolfJournalError",
    "NotAuthenticatedError",
    "ValidationError",
    "Notification",
    "NotificationChannel",
    "NotificationKind",
    "GuardedRouter",
    "RouteDecision",
    "decide",
    "SessionState",
    "SessionStatus",
    "SessionStore",
]
