from fastapi import Request

from database.db_manager import DatabaseManager
from session.errors import NotAuthenticatedError
from session.notifications import NotificationChannel
from session.router import GuardedRouter
from session.store import SessionStore
from views.base import ViewContext


def get_db(request: Request) -> DatabaseManager:
    """FastAPI dependency that provides the DatabaseManager."""
    return request.app.state.db_manager


def get_session(request: Request) -> SessionStore:
    return request.app.state.session


def get_router(request: Request) -> GuardedRouter:
    return request.app.state.router


def get_notifications(request: Request) -> NotificationChannel:
    return request.app.state.notifications


def get_view_context(request: Request) -> ViewContext:
    """Everything a view controller needs, bundled per request."""
    state = request.app.state
    return ViewContext(
        session=state.session,
        db=state.db_manager,
        notifications=state.notifications,
        storage=state.storage,
    )


def get_signed_in_context(request: Request) -> ViewContext:
    """Like get_view_context, but rejects requests without a signed-in identity."""
    ctx = get_view_context(request)
    if ctx.session.identity is None:
        raise NotAuthenticatedError("You need to sign in first")
    return ctx
