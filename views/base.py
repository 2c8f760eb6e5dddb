"""Shared plumbing for view controllers.

A controller fetches what it needs on `mount()`, keeps local UI state and
writes back through the repositories or the session store. After
`unmount()` late results are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, TypeVar

from database.db_manager import DatabaseManager
from database.exceptions import DatabaseError, NotFoundError
from session.errors import (
    BackendUnavailableError,
    GolfJournalError,
    NotAuthenticatedError,
    ValidationError,
)
from session.notifications import NotificationChannel
from session.store import SessionStore
from storage.blob_store import BlobStore, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ViewContext:
    session: SessionStore
    db: DatabaseManager
    notifications: NotificationChannel
    storage: Optional[BlobStore] = None


async def backend_call(call: Awaitable[T], failure: str) -> T:
    """Await a repository or storage call, wrapping failures into the error taxonomy.

    A missing document is the caller's mistake (ValidationError); anything
    else from the backend is BackendUnavailableError.
    """
    try:
        return await call
    except NotFoundError as exc:
        raise ValidationError(f"{failure}: {exc}") from exc
    except (DatabaseError, StorageError) as exc:
        logger.warning("%s: %s", failure, exc)
        raise BackendUnavailableError(f"{failure}: {exc}") from exc


class ViewController:
    load_error_message = "Something went wrong loading this page"

    def __init__(self, ctx: ViewContext) -> None:
        self.ctx = ctx
        self.loading = False
        self._mounted = False

    @property
    def session(self) -> SessionStore:
        return self.ctx.session

    @property
    def db(self) -> DatabaseManager:
        return self.ctx.db

    @property
    def notifications(self) -> NotificationChannel:
        return self.ctx.notifications

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def uid(self) -> str:
        identity = self.session.identity
        if identity is None:
            raise NotAuthenticatedError("You need to sign in first")
        return identity.id

    async def mount(self) -> None:
        """Fetch initial data. Failures become an error notification."""
        self._mounted = True
        self.loading = True
        try:
            await self._load()
        except GolfJournalError as exc:
            if self._mounted:
                logger.warning("%s failed to load: %s", type(self).__name__, exc)
                self.notifications.error(self.load_error_message)
        finally:
            if self._mounted:
                self.loading = False

    def unmount(self) -> None:
        self._mounted = False

    def _apply(self, **attrs: Any) -> bool:
        """Set attributes only while mounted. Returns whether they were applied."""
        if not self._mounted:
            return False
        for name, value in attrs.items():
            setattr(self, name, value)
        return True

    async def _load(self) -> None:
        raise NotImplementedError

    def render(self) -> dict:
        raise NotImplementedError
