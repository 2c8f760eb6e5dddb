"""Transient, dismissible messages for any view (toasts)."""

import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5.0


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Notification:
    id: str
    message: str
    kind: NotificationKind
    created_at: float


NotificationListener = Callable[[Notification], None]


class NotificationChannel:
    """In-memory publish/subscribe. Messages expire after `ttl` seconds."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._ids = itertools.count(1)
        self._messages: Dict[str, Notification] = {}
        self._listeners: List[NotificationListener] = []

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, message: str, kind: NotificationKind = NotificationKind.INFO) -> Notification:
        note = Notification(
            id=str(next(self._ids)),
            message=message,
            kind=NotificationKind(kind),
            created_at=self._clock(),
        )
        self._messages[note.id] = note
        for listener in list(self._listeners):
            try:
                listener(note)
            except Exception:
                logger.exception("Notification listener %r failed", listener)
        return note

    def success(self, message: str) -> Notification:
        return self.publish(message, NotificationKind.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.publish(message, NotificationKind.ERROR)

    def info(self, message: str) -> Notification:
        return self.publish(message, NotificationKind.INFO)

    def warning(self, message: str) -> Notification:
        return self.publish(message, NotificationKind.WARNING)

    def dismiss(self, notification_id: str) -> bool:
        return self._messages.pop(notification_id, None) is not None

    def active(self) -> List[Notification]:
        """Unexpired messages, oldest first. Expired ones are dropped."""
        now = self._clock()
        expired = [k for k, n in self._messages.items() if now - n.created_at >= self.ttl]
        for key in expired:
            del self._messages[key]
        return sorted(self._messages.values(), key=lambda n: n.created_at)
