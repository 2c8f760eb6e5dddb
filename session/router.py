"""Guarded navigation.

`decide` is the pure routing rule. `GuardedRouter` applies it to a current
location and re-applies it on every session change, so signing out while
on a protected view immediately lands on the sign-in view.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from session.state import SessionStatus

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
DEFAULT_PATH = "/dashboard"
LOGIN_VIEW = "login"
MAX_REDIRECTS = 5

PROTECTED_VIEWS: Dict[str, str] = {
    "/dashboard": "dashboard",
    "/add": "add_round",
    "/history": "history",
    "/profile": "profile",
}


class DecisionKind(str, Enum):
    RENDER = "render"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    kind: DecisionKind
    target: str  # view name when rendering, path when redirecting
    path: str

    @classmethod
    def render(cls, view: str, path: str) -> "RouteDecision":
        return cls(DecisionKind.RENDER, view, path)

    @classmethod
    def redirect(cls, to: str, path: str) -> "RouteDecision":
        return cls(DecisionKind.REDIRECT, to, path)

    @property
    def is_redirect(self) -> bool:
        return self.kind is DecisionKind.REDIRECT


def normalize_path(path: str) -> str:
    path = (path or "/").split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def decide(path: str, status: SessionStatus) -> RouteDecision:
    """Route `path` for a session in `status`."""
    path = normalize_path(path)
    if path == LOGIN_PATH:
        if status.is_authenticated:
            return RouteDecision.redirect(DEFAULT_PATH, path)
        return RouteDecision.render(LOGIN_VIEW, path)
    # Everything else needs a session, including unknown paths
    if not status.is_authenticated:
        return RouteDecision.render(LOGIN_VIEW, path)
    view = PROTECTED_VIEWS.get(path)
    if view is None:
        return RouteDecision.redirect(DEFAULT_PATH, path)
    return RouteDecision.render(view, path)


RouteListener = Callable[[RouteDecision], None]


class GuardedRouter:
    """Tracks the current location and keeps its decision in sync with the session."""

    def __init__(self, session, initial_path: str = "/") -> None:
        self._session = session
        self._location = normalize_path(initial_path)
        self._current: Optional[RouteDecision] = None
        self._listeners: List[RouteListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def location(self) -> str:
        return self._location

    @property
    def current(self) -> RouteDecision:
        if self._current is None:
            return self._evaluate()
        return self._current

    def start(self) -> RouteDecision:
        if self._unsubscribe is None:
            self._unsubscribe = self._session.subscribe(lambda _state: self._evaluate())
        return self._evaluate()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def navigate(self, path: str) -> RouteDecision:
        """Go to `path`, following redirects. Returns the view that renders."""
        self._location = normalize_path(path)
        return self._evaluate()

    def _evaluate(self) -> RouteDecision:
        status = self._session.status
        decision = decide(self._location, status)
        hops = 0
        while decision.is_redirect:
            hops += 1
            if hops > MAX_REDIRECTS:
                raise RuntimeError(f"Redirect loop at {self._location}")
            logger.debug("Redirect %s -> %s", self._location, decision.target)
            self._location = decision.target
            decision = decide(self._location, status)

        if decision != self._current:
            self._current = decision
            for listener in list(self._listeners):
                listener(decision)
        return decision
