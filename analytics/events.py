"""Usage event tracking.

Events always go to this module's logger; extra sinks (a hosted analytics
client, a test recorder) can be registered. A failing sink never breaks
the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

EventParams = Dict[str, Union[str, int, float, bool, None]]
EventSink = Callable[[str, EventParams], None]

_sinks: List[EventSink] = []


def add_sink(sink: EventSink) -> Callable[[], None]:
    """Register a sink. Returns a callable that removes it."""
    _sinks.append(sink)

    def remove() -> None:
        if sink in _sinks:
            _sinks.remove(sink)

    return remove


def track_event(name: str, **params: Any) -> None:
    logger.info("event %s %s", name, params)
    for sink in list(_sinks):
        try:
            sink(name, params)
        except Exception as exc:
            logger.warning("Analytics sink failed for %s: %s", name, exc)


def track_page_view(page_title: str, page_location: str) -> None:
    track_event("page_view", page_title=page_title, page_location=page_location)


def track_user_sign_in(method: str) -> None:
    track_event("login", method=method)


def track_user_sign_out() -> None:
    track_event("sign_out")


def track_round_added(course_id: Optional[str] = None) -> None:
    track_event("round_added", course_id=course_id)


def track_course_viewed(course_id: str, course_name: str) -> None:
    track_event("course_viewed", course_id=course_id, course_name=course_name)


def track_photo_uploaded() -> None:
    track_event("photo_uploaded")
