from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models import Identity, Profile
from session.errors import GolfJournalError


class SessionStatus(str, Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    PROFILE_LOADING = "profile_loading"
    READY = "ready"

    @property
    def is_authenticated(self) -> bool:
        return self in (SessionStatus.PROFILE_LOADING, SessionStatus.READY)


@dataclass(frozen=True)
class SessionState:
    """Snapshot published to subscribers on every transition."""
    status: SessionStatus = SessionStatus.UNKNOWN
    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    error: Optional[GolfJournalError] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self.status in (
            SessionStatus.UNKNOWN,
            SessionStatus.AUTHENTICATING,
            SessionStatus.PROFILE_LOADING,
        )
