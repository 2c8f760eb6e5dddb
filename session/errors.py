"""Error taxonomy surfaced to views. Every error carries a readable cause."""

from typing import List, Optional


class GolfJournalError(Exception):
    """Base for all errors the session and view layers raise."""


class AuthError(GolfJournalError):
    """The provider rejected a credential, phone number or verification code."""


class NotAuthenticatedError(GolfJournalError):
    """An operation that needs a signed-in user ran without one."""


class BackendUnavailableError(GolfJournalError):
    """A document, storage or auth call failed for service or network reasons."""


class ValidationError(GolfJournalError):
    """A required field is missing or a value is out of range."""


class AccountDeletionError(BackendUnavailableError):
    """The account deletion cascade stopped at `failed_step`.

    `partial` is True when earlier steps completed, meaning some data is
    already gone while the rest (and the identity) remains.
    """

    def __init__(
        self,
        message: str,
        *,
        completed_steps: List[str],
        failed_step: str,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.cause = cause

    @property
    def partial(self) -> bool:
        return bool(self.completed_steps)
