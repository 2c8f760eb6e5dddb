"""Session store: who is signed in and what their profile is.

Owns the auth-state subscription and lazy profile creation. All mutation
goes through the public coroutines below; views only read `state` or
subscribe to it.

Every identity change bumps `_generation`. A profile fetch remembers the
generation it started under and is dropped on completion if that value
is no longer current, so the visible state always follows the most
recent auth notification.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from pydantic import ValidationError as PydanticValidationError

from analytics import events
from auth.provider import (
    AuthProvider,
    PhoneVerification,
    ProviderError,
    ProviderUnavailableError,
)
from database.db_manager import DatabaseManager
from database.exceptions import DatabaseError
from models import Identity, Profile, ProfileUpdate
from session.errors import (
    AccountDeletionError,
    AuthError,
    BackendUnavailableError,
    NotAuthenticatedError,
    ValidationError,
)
from session.state import SessionState, SessionStatus

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


def _provider_failure(operation: str, exc: ProviderError) -> Exception:
    if isinstance(exc, ProviderUnavailableError):
        return BackendUnavailableError(f"{operation} failed: {exc}")
    return AuthError(str(exc))


class SessionStore:
    def __init__(self, auth: AuthProvider, db: DatabaseManager) -> None:
        self._auth = auth
        self._db = db
        self._state = SessionState()
        self._generation = 0
        self._listeners: List[SessionListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ================================================================
    # Observation
    # ================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def identity(self) -> Optional[Identity]:
        return self._state.identity

    @property
    def profile(self) -> Optional[Profile]:
        return self._state.profile

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call `listener` with each new state. Returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes: Any) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        logger.debug(
            "Session %s -> %s (%s)",
            self._state.status.value,
            new_state.status.value,
            new_state.identity.id if new_state.identity else "-",
        )
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def _force_anonymous(self) -> None:
        self._generation += 1
        self._set_state(
            status=SessionStatus.ANONYMOUS, identity=None, profile=None, error=None
        )

    # ================================================================
    # Lifecycle
    # ================================================================

    async def start(self) -> None:
        """Subscribe to auth changes and resolve the initial status."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._auth.on_auth_state_change(self._handle_auth_change)
        try:
            identity = await self._auth.get_current_identity()
        except ProviderError as exc:
            logger.warning("Could not restore session: %s", exc)
            identity = None
        # A notification may already have resolved the status
        if self._state.status is SessionStatus.UNKNOWN:
            self._handle_auth_change(identity)

    async def close(self) -> None:
        """Unsubscribe and cancel in-flight profile loads."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._generation += 1
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._listeners.clear()

    async def settle(self) -> SessionState:
        """Wait until no profile load is in flight; return the resulting state."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._state

    # ================================================================
    # Auth notifications and profile bootstrap
    # ================================================================

    def _handle_auth_change(self, identity: Optional[Identity]) -> None:
        """Apply one auth notification. Runs synchronously, in delivery order."""
        if identity is None:
            self._force_anonymous()
            return

        current = self._state
        same_user = current.identity is not None and current.identity.id == identity.id
        if same_user and (
            current.status is SessionStatus.READY
            or (current.status is SessionStatus.PROFILE_LOADING and current.error is None)
        ):
            # Token refresh or duplicate event: keep the profile we have or are loading
            self._set_state(identity=identity)
            return

        self._generation += 1
        generation = self._generation
        self._set_state(
            status=SessionStatus.PROFILE_LOADING, identity=identity, profile=None, error=None
        )
        self._spawn(self._load_profile(identity, generation))

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, identity: Identity, generation: int) -> bool:
        current = self._state.identity
        return (
            generation == self._generation
            and current is not None
            and current.id == identity.id
        )

    async def _fetch_or_create_profile(self, identity: Identity) -> Profile:
        profile = await self._db.profiles.get_profile(identity.id)
        if profile is not None:
            return profile
        logger.info("Creating profile for %s", identity.id)
        # Create-if-absent: a concurrent first load may win; adopt its document
        return await self._db.profiles.create_profile_if_absent(Profile.default_for(identity))

    async def _load_profile(self, identity: Identity, generation: int) -> None:
        try:
            profile = await self._fetch_or_create_profile(identity)
        except (DatabaseError, PydanticValidationError) as exc:
            if not self._is_current(identity, generation):
                return
            logger.error("Error fetching profile for %s: %s", identity.id, exc)
            self._set_state(
                error=BackendUnavailableError(f"Could not load your profile: {exc}")
            )
            return

        if not self._is_current(identity, generation):
            logger.debug("Discarding stale profile for %s", identity.id)
            return
        self._set_state(status=SessionStatus.READY, profile=profile, error=None)

    async def refresh_profile(self) -> Optional[Profile]:
        """Re-read the profile, e.g. after counters changed elsewhere.

        Returns None if the session changed before the read completed.
        """
        state = self._state
        if not state.is_authenticated or state.identity is None:
            raise NotAuthenticatedError("You need to sign in first")
        identity, generation = state.identity, self._generation
        try:
            profile = await self._fetch_or_create_profile(identity)
        except (DatabaseError, PydanticValidationError) as exc:
            raise BackendUnavailableError(f"Could not load your profile: {exc}") from exc
        if not self._is_current(identity, generation):
            return None
        self._set_state(status=SessionStatus.READY, profile=profile, error=None)
        return profile

    # ================================================================
    # Sign-in
    # ================================================================

    async def _authenticate(self, method: str, call: Awaitable[Identity]) -> Identity:
        previous = self._state.status
        self._set_state(status=SessionStatus.AUTHENTICATING, error=None)
        try:
            identity = await call
        except ProviderError as exc:
            logger.warning("%s sign-in failed: %s", method, exc)
            if self._state.status is SessionStatus.AUTHENTICATING:
                self._set_state(status=previous)
            raise _provider_failure(f"{method} sign-in", exc) from exc

        logger.info("Signed in %s via %s", identity.id, method)
        events.track_user_sign_in(method)
        # The provider normally notifies during the call; cover the case it has not
        if self._state.status is SessionStatus.AUTHENTICATING:
            self._handle_auth_change(identity)
        return identity

    async def sign_in_with_google(self, credential: str) -> Identity:
        return await self._authenticate("google", self._auth.sign_in_with_google(credential))

    async def sign_in_with_phone(
        self, phone_number: str, verifier_token: Optional[str] = None
    ) -> PhoneVerification:
        """Step one of phone sign-in: request a code, return the verification handle."""
        phone_number = (phone_number or "").strip()
        if not phone_number:
            raise ValidationError("Enter a phone number")
        previous = self._state.status
        self._set_state(status=SessionStatus.AUTHENTICATING, error=None)
        try:
            return await self._auth.request_phone_code(phone_number, verifier_token)
        except ProviderError as exc:
            logger.warning("Phone code request for %s failed: %s", phone_number, exc)
            raise _provider_failure("phone code request", exc) from exc
        finally:
            if self._state.status is SessionStatus.AUTHENTICATING:
                self._set_state(status=previous)

    async def confirm_phone_code(
        self, verification: Union[PhoneVerification, str], code: str
    ) -> Identity:
        """Step two of phone sign-in. A rejected code leaves the handle usable."""
        verification_id = (
            verification.verification_id
            if isinstance(verification, PhoneVerification)
            else verification
        )
        code = (code or "").strip()
        if not code:
            raise ValidationError("Enter the verification code")
        return await self._authenticate(
            "phone", self._auth.confirm_phone_code(verification_id, code)
        )

    # ================================================================
    # Sign-out
    # ================================================================

    async def sign_out(self) -> None:
        """Sign out and clear local state, from any status."""
        # Invalidate in-flight profile loads before suspending
        self._generation += 1
        try:
            await self._auth.sign_out()
        except ProviderError as exc:
            logger.warning("Provider sign-out failed: %s", exc)
            self._force_anonymous()
            raise _provider_failure("sign-out", exc) from exc
        self._force_anonymous()
        events.track_user_sign_out()

    # ================================================================
    # Profile
    # ================================================================

    async def update_profile(
        self, partial: Union[ProfileUpdate, Dict[str, Any]]
    ) -> Profile:
        """Merge-write the given fields, then apply the same fields locally."""
        state = self._state
        if state.status is not SessionStatus.READY or state.profile is None:
            raise NotAuthenticatedError("Your profile is not available; sign in first")
        try:
            update = (
                partial if isinstance(partial, ProfileUpdate)
                else ProfileUpdate.model_validate(partial)
            )
        except PydanticValidationError as e:
            raise ValidationError(e.errors()[0]['msg']) from e

        changes = update.changes()
        if not changes:
            return state.profile

        identity, generation = state.identity, self._generation
        try:
            await self._db.profiles.merge_profile(identity.id, changes)
        except DatabaseError as exc:
            raise BackendUnavailableError(f"Could not save your profile: {exc}") from exc

        if not self._is_current(identity, generation) or self._state.profile is None:
            logger.info("Session changed while saving profile for %s", identity.id)
            return state.profile.merged(changes)
        profile = self._state.profile.merged(changes)
        self._set_state(profile=profile)
        return profile

    # ================================================================
    # Account deletion
    # ================================================================

    async def delete_account(self) -> None:
        """Delete rounds, courses, profile, then the identity, stopping at the first failure.

        The identity is only removed once all data is gone.
        """
        state = self._state
        if not state.is_authenticated or state.identity is None:
            raise NotAuthenticatedError("You need to sign in first")
        identity = state.identity
        uid = identity.id

        steps: List[tuple] = [
            ("rounds", lambda: self._db.rounds.delete_all_rounds(uid)),
            ("courses", lambda: self._db.courses.delete_all_courses(uid)),
            ("profile", lambda: self._db.profiles.delete_profile(uid)),
            ("identity", lambda: self._auth.delete_identity(identity)),
        ]
        completed: List[str] = []
        for name, step in steps:
            try:
                await step()
            except (DatabaseError, ProviderError) as exc:
                logger.error("Account deletion for %s stopped at %s: %s", uid, name, exc)
                if completed:
                    message = (
                        f"Account deletion stopped while deleting {name}; "
                        f"{', '.join(completed)} already deleted and some data may remain"
                    )
                else:
                    message = f"Account deletion failed while deleting {name}; nothing was deleted"
                raise AccountDeletionError(
                    message, completed_steps=completed, failed_step=name, cause=exc
                ) from exc
            completed.append(name)

        logger.info("Deleted account %s", uid)
        events.track_event("account_deleted")
        self._force_anonymous()
