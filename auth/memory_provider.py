"""In-memory auth provider for local development and tests.

Any non-empty Google credential signs in as a deterministic identity.
Phone codes are logged instead of sent by SMS.
"""

import asyncio
import logging
import re
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from uuid import NAMESPACE_URL, uuid4, uuid5

from auth.provider import (
    AuthStateListener,
    PhoneVerification,
    ProviderError,
)
from models import Identity

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+[1-9]\d{6,14}$")
CODE_TTL_SECONDS = 300


@dataclass
class _PendingCode:
    phone_number: str
    code: str
    expires_at: float


class InMemoryAuthProvider:
    """Process-local stand-in for the hosted auth service."""

    def __init__(
        self,
        *,
        code_ttl: float = CODE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._listeners: List[AuthStateListener] = []
        self._identities: Dict[str, Identity] = {}
        self._pending: Dict[str, _PendingCode] = {}
        self._current: Optional[Identity] = None
        self._code_ttl = code_ttl
        self._clock = clock

    # ================================================================
    # Subscription
    # ================================================================

    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_current_user(self, identity: Optional[Identity]) -> None:
        """Switch the signed-in identity (session restore, tests) and notify."""
        if identity is not None:
            self._identities[identity.id] = identity
        self._current = identity
        for listener in list(self._listeners):
            listener(identity)

    @property
    def current_user(self) -> Optional[Identity]:
        return self._current

    async def get_current_identity(self) -> Optional[Identity]:
        await asyncio.sleep(0)
        return self._current

    # ================================================================
    # Sign-in
    # ================================================================

    async def sign_in_with_google(self, credential: str) -> Identity:
        await asyncio.sleep(0)
        if not credential:
            raise ProviderError("Missing Google credential")
        uid = f"google-{uuid5(NAMESPACE_URL, credential).hex[:20]}"
        identity = self._identities.get(uid) or Identity(
            id=uid, display_name=None, email=None
        )
        self.set_current_user(identity)
        return identity

    async def request_phone_code(
        self, phone_number: str, verifier_token: Optional[str] = None
    ) -> PhoneVerification:
        await asyncio.sleep(0)
        if not PHONE_PATTERN.match(phone_number or ""):
            raise ProviderError(f"Invalid phone number: {phone_number!r}")

        # A new request supersedes earlier codes for the same number
        for vid in [v for v, p in self._pending.items() if p.phone_number == phone_number]:
            del self._pending[vid]

        verification_id = uuid4().hex
        code = f"{secrets.randbelow(10**6):06d}"
        self._pending[verification_id] = _PendingCode(
            phone_number=phone_number,
            code=code,
            expires_at=self._clock() + self._code_ttl,
        )
        logger.info("Verification code for %s: %s", phone_number, code)
        return PhoneVerification(verification_id=verification_id, phone_number=phone_number)

    def pending_code(self, verification_id: str) -> Optional[str]:
        """The code that would have been sent by SMS for a handle."""
        pending = self._pending.get(verification_id)
        return pending.code if pending else None

    async def confirm_phone_code(self, verification_id: str, code: str) -> Identity:
        await asyncio.sleep(0)
        pending = self._pending.get(verification_id)
        if pending is None:
            raise ProviderError("Verification session is invalid or has been replaced")
        if self._clock() > pending.expires_at:
            del self._pending[verification_id]
            raise ProviderError("Verification code has expired")
        if code != pending.code:
            raise ProviderError("Invalid verification code")

        del self._pending[verification_id]
        uid = f"phone-{uuid5(NAMESPACE_URL, pending.phone_number).hex[:20]}"
        identity = self._identities.get(uid) or Identity(
            id=uid, phone_number=pending.phone_number
        )
        self.set_current_user(identity)
        return identity

    # ================================================================
    # Sign-out / delete
    # ================================================================

    async def sign_out(self) -> None:
        await asyncio.sleep(0)
        self.set_current_user(None)

    async def delete_identity(self, identity: Identity) -> None:
        await asyncio.sleep(0)
        if self._identities.pop(identity.id, None) is None:
            raise ProviderError(f"Unknown identity {identity.id}")
        if self._current and self._current.id == identity.id:
            self.set_current_user(None)
