"""Auth provider backed by Supabase Auth (async client)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

import httpx
from supabase import AsyncClient, AuthApiError, AuthRetryableError, acreate_client

from auth.provider import (
    AuthStateListener,
    PhoneVerification,
    ProviderError,
    ProviderUnavailableError,
)
from models import Identity

logger = logging.getLogger(__name__)


def identity_from_user(user: Any) -> Identity:
    """Map a Supabase ``User`` to an Identity, echoing OAuth profile metadata."""
    meta: Dict[str, Any] = getattr(user, "user_metadata", None) or {}
    return Identity(
        id=user.id,
        display_name=meta.get("full_name") or meta.get("name"),
        email=user.email or None,
        photo_url=meta.get("avatar_url") or meta.get("picture"),
        phone_number=user.phone or None,
    )


class SupabaseAuthProvider:
    """Wraps the Supabase auth API behind the AuthProvider contract.

    Identity deletion needs the service-role key; without it
    ``delete_identity`` raises ProviderError.
    """

    def __init__(self, client: AsyncClient, admin_client: AsyncClient | None = None) -> None:
        self._client = client
        self._admin = admin_client
        # Supabase has no verification handle; map our handle to the number
        self._verifications: dict[str, str] = {}

    @property
    def client(self) -> AsyncClient:
        return self._client

    @classmethod
    async def create(
        cls, url: str, anon_key: str, service_role_key: str | None = None
    ) -> "SupabaseAuthProvider":
        client = await acreate_client(url, anon_key)
        admin = await acreate_client(url, service_role_key) if service_role_key else None
        return cls(client, admin)

    async def _call(self, operation: str, coro):
        try:
            return await coro
        except AuthRetryableError as exc:
            raise ProviderUnavailableError(f"{operation} failed: {exc}") from exc
        except AuthApiError as exc:
            raise ProviderError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(f"{operation} failed: {exc}") from exc

    # ================================================================
    # Subscription
    # ================================================================

    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        def _forward(event: Any, session: Any) -> None:
            user = getattr(session, "user", None) if session else None
            logger.debug("Supabase auth event %s", event)
            listener(identity_from_user(user) if user else None)

        subscription = self._client.auth.on_auth_state_change(_forward)
        return subscription.unsubscribe

    async def get_current_identity(self) -> Optional[Identity]:
        session = await self._call("get_session", self._client.auth.get_session())
        return identity_from_user(session.user) if session and session.user else None

    # ================================================================
    # Sign-in
    # ================================================================

    async def sign_in_with_google(self, credential: str) -> Identity:
        if not credential:
            raise ProviderError("Missing Google credential")
        res = await self._call(
            "google sign-in",
            self._client.auth.sign_in_with_id_token({"provider": "google", "token": credential}),
        )
        if not res.user:
            raise ProviderError("Google sign-in returned no user")
        return identity_from_user(res.user)

    async def request_phone_code(
        self, phone_number: str, verifier_token: Optional[str] = None
    ) -> PhoneVerification:
        credentials: Dict[str, Any] = {"phone": phone_number}
        if verifier_token:
            credentials["options"] = {"captcha_token": verifier_token}
        await self._call("phone code request", self._client.auth.sign_in_with_otp(credentials))
        # A new request supersedes earlier handles for the same number
        for vid in [v for v, p in self._verifications.items() if p == phone_number]:
            del self._verifications[vid]
        verification_id = uuid4().hex
        self._verifications[verification_id] = phone_number
        return PhoneVerification(verification_id=verification_id, phone_number=phone_number)

    async def confirm_phone_code(self, verification_id: str, code: str) -> Identity:
        phone_number = self._verifications.get(verification_id)
        if phone_number is None:
            raise ProviderError("Unknown verification session")
        res = await self._call(
            "phone code confirmation",
            self._client.auth.verify_otp({"phone": phone_number, "token": code, "type": "sms"}),
        )
        if not res.user:
            raise ProviderError("Phone confirmation returned no user")
        self._verifications.pop(verification_id, None)
        return identity_from_user(res.user)

    # ================================================================
    # Sign-out / delete
    # ================================================================

    async def sign_out(self) -> None:
        await self._call("sign-out", self._client.auth.sign_out())

    async def delete_identity(self, identity: Identity) -> None:
        if self._admin is None:
            raise ProviderError("Identity deletion requires SUPABASE_SERVICE_ROLE_KEY")
        await self._call("delete identity", self._admin.auth.admin.delete_user(identity.id))
        await self.sign_out()
