"""Authentication provider contract shared by the hosted and in-memory backends."""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from models import Identity

AuthStateListener = Callable[[Optional[Identity]], None]


class ProviderError(Exception):
    """The provider rejected the request (bad credential, number or code)."""


class ProviderUnavailableError(ProviderError):
    """The provider could not be reached or failed internally."""


@dataclass(frozen=True)
class PhoneVerification:
    """Handle returned by a phone code request, used to confirm the code."""
    verification_id: str
    phone_number: str


class AuthProvider(Protocol):
    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        """Register a listener; returns the unsubscribe callable.

        Listeners are invoked on the event loop thread, in emission order.
        """
        ...

    async def get_current_identity(self) -> Optional[Identity]: ...

    async def sign_in_with_google(self, credential: str) -> Identity: ...

    async def request_phone_code(
        self, phone_number: str, verifier_token: Optional[str] = None
    ) -> PhoneVerification: ...

    async def confirm_phone_code(self, verification_id: str, code: str) -> Identity: ...

    async def sign_out(self) -> None: ...

    async def delete_identity(self, identity: Identity) -> None: ...
