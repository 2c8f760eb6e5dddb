from auth.memory_provider import InMemoryAuthProvider
from auth.provider import (
    AuthProvider,
    AuthStateListener,
    PhoneVerification,
    ProviderError,
    ProviderUnavailableError,
)

__all__ = [
    "AuthProvider",
    "AuthStateListener",
    "InMemoryAuthProvider",
    "PhoneVerification",
    "ProviderError",
    "ProviderUnavailableError",
]
