# ==============================================================================
# Identity Provider Abstract Base Class
# ==============================================================================
"""
Abstract interface for the authentication provider.

The idle guard only needs to know who is signed in and how to sign them out.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class User(BaseModel):
    """The signed-in user as reported by the identity provider."""

    id: str
    email: str
    last_sign_in_time: str | None = None
    creation_time: str | None = None


class IdentityProvider(ABC):
    """Authentication provider capability."""

    @abstractmethod
    def current_user(self) -> User | None:
        """Return the signed-in user, or None."""
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """End the authenticated session with the provider."""
        ...
