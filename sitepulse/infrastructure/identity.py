# ==============================================================================
# In-Memory Identity Provider
# ==============================================================================
"""
IdentityProvider holding the signed-in user in process memory.

Used by the CLI and tests; a real deployment adapts its auth provider to
the same interface.
"""

import logging

from sitepulse.base.identity import IdentityProvider, User

logger = logging.getLogger(__name__)


class InMemoryIdentityProvider(IdentityProvider):
    """Identity provider with an explicit sign_in()."""

    def __init__(self, user: User | None = None) -> None:
        self._user = user
        self.sign_out_calls = 0

    def sign_in(self, user: User) -> None:
        self._user = user

    def current_user(self) -> User | None:
        return self._user

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self._user is not None:
            logger.info("Signed out %s", self._user.email)
        self._user = None
