from typing import Protocol

from cutroom.domain.entities import DelegatedCredential, IdentityAssertion, RoleType


class IdentityProviderPort(Protocol):
    """OAuth consent flow yielding an email and, for producers, a delegated credential."""

    def begin_consent(self, role: RoleType, state: str) -> str:
        """Return the consent URL the browser should be redirected to."""
        ...

    def complete_consent(self, code: str, role: RoleType) -> IdentityAssertion:
        """Exchange the authorization code. Raises IdentityProviderError."""
        ...

    def refresh_delegated(self, refresh_token: str) -> DelegatedCredential:
        """Mint a fresh delegated credential. Raises IdentityProviderError."""
        ...
