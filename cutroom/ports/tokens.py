from datetime import datetime
from typing import Any, Protocol


class TokenPort(Protocol):
    """Signs and verifies the credentials we hand to browsers."""

    def issue(self, kind: str, subject: str, expires_at: datetime, **claims: Any) -> str:
        ...

    def verify(self, kind: str, token: str, now: datetime) -> dict[str, Any]:
        """Return the claims. Raises Unauthenticated on bad signature, kind or expiry."""
        ...

    def fingerprint(self, token: str) -> str:
        """Stable hash of a token for storage and comparison."""
        ...
