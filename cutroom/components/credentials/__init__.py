"""Credentials component - rotating sessions and delegated publishing credentials."""

from cutroom.components.credentials.component import (
    ACCESS,
    AccountLocks,
    SESSION,
    STATE,
    CredentialManager,
)
from cutroom.components.credentials.models import AuthOutput
from cutroom.components.credentials.ports import (
    AccountRepoPort,
    ClockPort,
    IdentityProviderPort,
    TokenPort,
)

__all__ = [
    # Component
    "CredentialManager",
    "AccountLocks",
    # Token kinds
    "ACCESS",
    "SESSION",
    "STATE",
    # Models
    "AuthOutput",
    # Ports
    "AccountRepoPort",
    "ClockPort",
    "IdentityProviderPort",
    "TokenPort",
]
