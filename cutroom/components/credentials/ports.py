"""Credential manager port definitions - protocols for dependencies."""

from cutroom.ports.clock import ClockPort
from cutroom.ports.identity import IdentityProviderPort
from cutroom.ports.repo import AccountRepoPort
from cutroom.ports.tokens import TokenPort

__all__ = ["AccountRepoPort", "ClockPort", "IdentityProviderPort", "TokenPort"]
