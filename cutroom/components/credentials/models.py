"""Credential manager models - frozen dataclass outputs."""

from dataclasses import dataclass

from cutroom.domain.entities import Account, CredentialPair


@dataclass(frozen=True)
class AuthOutput:
    """Account plus the freshly issued access/session pair."""

    account: Account
    credentials: CredentialPair
