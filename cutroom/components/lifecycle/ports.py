"""Lifecycle component port definitions - protocols for dependencies."""

from typing import Protocol
from uuid import UUID

from cutroom.components.publish.models import PublishAssetOutput
from cutroom.domain.entities import Account, Asset, DelegatedCredential, PublishOptions
from cutroom.ports.clock import ClockPort
from cutroom.ports.repo import AssetRepoPort, DelegationRepoPort, WorkspaceRepoPort


class AccountLookupPort(Protocol):
    def get_by_id(self, account_id: UUID) -> Account | None: ...
    def get_by_email(self, email: str) -> Account | None: ...


class CredentialResolverPort(Protocol):
    """Hands out a usable delegated credential, refreshing it if needed."""

    def resolve_publishing_credential(self, account_id: UUID) -> DelegatedCredential: ...


class PublishPipelinePort(Protocol):
    def publish_asset(
        self,
        asset: Asset,
        credential: DelegatedCredential,
        options: PublishOptions | None = None,
    ) -> PublishAssetOutput: ...


__all__ = [
    "AccountLookupPort",
    "AssetRepoPort",
    "ClockPort",
    "CredentialResolverPort",
    "DelegationRepoPort",
    "PublishPipelinePort",
    "WorkspaceRepoPort",
]
