"""Lifecycle component models - frozen dataclass inputs and outputs."""

from dataclasses import dataclass, field
from uuid import UUID

from cutroom.domain.entities import (
    Account,
    Asset,
    Decision,
    EditMetadata,
    PublishOptions,
)


@dataclass(frozen=True)
class CreateWorkspaceInput:
    actor: Account
    name: str


@dataclass(frozen=True)
class ListWorkspacesInput:
    actor: Account


@dataclass(frozen=True)
class AcceptDelegationInput:
    actor: Account
    workspace_id: UUID


@dataclass(frozen=True)
class SubmitOriginalInput:
    """Producer hands a raw binary (already in the Asset Store) to a delegate."""

    actor: Account
    workspace_id: UUID
    delegate_email: str
    original_ref: str
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class SubmitEditInput:
    actor: Account
    asset_id: UUID
    edited_ref: str
    metadata: EditMetadata = field(default_factory=EditMetadata)


@dataclass(frozen=True)
class DecideInput:
    actor: Account
    asset_id: UUID
    decision: Decision
    feedback: str | None = None


@dataclass(frozen=True)
class GetAssetInput:
    actor: Account
    asset_id: UUID


@dataclass(frozen=True)
class ListAssetsInput:
    actor: Account
    workspace_id: UUID


@dataclass(frozen=True)
class PublishInput:
    actor: Account
    asset_id: UUID
    options: PublishOptions = field(default_factory=PublishOptions)


@dataclass(frozen=True)
class PublishOutput:
    """Platform identifier and the asset as committed."""

    platform_id: str
    asset: Asset
