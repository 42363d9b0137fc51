from datetime import datetime
from typing import Protocol
from uuid import UUID

from cutroom.domain.entities import (
    Account,
    Asset,
    DelegatedCredential,
    Delegation,
    PublicationRecord,
    Workspace,
)


class AccountRepoPort(Protocol):
    def get_by_id(self, account_id: UUID) -> Account | None:
        ...

    def get_by_email(self, email: str) -> Account | None:
        ...

    def create(self, account: Account) -> Account:
        """Insert a new account. Returns the stored row if the email already exists."""
        ...

    def swap_session(
        self,
        account_id: UUID,
        expected_hash: str | None,
        new_hash: str | None,
        issued_at: datetime | None,
    ) -> bool:
        """
        Atomically replace the stored session hash if it still equals `expected_hash`.
        Passing expected_hash=None replaces unconditionally.
        Returns False when the stored value changed underneath the caller.
        """
        ...

    def save_delegated(self, account_id: UUID, credential: DelegatedCredential | None) -> None:
        ...


class WorkspaceRepoPort(Protocol):
    def save(self, workspace: Workspace) -> Workspace:
        ...

    def get_by_id(self, workspace_id: UUID) -> Workspace | None:
        ...

    def list_by_owner(self, owner_id: UUID) -> list[Workspace]:
        ...

    def list_by_ids(self, workspace_ids: list[UUID]) -> list[Workspace]:
        ...


class DelegationRepoPort(Protocol):
    def get(self, workspace_id: UUID, email: str) -> Delegation | None:
        ...

    def list_by_email(self, email: str) -> list[Delegation]:
        ...

    def save(self, delegation: Delegation) -> Delegation:
        ...


class AssetRepoPort(Protocol):
    def save(self, asset: Asset) -> Asset:
        """Upsert review fields. Never touches publication columns."""
        ...

    def get_by_id(self, asset_id: UUID) -> Asset | None:
        ...

    def list_by_workspace(self, workspace_id: UUID) -> list[Asset]:
        ...

    def claim_publish(self, asset_id: UUID, now: datetime) -> bool:
        """
        Mark a publish attempt if the asset has no platform id and no open attempt.
        Returns False if another attempt holds the claim or the asset is published.
        The claim only ends through record_publication or release_publish.
        """
        ...

    def release_publish(self, asset_id: UUID) -> None:
        """Drop an unpublished claim after a clean failure."""
        ...

    def record_publication(self, asset_id: UUID, record: PublicationRecord) -> bool:
        """Commit the platform id only if none is recorded yet."""
        ...

    def list_unreconciled(self) -> list[Asset]:
        """Assets with a publish attempt on record but no platform id."""
        ...
