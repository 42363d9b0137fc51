"""Lifecycle component - workspaces, delegation, review and publish of assets."""

import logging
from uuid import UUID

from cutroom.components.lifecycle.models import (
    AcceptDelegationInput,
    CreateWorkspaceInput,
    DecideInput,
    GetAssetInput,
    ListAssetsInput,
    ListWorkspacesInput,
    PublishInput,
    PublishOutput,
    SubmitEditInput,
    SubmitOriginalInput,
)
from cutroom.components.lifecycle.ports import (
    AccountLookupPort,
    AssetRepoPort,
    ClockPort,
    CredentialResolverPort,
    DelegationRepoPort,
    PublishPipelinePort,
    WorkspaceRepoPort,
)
from cutroom.domain.entities import (
    Account,
    Asset,
    Delegation,
    PublicationRecord,
    Workspace,
)
from cutroom.domain.errors import (
    AlreadyPublished,
    AssetUnavailable,
    DelegateNotFound,
    Forbidden,
    InvalidTransition,
    NotFound,
    PublishFailed,
    PublishInProgress,
    QuotaExceeded,
)
from cutroom.domain.policy import PolicyEngine
from cutroom.domain.state import apply_decision, apply_edit
from cutroom.rules.models import Rules

logger = logging.getLogger(__name__)

# Type alias for all supported inputs
LifecycleInput = (
    CreateWorkspaceInput
    | ListWorkspacesInput
    | AcceptDelegationInput
    | SubmitOriginalInput
    | SubmitEditInput
    | DecideInput
    | GetAssetInput
    | ListAssetsInput
    | PublishInput
)
LifecycleOutput = Workspace | list[Workspace] | Delegation | Asset | list[Asset] | PublishOutput


class LifecycleComponent:
    """Moves assets from upload through review to a single recorded publication."""

    def __init__(
        self,
        workspaces: WorkspaceRepoPort,
        delegations: DelegationRepoPort,
        assets: AssetRepoPort,
        accounts: AccountLookupPort,
        credentials: CredentialResolverPort,
        pipeline: PublishPipelinePort,
        policy: PolicyEngine,
        rules: Rules,
        clock: ClockPort,
    ) -> None:
        self._workspaces = workspaces
        self._delegations = delegations
        self._assets = assets
        self._accounts = accounts
        self._credentials = credentials
        self._pipeline = pipeline
        self._policy = policy
        self._rules = rules
        self._clock = clock

    def run(self, input_data: LifecycleInput) -> LifecycleOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, CreateWorkspaceInput):
            return self.run_create_workspace(input_data)
        elif isinstance(input_data, ListWorkspacesInput):
            return self.run_list_workspaces(input_data)
        elif isinstance(input_data, AcceptDelegationInput):
            return self.run_accept_delegation(input_data)
        elif isinstance(input_data, SubmitOriginalInput):
            return self.run_submit_original(input_data)
        elif isinstance(input_data, SubmitEditInput):
            return self.run_submit_edit(input_data)
        elif isinstance(input_data, DecideInput):
            return self.run_decide(input_data)
        elif isinstance(input_data, GetAssetInput):
            return self.run_get_asset(input_data)
        elif isinstance(input_data, ListAssetsInput):
            return self.run_list_assets(input_data)
        elif isinstance(input_data, PublishInput):
            return self.run_publish(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    # --- Workspaces ---

    def run_create_workspace(self, input_data: CreateWorkspaceInput) -> Workspace:
        if not self._policy.can_create_workspace(input_data.actor):
            raise Forbidden("Only producers can create workspaces")

        name = input_data.name.strip()
        if not name:
            raise ValueError("Workspace name must not be empty")

        workspace = Workspace(
            name=name, owner_id=input_data.actor.id, created_at=self._clock.now_utc()
        )
        self._workspaces.save(workspace)
        logger.info("Workspace %s created by %s", workspace.id, input_data.actor.id)
        return workspace

    def run_list_workspaces(self, input_data: ListWorkspacesInput) -> list[Workspace]:
        """Owned workspaces plus those the actor is delegated into."""
        actor = input_data.actor
        owned = self._workspaces.list_by_owner(actor.id)
        owned_ids = {w.id for w in owned}
        delegated_ids = [
            d.workspace_id
            for d in self._delegations.list_by_email(actor.email)
            if d.workspace_id not in owned_ids
        ]
        return owned + self._workspaces.list_by_ids(delegated_ids)

    def run_accept_delegation(self, input_data: AcceptDelegationInput) -> Delegation:
        workspace = self._get_workspace(input_data.workspace_id)
        delegation = self._delegations.get(workspace.id, input_data.actor.email)
        if delegation is None:
            raise NotFound("No delegation for this account in the workspace")
        return self._accept(delegation, input_data.actor)

    # --- Assets ---

    def run_submit_original(self, input_data: SubmitOriginalInput) -> Asset:
        actor = input_data.actor
        workspace = self._get_workspace(input_data.workspace_id)
        if not self._policy.can_submit_original(actor, workspace):
            raise Forbidden("Only the workspace owner can submit originals")

        email = input_data.delegate_email.strip().lower()
        delegate = self._accounts.get_by_email(email)
        if delegate is None:
            raise DelegateNotFound(f"No account for {email}", email=email)

        now = self._clock.now_utc()
        if self._delegations.get(workspace.id, email) is None:
            self._delegations.save(
                Delegation(workspace_id=workspace.id, email=email, created_at=now)
            )

        asset = Asset(
            workspace_id=workspace.id,
            uploaded_by=actor.id,
            assigned_to=delegate.id,
            original_ref=input_data.original_ref,
            title=input_data.title,
            description=input_data.description,
            created_at=now,
            updated_at=now,
        )
        self._assets.save(asset)
        logger.info("Asset %s submitted to %s in workspace %s", asset.id, delegate.id, workspace.id)
        return asset

    def run_submit_edit(self, input_data: SubmitEditInput) -> Asset:
        actor = input_data.actor
        asset = self._get_asset(input_data.asset_id)
        if not self._policy.can_submit_edit(actor, asset):
            raise Forbidden("Only the assigned delegate can submit an edit")

        updated = apply_edit(asset, input_data.edited_ref, input_data.metadata, self._clock.now_utc())
        self._assets.save(updated)
        logger.info("Asset %s: %s -> %s (edit)", asset.id, asset.status, updated.status)

        delegation = self._delegations.get(asset.workspace_id, actor.email)
        if delegation is not None:
            self._accept(delegation, actor)
        return updated

    def run_decide(self, input_data: DecideInput) -> Asset:
        asset = self._get_asset(input_data.asset_id)
        workspace = self._get_workspace(asset.workspace_id)
        # Ownership is checked before the status so non-owners learn nothing.
        if not self._policy.can_decide(input_data.actor, workspace):
            raise Forbidden("Only the workspace owner can review assets")
        if input_data.decision not in ("approve", "request_changes"):
            raise ValueError(f"Unknown decision: {input_data.decision}")

        updated = apply_decision(
            asset, input_data.decision, self._clock.now_utc(), input_data.feedback
        )
        self._assets.save(updated)
        logger.info("Asset %s: %s -> %s", asset.id, asset.status, updated.status)
        return updated

    def run_get_asset(self, input_data: GetAssetInput) -> Asset:
        asset = self._get_asset(input_data.asset_id)
        workspace = self._get_workspace(asset.workspace_id)
        if not self._policy.can_view_asset(input_data.actor, asset, workspace):
            raise Forbidden("No access to this asset")
        return asset

    def run_list_assets(self, input_data: ListAssetsInput) -> list[Asset]:
        actor = input_data.actor
        workspace = self._get_workspace(input_data.workspace_id)
        assets = self._assets.list_by_workspace(workspace.id)
        if self._policy.owns_workspace(actor, workspace):
            return assets
        if self._delegations.get(workspace.id, actor.email) is None:
            raise Forbidden("No access to this workspace")
        return [a for a in assets if a.assigned_to == actor.id]

    # --- Publish ---

    def run_publish(self, input_data: PublishInput) -> PublishOutput:
        actor = input_data.actor
        asset = self._get_asset(input_data.asset_id)
        workspace = self._get_workspace(asset.workspace_id)
        if not self._policy.can_publish(actor, workspace):
            raise Forbidden("Only the workspace owner can publish")
        if asset.platform_id:
            raise AlreadyPublished(asset.platform_id)
        if asset.status != "approved":
            raise InvalidTransition(asset.status, "publish")

        now = self._clock.now_utc()
        if not self._assets.claim_publish(asset.id, now):
            current = self._assets.get_by_id(asset.id)
            if current is not None and current.platform_id:
                raise AlreadyPublished(current.platform_id)
            raise PublishInProgress()

        try:
            credential = self._credentials.resolve_publishing_credential(workspace.owner_id)
        except Exception:
            self._assets.release_publish(asset.id)
            raise

        try:
            result = self._pipeline.publish_asset(asset, credential, input_data.options)
        except (QuotaExceeded, PublishFailed, AssetUnavailable):
            # The platform refused or never saw the upload.
            self._assets.release_publish(asset.id)
            raise
        except Exception:
            # The platform may hold the video; only reconciliation ends this claim.
            logger.warning(
                "Publish of asset %s ended without a known outcome; claim kept for reconciliation",
                asset.id,
            )
            raise

        record = PublicationRecord(
            platform_id=result.platform_id,
            title=result.metadata.title,
            description=result.metadata.description,
            visibility=result.metadata.visibility,
            made_for_kids=result.metadata.made_for_kids,
            published_at=self._clock.now_utc(),
        )
        if not self._assets.record_publication(asset.id, record):
            current = self._assets.get_by_id(asset.id)
            existing = current.platform_id if current and current.platform_id else ""
            logger.error(
                "Asset %s uploaded as %s but already recorded as %s",
                asset.id,
                result.platform_id,
                existing,
            )
            raise AlreadyPublished(existing)

        logger.info("Asset %s published as %s", asset.id, result.platform_id)
        published = asset.model_copy(
            update={
                "published": True,
                "platform_id": record.platform_id,
                "published_title": record.title,
                "published_description": record.description,
                "published_visibility": record.visibility,
                "published_made_for_kids": record.made_for_kids,
                "published_at": record.published_at,
                "publish_attempted_at": now,
            }
        )
        return PublishOutput(platform_id=result.platform_id, asset=published)

    def list_unreconciled(self) -> list[Asset]:
        """Assets whose publish was attempted but never recorded."""
        return self._assets.list_unreconciled()

    # --- Helpers ---

    def _get_workspace(self, workspace_id: UUID) -> Workspace:
        workspace = self._workspaces.get_by_id(workspace_id)
        if workspace is None:
            raise NotFound("Workspace not found")
        return workspace

    def _get_asset(self, asset_id: UUID) -> Asset:
        asset = self._assets.get_by_id(asset_id)
        if asset is None:
            raise NotFound("Asset not found")
        return asset

    def _accept(self, delegation: Delegation, actor: Account) -> Delegation:
        if delegation.status == "accepted":
            return delegation
        accepted = delegation.model_copy(
            update={
                "status": "accepted",
                "accepted_by": actor.id,
                "accepted_at": self._clock.now_utc(),
            }
        )
        self._delegations.save(accepted)
        logger.info("Delegation %s accepted by %s", delegation.id, actor.id)
        return accepted
