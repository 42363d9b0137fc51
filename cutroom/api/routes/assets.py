"""
Asset API routes.

Review actions on a single asset and the one-shot publish.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile

from cutroom.adapters.local_storage import LocalFileStorage
from cutroom.api.deps import get_asset_store, get_current_account, get_lifecycle
from cutroom.api.routes.workspaces import require_video
from cutroom.api.schemas import AssetResponse, DecisionRequest, PublishRequest, PublishResponse
from cutroom.components.lifecycle import (
    DecideInput,
    GetAssetInput,
    LifecycleComponent,
    PublishInput,
    SubmitEditInput,
)
from cutroom.domain.entities import Account, EditMetadata, PublishOptions

router = APIRouter()


def _split_tags(tags: str | None) -> list[str]:
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset(
    asset_id: UUID,
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> AssetResponse:
    asset = lifecycle.run_get_asset(GetAssetInput(actor=current, asset_id=asset_id))
    return AssetResponse.model_validate(asset)


@router.post("/{asset_id}/edit", response_model=AssetResponse)
def submit_edit(
    asset_id: UUID,
    file: UploadFile = File(...),
    title: str | None = Form(None),
    description: str | None = Form(None),
    tags: str | None = Form(None, description="Comma-separated"),
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
    store: LocalFileStorage = Depends(get_asset_store),
) -> AssetResponse:
    """Upload the edited cut and send it back for review."""
    content_type = require_video(file)
    ref = store.put(file.file, content_type, file.filename or "")
    try:
        asset = lifecycle.run_submit_edit(
            SubmitEditInput(
                actor=current,
                asset_id=asset_id,
                edited_ref=ref,
                metadata=EditMetadata(
                    title=title, description=description, tags=_split_tags(tags)
                ),
            )
        )
    except Exception:
        store.delete(ref)
        raise
    return AssetResponse.model_validate(asset)


@router.post("/{asset_id}/decision", response_model=AssetResponse)
def decide(
    asset_id: UUID,
    body: DecisionRequest,
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> AssetResponse:
    asset = lifecycle.run_decide(
        DecideInput(
            actor=current, asset_id=asset_id, decision=body.decision, feedback=body.feedback
        )
    )
    return AssetResponse.model_validate(asset)


@router.post("/{asset_id}/publish", response_model=PublishResponse)
def publish(
    asset_id: UUID,
    body: PublishRequest | None = None,
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> PublishResponse:
    """Publish an approved asset. Succeeds at most once per asset."""
    options = PublishOptions.model_validate(body.model_dump()) if body else PublishOptions()
    out = lifecycle.run_publish(PublishInput(actor=current, asset_id=asset_id, options=options))
    return PublishResponse(
        platform_id=out.platform_id, asset=AssetResponse.model_validate(out.asset)
    )
