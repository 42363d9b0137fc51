"""
Workspace API routes.

Workspaces, delegation acceptance and original uploads.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from cutroom.adapters.local_storage import LocalFileStorage
from cutroom.api.deps import get_asset_store, get_current_account, get_lifecycle
from cutroom.api.schemas import (
    AssetResponse,
    DelegationResponse,
    WorkspaceCreateRequest,
    WorkspaceResponse,
)
from cutroom.components.lifecycle import (
    AcceptDelegationInput,
    CreateWorkspaceInput,
    LifecycleComponent,
    ListAssetsInput,
    ListWorkspacesInput,
    SubmitOriginalInput,
)
from cutroom.domain.entities import Account

logger = logging.getLogger(__name__)

router = APIRouter()


def require_video(file: UploadFile) -> str:
    content_type = file.content_type or ""
    if not content_type.startswith("video/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Expected a video upload, got '{content_type or 'unknown'}'",
        )
    return content_type


@router.post("", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
def create_workspace(
    body: WorkspaceCreateRequest,
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> WorkspaceResponse:
    workspace = lifecycle.run_create_workspace(CreateWorkspaceInput(actor=current, name=body.name))
    return WorkspaceResponse.model_validate(workspace)


@router.get("", response_model=list[WorkspaceResponse])
def list_workspaces(
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> list[WorkspaceResponse]:
    workspaces = lifecycle.run_list_workspaces(ListWorkspacesInput(actor=current))
    return [WorkspaceResponse.model_validate(w) for w in workspaces]


@router.post("/{workspace_id}/delegation/accept", response_model=DelegationResponse)
def accept_delegation(
    workspace_id: UUID,
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> DelegationResponse:
    delegation = lifecycle.run_accept_delegation(
        AcceptDelegationInput(actor=current, workspace_id=workspace_id)
    )
    return DelegationResponse.model_validate(delegation)


@router.get("/{workspace_id}/assets", response_model=list[AssetResponse])
def list_assets(
    workspace_id: UUID,
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> list[AssetResponse]:
    assets = lifecycle.run_list_assets(ListAssetsInput(actor=current, workspace_id=workspace_id))
    return [AssetResponse.model_validate(a) for a in assets]


@router.post(
    "/{workspace_id}/assets",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_original(
    workspace_id: UUID,
    file: UploadFile = File(...),
    delegate_email: str = Form(...),
    title: str | None = Form(None),
    description: str | None = Form(None),
    current: Account = Depends(get_current_account),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
    store: LocalFileStorage = Depends(get_asset_store),
) -> AssetResponse:
    """Upload a raw video and hand it to a delegate."""
    content_type = require_video(file)
    ref = store.put(file.file, content_type, file.filename or "")
    try:
        asset = lifecycle.run_submit_original(
            SubmitOriginalInput(
                actor=current,
                workspace_id=workspace_id,
                delegate_email=delegate_email,
                original_ref=ref,
                title=title,
                description=description,
            )
        )
    except Exception:
        store.delete(ref)
        raise
    return AssetResponse.model_validate(asset)
