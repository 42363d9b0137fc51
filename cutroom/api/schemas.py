from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from cutroom.domain.entities import (
    AssetStatus,
    Decision,
    DelegationStatus,
    RoleType,
    Visibility,
)


# --- Auth ---
class AccountResponse(BaseModel):
    id: UUID
    email: str
    role: RoleType
    delegated: bool = False


class TokenResponse(BaseModel):
    """Access credential echoed for bearer clients; the session credential stays in its cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    account: AccountResponse


# --- Workspaces ---
class WorkspaceCreateRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class WorkspaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    owner_id: UUID
    created_at: datetime


class DelegationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    email: str
    status: DelegationStatus
    accepted_at: datetime | None = None


# --- Assets ---
class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    uploaded_by: UUID
    assigned_to: UUID
    status: AssetStatus
    original_ref: str
    edited_ref: str | None = None
    title: str | None = None
    description: str | None = None
    tags: list[str] = []
    edited_at: datetime | None = None
    feedback: str | None = None
    feedback_at: datetime | None = None
    published: bool = False
    platform_id: str | None = None
    published_title: str | None = None
    published_description: str | None = None
    published_visibility: Visibility | None = None
    published_made_for_kids: bool | None = None
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class DecisionRequest(BaseModel):
    decision: Decision
    feedback: str | None = Field(default=None, max_length=5000)


class PublishRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    visibility: Visibility | None = None
    made_for_kids: bool = False


class PublishResponse(BaseModel):
    platform_id: str
    asset: AssetResponse
