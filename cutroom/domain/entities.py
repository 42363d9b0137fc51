from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["producer", "delegate"]
AssetStatus = Literal["pending", "review_ready", "changes_requested", "approved"]
DelegationStatus = Literal["pending", "accepted"]
Visibility = Literal["public", "unlisted", "private"]
Decision = Literal["approve", "request_changes"]


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Accounts & Credentials ---

class DelegatedCredential(BaseModel):
    """Third-party credential bundle letting us act on a producer's behalf."""

    access_token: str
    refresh_token: str | None = None
    scope: str = ""
    expires_at: datetime | None = None

    def is_expired(self, now: datetime, skew_seconds: int = 0) -> bool:
        if self.expires_at is None:
            return False
        return (self.expires_at - now).total_seconds() <= skew_seconds


class SessionRecord(BaseModel):
    token_hash: str
    issued_at: datetime


class Account(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    role: RoleType
    delegated: DelegatedCredential | None = None
    session: SessionRecord | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class IdentityAssertion(BaseModel):
    """Verified identity handed back by the Identity Provider."""

    email: str
    role: RoleType
    delegated: DelegatedCredential | None = None


class CredentialPair(BaseModel):
    access_token: str
    session_token: str
    access_expires_at: datetime
    session_expires_at: datetime


# --- Collaboration ---

class Workspace(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    owner_id: UUID
    created_at: datetime = Field(default_factory=utcnow)


class Delegation(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    workspace_id: UUID
    email: str
    status: DelegationStatus = "pending"
    accepted_by: UUID | None = None
    accepted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)


# --- Assets ---

class EditMetadata(BaseModel):
    title: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)


class PublishOptions(BaseModel):
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    visibility: Visibility | None = None
    made_for_kids: bool = False


class VideoMetadata(BaseModel):
    """Resolved metadata sent to the Publishing Platform."""

    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = "private"
    made_for_kids: bool = False
    category_id: str = "22"
    content_type: str = "video/mp4"


class Asset(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    workspace_id: UUID
    uploaded_by: UUID
    assigned_to: UUID
    original_ref: str
    edited_ref: str | None = None
    status: AssetStatus = "pending"

    title: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    edited_at: datetime | None = None

    feedback: str | None = None
    feedback_at: datetime | None = None

    # Publication is tracked apart from the review status.
    published: bool = False
    platform_id: str | None = None
    published_title: str | None = None
    published_description: str | None = None
    published_visibility: Visibility | None = None
    published_made_for_kids: bool | None = None
    published_at: datetime | None = None
    publish_attempted_at: datetime | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def publish_ref(self) -> str:
        """Binary to publish: the edited cut when present, else the original."""
        return self.edited_ref or self.original_ref


class PublicationRecord(BaseModel):
    """Values committed onto an Asset after a successful platform insert."""

    platform_id: str
    title: str
    description: str
    visibility: Visibility
    made_for_kids: bool
    published_at: datetime
