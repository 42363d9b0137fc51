from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class AccessRules(BaseModel):
    ttl_minutes: int = Field(gt=0)


class SessionCookieRules(BaseModel):
    secure: bool
    http_only: bool
    same_site: str
    access_name: str = "access_token"
    session_name: str = "session_token"
    session_path: str = "/api/auth"


class SessionsRules(BaseModel):
    ttl_days: int = Field(gt=0)
    store_tokens_hashed: bool
    cookie: SessionCookieRules


class OAuthRules(BaseModel):
    state_ttl_minutes: int = Field(gt=0)
    producer_scopes: list[str]
    delegate_scopes: list[str]


class AuthRules(BaseModel):
    access: AccessRules
    sessions: SessionsRules
    oauth: OAuthRules


class DelegationRules(BaseModel):
    refresh_skew_seconds: int = Field(ge=0)


class RbacRules(BaseModel):
    roles: dict[str, list[str]]


class ReviewRules(BaseModel):
    enforce_assignee_on_edit: bool = True


class PublishingRules(BaseModel):
    default_visibility: str = "private"
    default_title: str = "Untitled Video"
    default_description: str = ""
    category_id: str = "22"
    max_title_chars: int = 100
    max_description_chars: int = 5000
    chunk_bytes: int = Field(gt=0)


class TimeoutRules(BaseModel):
    identity_provider_seconds: float = Field(gt=0)
    platform_connect_seconds: float = Field(gt=0)
    platform_upload_seconds: float = Field(gt=0)


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules
    delegation: DelegationRules
    rbac: RbacRules
    review: ReviewRules
    publishing: PublishingRules
    timeouts: TimeoutRules
    ops: OpsRules
