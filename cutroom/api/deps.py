import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cutroom.adapters.auth.tokens import JWTTokenAdapter
from cutroom.adapters.clock import SystemClock
from cutroom.adapters.dev_platform import DevPublishingPlatform
from cutroom.adapters.google_identity import GoogleIdentityProvider
from cutroom.adapters.local_storage import LocalFileStorage
from cutroom.adapters.sqlite.repos import (
    SQLiteAccountRepo,
    SQLiteAssetRepo,
    SQLiteDelegationRepo,
    SQLiteWorkspaceRepo,
)
from cutroom.adapters.youtube_platform import YouTubePlatform
from cutroom.components.credentials import ACCESS, SESSION, STATE, AccountLocks, CredentialManager
from cutroom.components.lifecycle import LifecycleComponent
from cutroom.components.publish import PublishPipeline
from cutroom.domain.entities import Account
from cutroom.domain.errors import Unauthenticated
from cutroom.domain.policy import PolicyEngine
from cutroom.ports.identity import IdentityProviderPort
from cutroom.ports.platform import PublishingPlatformPort
from cutroom.rules.loader import load_rules
from cutroom.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        data_dir = os.environ.get("CUTROOM_DATA_DIR", "./data")
        self.data_dir = Path(data_dir)
        self.db_path = f"{data_dir}/cutroom.db"
        self.storage_dir = Path(f"{data_dir}/storage")
        self.rules_path = Path(os.environ.get("CUTROOM_RULES_PATH", self.base_dir / "rules.yaml"))
        self.migrations_dir = self.base_dir / "migrations"

        self.access_secret = os.environ.get("CUTROOM_ACCESS_SECRET", "")
        self.session_secret = os.environ.get("CUTROOM_SESSION_SECRET", "")
        # OAuth state tokens carry their own "typ", so sharing the access key is safe.
        self.state_secret = os.environ.get("CUTROOM_STATE_SECRET", "") or self.access_secret

        self.google_client_id = os.environ.get("GOOGLE_CLIENT_ID", "")
        self.google_client_secret = os.environ.get("GOOGLE_CLIENT_SECRET", "")
        self.oauth_redirect_uri = os.environ.get(
            "CUTROOM_OAUTH_REDIRECT_URI", "http://localhost:8000/api/auth/callback"
        )
        self.frontend_url = os.environ.get("CUTROOM_FRONTEND_URL", "http://localhost:3000")
        self.platform = os.environ.get("CUTROOM_PLATFORM", "youtube")
        self.log_level = os.environ.get("CUTROOM_LOG_LEVEL", "INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_account_repo(settings: Settings = Depends(get_settings)) -> SQLiteAccountRepo:
    return SQLiteAccountRepo(settings.db_path)


def get_workspace_repo(settings: Settings = Depends(get_settings)) -> SQLiteWorkspaceRepo:
    return SQLiteWorkspaceRepo(settings.db_path)


def get_delegation_repo(settings: Settings = Depends(get_settings)) -> SQLiteDelegationRepo:
    return SQLiteDelegationRepo(settings.db_path)


def get_asset_repo(settings: Settings = Depends(get_settings)) -> SQLiteAssetRepo:
    return SQLiteAssetRepo(settings.db_path)


# --- Adapters ---
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# Refresh locks must outlive a single request to serialize refreshes.
_account_locks_instance: AccountLocks | None = None


def get_account_locks() -> AccountLocks:
    """Get account lock registry singleton."""
    global _account_locks_instance
    if _account_locks_instance is None:
        _account_locks_instance = AccountLocks()
    return _account_locks_instance


def get_token_adapter(settings: Settings = Depends(get_settings)) -> JWTTokenAdapter:
    return JWTTokenAdapter(
        {
            ACCESS: settings.access_secret,
            SESSION: settings.session_secret,
            STATE: settings.state_secret,
        }
    )


def get_identity_provider(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> IdentityProviderPort:
    return GoogleIdentityProvider(
        settings.google_client_id,
        settings.google_client_secret,
        settings.oauth_redirect_uri,
        producer_scopes=rules.auth.oauth.producer_scopes,
        delegate_scopes=rules.auth.oauth.delegate_scopes,
        timeout_seconds=rules.timeouts.identity_provider_seconds,
        clock=clock,
    )


def get_asset_store(settings: Settings = Depends(get_settings)) -> LocalFileStorage:
    return LocalFileStorage(settings.storage_dir)


_dev_platform_instance: DevPublishingPlatform | None = None


def get_platform(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> PublishingPlatformPort:
    global _dev_platform_instance
    if settings.platform == "dev":
        if _dev_platform_instance is None:
            _dev_platform_instance = DevPublishingPlatform()
        return _dev_platform_instance
    return YouTubePlatform(
        connect_timeout=rules.timeouts.platform_connect_seconds,
        upload_timeout=rules.timeouts.platform_upload_seconds,
        chunk_bytes=rules.publishing.chunk_bytes,
    )


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


def get_credential_manager(
    accounts: SQLiteAccountRepo = Depends(get_account_repo),
    tokens: JWTTokenAdapter = Depends(get_token_adapter),
    identity: IdentityProviderPort = Depends(get_identity_provider),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
    locks: AccountLocks = Depends(get_account_locks),
) -> CredentialManager:
    return CredentialManager(accounts, tokens, identity, rules, clock, locks)


def get_publish_pipeline(
    store: LocalFileStorage = Depends(get_asset_store),
    platform: PublishingPlatformPort = Depends(get_platform),
    rules: Rules = Depends(get_rules),
) -> PublishPipeline:
    return PublishPipeline(store, platform, rules.publishing)


def get_lifecycle(
    workspaces: SQLiteWorkspaceRepo = Depends(get_workspace_repo),
    delegations: SQLiteDelegationRepo = Depends(get_delegation_repo),
    assets: SQLiteAssetRepo = Depends(get_asset_repo),
    accounts: SQLiteAccountRepo = Depends(get_account_repo),
    credentials: CredentialManager = Depends(get_credential_manager),
    pipeline: PublishPipeline = Depends(get_publish_pipeline),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> LifecycleComponent:
    return LifecycleComponent(
        workspaces=workspaces,
        delegations=delegations,
        assets=assets,
        accounts=accounts,
        credentials=credentials,
        pipeline=pipeline,
        policy=policy,
        rules=rules,
        clock=clock,
    )


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_account(
    request: Request,
    bearer: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    manager: CredentialManager = Depends(get_credential_manager),
    rules: Rules = Depends(get_rules),
) -> Account:
    # 1. Try Cookie first (HttpOnly)
    token = request.cookies.get(rules.auth.sessions.cookie.access_name)

    # 2. Fall back to the Authorization header
    if not token and bearer is not None:
        token = bearer.credentials

    if not token:
        raise Unauthenticated("Credential missing")

    return manager.account_for_access(token)
