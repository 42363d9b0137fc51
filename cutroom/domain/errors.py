"""
Error taxonomy shared by components, adapters and the HTTP shell.

Components raise these; the HTTP layer maps `code` to a status.
`retryable` tells callers whether backing off and retrying can help.
"""

from __future__ import annotations

from typing import Any


class CutroomError(Exception):
    """Base error. Subclasses set a stable `code`."""

    code = "INTERNAL"
    retryable = False

    def __init__(self, message: str = "", **details: Any) -> None:
        self.message = message or self.__class__.__doc__ or self.code
        self.details = details
        super().__init__(f"[{self.code}] {self.message}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "error_message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


# --- Credentials ---


class Unauthenticated(CutroomError):
    """Missing, malformed or expired credential."""

    code = "UNAUTHENTICATED"


class AccountNotFound(CutroomError):
    """Credential refers to an account that no longer exists."""

    code = "ACCOUNT_NOT_FOUND"


class SessionRevoked(CutroomError):
    """Session credential is valid but no longer the current one."""

    code = "SESSION_REVOKED"


class NotDelegated(CutroomError):
    """Account has no delegated publishing credential."""

    code = "NOT_DELEGATED"


class DelegationExpired(CutroomError):
    """Delegated credential could not be refreshed; consent must be repeated."""

    code = "DELEGATION_EXPIRED"


# --- Lifecycle ---


class Forbidden(CutroomError):
    """Authenticated but not allowed to act on this workspace or asset."""

    code = "FORBIDDEN"


class NotFound(CutroomError):
    """Entity does not exist."""

    code = "NOT_FOUND"


class DelegateNotFound(CutroomError):
    """No account exists for the named delegate email."""

    code = "DELEGATE_NOT_FOUND"


class InvalidTransition(CutroomError):
    """Transition not allowed from the asset's current status."""

    code = "INVALID_TRANSITION"

    def __init__(self, current: str, event: str) -> None:
        self.current = current
        self.event = event
        super().__init__(f"Cannot {event} an asset in status '{current}'", status=current)


class AlreadyPublished(CutroomError):
    """Asset already carries a platform identifier."""

    code = "ALREADY_PUBLISHED"

    def __init__(self, platform_id: str) -> None:
        self.platform_id = platform_id
        super().__init__("Asset has already been published", platform_id=platform_id)


class PublishInProgress(CutroomError):
    """Another publish attempt holds the claim on this asset."""

    code = "PUBLISH_IN_PROGRESS"
    retryable = True


# --- Collaborator failures ---


class AssetUnavailable(CutroomError):
    """Asset Store reference no longer resolves."""

    code = "ASSET_UNAVAILABLE"


class QuotaExceeded(CutroomError):
    """Publishing Platform reported a quota or rate limit."""

    code = "QUOTA_EXCEEDED"
    retryable = True


class PublishFailed(CutroomError):
    """Publishing Platform rejected the upload."""

    code = "PUBLISH_FAILED"


class UpstreamTimeout(CutroomError):
    """External collaborator did not answer within its timeout."""

    code = "UPSTREAM_TIMEOUT"
    retryable = True


class PublishOutcomeUnknown(CutroomError):
    """Upload was sent but the platform's answer could not be read."""

    code = "PUBLISH_OUTCOME_UNKNOWN"


# --- Port-level failures raised by adapters ---


class IdentityProviderError(CutroomError):
    """Identity Provider refused a consent exchange or refresh."""

    code = "IDENTITY_PROVIDER_ERROR"


class PlatformError(CutroomError):
    """Publishing Platform error, classified as 'quota' or 'other'."""

    code = "PLATFORM_ERROR"

    def __init__(self, kind: str, message: str, status_code: int | None = None) -> None:
        self.kind = kind
        self.status_code = status_code
        super().__init__(message, kind=kind)

    @property
    def is_quota(self) -> bool:
        return self.kind == "quota"
