import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials

from cutroom.api.deps import (
    Settings,
    bearer_scheme,
    get_credential_manager,
    get_current_account,
    get_rules,
    get_settings,
)
from cutroom.api.schemas import AccountResponse, TokenResponse
from cutroom.components.credentials import AuthOutput, CredentialManager
from cutroom.domain.entities import Account, CredentialPair, RoleType
from cutroom.domain.errors import AccountNotFound, Unauthenticated
from cutroom.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


def _account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        email=account.email,
        role=account.role,
        delegated=account.delegated is not None,
    )


def _set_credential_cookies(response: Response, pair: CredentialPair, rules: Rules) -> None:
    cookie = rules.auth.sessions.cookie
    same_site = cookie.same_site.lower()
    response.set_cookie(
        key=cookie.access_name,
        value=pair.access_token,
        httponly=cookie.http_only,
        max_age=rules.auth.access.ttl_minutes * 60,
        path="/",
        samesite=same_site,  # type: ignore[arg-type]
        secure=cookie.secure,
    )
    # The session credential is only ever sent to the auth routes.
    response.set_cookie(
        key=cookie.session_name,
        value=pair.session_token,
        httponly=cookie.http_only,
        max_age=rules.auth.sessions.ttl_days * 24 * 60 * 60,
        path=cookie.session_path,
        samesite=same_site,  # type: ignore[arg-type]
        secure=cookie.secure,
    )


def _clear_credential_cookies(response: Response, rules: Rules) -> None:
    cookie = rules.auth.sessions.cookie
    response.delete_cookie(key=cookie.access_name, path="/")
    response.delete_cookie(key=cookie.session_name, path=cookie.session_path)


def _token_response(out: AuthOutput) -> TokenResponse:
    return TokenResponse(
        access_token=out.credentials.access_token,
        expires_at=out.credentials.access_expires_at,
        account=_account_response(out.account),
    )


@router.get("/sign-in")
def sign_in(
    role: RoleType = Query(...),
    manager: CredentialManager = Depends(get_credential_manager),
) -> RedirectResponse:
    """Redirect the browser to the identity provider's consent screen."""
    return RedirectResponse(url=manager.begin_sign_in(role), status_code=302)


@router.get("/callback")
def oauth_callback(
    state: str = Query(""),
    code: str = Query(""),
    error: str | None = Query(None),
    manager: CredentialManager = Depends(get_credential_manager),
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> RedirectResponse:
    """Identity provider redirect target. Issues credentials and returns to the frontend."""
    if error:
        logger.info("Consent declined: %s", error)
        query = urlencode({"error": error})
        return RedirectResponse(url=f"{settings.frontend_url}/login?{query}", status_code=302)

    out = manager.complete_sign_in(code, state)
    resp = RedirectResponse(url=f"{settings.frontend_url}/dashboard", status_code=302)
    _set_credential_cookies(resp, out.credentials, rules)
    return resp


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    request: Request,
    response: Response,
    manager: CredentialManager = Depends(get_credential_manager),
    rules: Rules = Depends(get_rules),
) -> TokenResponse:
    """Rotate the session credential. The presented one stops working."""
    session_token = request.cookies.get(rules.auth.sessions.cookie.session_name, "")
    out = manager.rotate(session_token)
    _set_credential_cookies(response, out.credentials, rules)
    return _token_response(out)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    bearer: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    manager: CredentialManager = Depends(get_credential_manager),
    rules: Rules = Depends(get_rules),
) -> dict[str, str]:
    """Clear the stored session and the credential cookies. Safe to repeat."""
    token = request.cookies.get(rules.auth.sessions.cookie.access_name)
    if not token and bearer is not None:
        token = bearer.credentials

    if token:
        try:
            manager.invalidate(manager.verify_access(token))
        except (Unauthenticated, AccountNotFound):
            logger.info("Logout with a stale access credential; clearing cookies only")

    _clear_credential_cookies(response, rules)
    return {"status": "success"}


@router.get("/me", response_model=AccountResponse)
def read_account_me(current: Account = Depends(get_current_account)) -> AccountResponse:
    """Get current account info."""
    return _account_response(current)
