"""
Google OAuth adapter for IdentityProviderPort.

Producers consent to the upload scope with offline access so that a refresh
token comes back; delegates only share their email.
"""

import logging
from datetime import timedelta
from typing import Any
from urllib.parse import urlencode

import httpx

from cutroom.adapters.clock import SystemClock
from cutroom.domain.entities import DelegatedCredential, IdentityAssertion, RoleType
from cutroom.domain.errors import IdentityProviderError, UpstreamTimeout
from cutroom.ports.clock import ClockPort

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleIdentityProvider:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        producer_scopes: list[str],
        delegate_scopes: list[str],
        timeout_seconds: float = 20.0,
        clock: ClockPort | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.producer_scopes = producer_scopes
        self.delegate_scopes = delegate_scopes
        self.timeout_seconds = timeout_seconds
        self.clock = clock or SystemClock()
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout_seconds, transport=self._transport)

    def begin_consent(self, role: RoleType, state: str) -> str:
        scopes = self.producer_scopes if role == "producer" else self.delegate_scopes
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes),
            "state": state,
        }
        if role == "producer":
            # Google only returns a refresh token for offline access with forced consent.
            params["access_type"] = "offline"
            params["prompt"] = "consent"
            params["include_granted_scopes"] = "true"
        else:
            params["prompt"] = "select_account"
        return f"{AUTH_URL}?{urlencode(params)}"

    def complete_consent(self, code: str, role: RoleType) -> IdentityAssertion:
        if not code:
            raise IdentityProviderError("Authorization code missing")

        tokens = self._token_request(
            {
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        profile = self._userinfo(tokens["access_token"])

        email = profile.get("email")
        if not email:
            raise IdentityProviderError("Identity provider returned no email")
        if profile.get("email_verified") is False:
            raise IdentityProviderError("Email address is not verified")

        delegated = self._to_credential(tokens) if role == "producer" else None
        logger.info("Consent completed for %s as %s", email, role)
        return IdentityAssertion(email=email.lower(), role=role, delegated=delegated)

    def refresh_delegated(self, refresh_token: str) -> DelegatedCredential:
        tokens = self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )
        credential = self._to_credential(tokens)
        if credential.refresh_token is None:
            credential = credential.model_copy(update={"refresh_token": refresh_token})
        return credential

    def _to_credential(self, tokens: dict[str, Any]) -> DelegatedCredential:
        expires_at = None
        if tokens.get("expires_in") is not None:
            expires_at = self.clock.now_utc() + timedelta(seconds=int(tokens["expires_in"]))
        return DelegatedCredential(
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token"),
            scope=tokens.get("scope", ""),
            expires_at=expires_at,
        )

    def _token_request(self, data: dict[str, str]) -> dict[str, Any]:
        try:
            with self._client() as client:
                resp = client.post(TOKEN_URL, data=data)
        except httpx.TimeoutException:
            raise UpstreamTimeout("Identity provider timed out") from None
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if resp.status_code != 200:
            logger.warning(
                "Token endpoint refused %s grant: %s", data["grant_type"], resp.status_code
            )
            raise IdentityProviderError(
                f"Token endpoint returned {resp.status_code}", status=resp.status_code
            )

        payload: dict[str, Any] = resp.json()
        if not payload.get("access_token"):
            raise IdentityProviderError("Token endpoint returned no access token")
        return payload

    def _userinfo(self, access_token: str) -> dict[str, Any]:
        try:
            with self._client() as client:
                resp = client.get(
                    USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.TimeoutException:
            raise UpstreamTimeout("Identity provider timed out") from None
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if resp.status_code != 200:
            raise IdentityProviderError(
                f"Userinfo endpoint returned {resp.status_code}", status=resp.status_code
            )
        profile: dict[str, Any] = resp.json()
        return profile
