from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from cutroom.adapters.google_identity import TOKEN_URL, USERINFO_URL, GoogleIdentityProvider
from cutroom.domain.errors import IdentityProviderError, UpstreamTimeout

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


class FixedClock:
    def now_utc(self):
        return NOW


def _provider(handler) -> GoogleIdentityProvider:
    return GoogleIdentityProvider(
        "client-id",
        "client-secret",
        "http://localhost:8000/api/auth/callback",
        producer_scopes=["openid", "email", "https://www.googleapis.com/auth/youtube.upload"],
        delegate_scopes=["openid", "email"],
        clock=FixedClock(),
        transport=httpx.MockTransport(handler),
    )


def _google(token_payload, profile=None, token_status=200):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if str(request.url) == TOKEN_URL:
            return httpx.Response(token_status, json=token_payload)
        if str(request.url) == USERINFO_URL:
            return httpx.Response(200, json=profile or {})
        return httpx.Response(404)

    return handler, seen


def test_producer_consent_url_asks_for_offline_access():
    provider = _provider(lambda r: httpx.Response(500))
    url = provider.begin_consent("producer", "state-123")
    query = parse_qs(urlparse(url).query)

    assert query["state"] == ["state-123"]
    assert query["access_type"] == ["offline"]
    assert query["prompt"] == ["consent"]
    assert "youtube.upload" in query["scope"][0]


def test_delegate_consent_url_is_identity_only():
    provider = _provider(lambda r: httpx.Response(500))
    query = parse_qs(urlparse(provider.begin_consent("delegate", "s")).query)

    assert "access_type" not in query
    assert query["scope"] == ["openid email"]


def test_complete_consent_for_producer():
    handler, seen = _google(
        {
            "access_token": "ya29.a",
            "refresh_token": "1//r",
            "expires_in": 3599,
            "scope": "openid email youtube.upload",
        },
        {"email": "Maker@Example.com", "email_verified": True},
    )
    assertion = _provider(handler).complete_consent("code-1", "producer")

    assert assertion.email == "maker@example.com"
    assert assertion.role == "producer"
    assert assertion.delegated is not None
    assert assertion.delegated.refresh_token == "1//r"
    assert assertion.delegated.expires_at == NOW + timedelta(seconds=3599)

    token_request = seen[0]
    form = parse_qs(token_request.content.decode())
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["code-1"]
    assert seen[1].headers["Authorization"] == "Bearer ya29.a"


def test_delegate_gets_no_bundle():
    handler, _ = _google({"access_token": "ya29.a"}, {"email": "ed@example.com"})
    assertion = _provider(handler).complete_consent("code", "delegate")
    assert assertion.delegated is None


def test_unverified_email_rejected():
    handler, _ = _google({"access_token": "a"}, {"email": "x@example.com", "email_verified": False})
    with pytest.raises(IdentityProviderError):
        _provider(handler).complete_consent("code", "delegate")


def test_refused_code():
    handler, _ = _google({"error": "invalid_grant"}, token_status=400)
    with pytest.raises(IdentityProviderError):
        _provider(handler).complete_consent("bad", "producer")


def test_refresh_keeps_refresh_token():
    handler, seen = _google({"access_token": "ya29.new", "expires_in": 3600})
    credential = _provider(handler).refresh_delegated("1//r")

    assert credential.access_token == "ya29.new"
    assert credential.refresh_token == "1//r"
    assert parse_qs(seen[0].content.decode())["grant_type"] == ["refresh_token"]


def test_refresh_revoked():
    handler, _ = _google({"error": "invalid_grant"}, token_status=400)
    with pytest.raises(IdentityProviderError):
        _provider(handler).refresh_delegated("1//r")


def test_timeout_maps_to_upstream_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(UpstreamTimeout):
        _provider(handler).refresh_delegated("1//r")


def test_connection_error():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(IdentityProviderError):
        _provider(handler).refresh_delegated("1//r")
