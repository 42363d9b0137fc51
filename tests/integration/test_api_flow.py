from datetime import UTC, datetime, timedelta
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from cutroom.api.deps import get_identity_provider, get_lifecycle, get_rules, get_settings
from cutroom.api.main import app
from cutroom.domain.entities import DelegatedCredential, IdentityAssertion

ROOT = Path(__file__).resolve().parents[2]
BASE_URL = "https://testserver"


class FakeIdentityProvider:
    """The authorization code doubles as the local part of the email."""

    def begin_consent(self, role, state):
        return f"https://idp.example/consent?role={role}&state={state}"

    def complete_consent(self, code, role):
        delegated = None
        if role == "producer":
            delegated = DelegatedCredential(
                access_token=f"google-{code}",
                refresh_token="refresh",
                expires_at=datetime.now(UTC) + timedelta(hours=1),
            )
        return IdentityAssertion(email=f"{code}@example.com", role=role, delegated=delegated)

    def refresh_delegated(self, refresh_token):
        raise AssertionError("credential should still be fresh")


@pytest.fixture
def api_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CUTROOM_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CUTROOM_RULES_PATH", str(ROOT / "rules.yaml"))
    monkeypatch.setenv("CUTROOM_ACCESS_SECRET", "access-secret-for-tests")
    monkeypatch.setenv("CUTROOM_SESSION_SECRET", "session-secret-for-tests")
    monkeypatch.setenv("CUTROOM_PLATFORM", "dev")
    get_settings.cache_clear()
    get_rules.cache_clear()
    app.dependency_overrides[get_identity_provider] = FakeIdentityProvider
    yield
    app.dependency_overrides.clear()
    get_settings.cache_clear()
    get_rules.cache_clear()


@pytest.fixture
def producer(api_env):
    with TestClient(app, base_url=BASE_URL) as client:
        _sign_in(client, "maker", "producer")
        yield client


@pytest.fixture
def editor(api_env):
    with TestClient(app, base_url=BASE_URL) as client:
        _sign_in(client, "editor", "delegate")
        yield client


def _sign_in(client: TestClient, code: str, role: str) -> None:
    resp = client.get("/api/auth/sign-in", params={"role": role}, follow_redirects=False)
    assert resp.status_code == 302
    state = parse_qs(urlparse(resp.headers["location"]).query)["state"][0]

    resp = client.get(
        "/api/auth/callback", params={"code": code, "state": state}, follow_redirects=False
    )
    assert resp.status_code == 302
    assert resp.headers["location"].endswith("/dashboard")
    assert client.cookies.get("access_token")
    assert client.cookies.get("session_token")


def _video(name="clip.mp4", body=b"\x00\x00\x00\x18ftypmp42"):
    return {"file": (name, body, "video/mp4")}


def _stored_files(tmp_path: Path) -> list[Path]:
    assets_dir = tmp_path / "data" / "storage" / "assets"
    return list(assets_dir.iterdir()) if assets_dir.exists() else []


def _reviewed_asset(producer: TestClient, editor: TestClient) -> str:
    ws = producer.post("/api/workspaces", json={"name": "Main channel"}).json()
    asset = producer.post(
        f"/api/workspaces/{ws['id']}/assets",
        files=_video("raw.mp4"),
        data={"delegate_email": "editor@example.com", "title": "Raw"},
    ).json()

    resp = editor.post(
        f"/api/assets/{asset['id']}/edit",
        files=_video("final.mp4"),
        data={"title": "Final cut", "tags": "vlog, travel"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "review_ready"
    assert resp.json()["tags"] == ["vlog", "travel"]
    return asset["id"]


def test_health(api_env):
    with TestClient(app, base_url=BASE_URL) as client:
        assert client.get("/health").json() == {"status": "ok", "service": "api"}


def test_me_requires_credential(api_env):
    with TestClient(app, base_url=BASE_URL) as client:
        resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error_code"] == "UNAUTHENTICATED"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_sign_in_rejects_unknown_role(api_env):
    with TestClient(app, base_url=BASE_URL) as client:
        resp = client.get("/api/auth/sign-in", params={"role": "admin"}, follow_redirects=False)
    assert resp.status_code == 422


def test_declined_consent_returns_to_login(api_env):
    with TestClient(app, base_url=BASE_URL) as client:
        resp = client.get(
            "/api/auth/callback", params={"error": "access_denied"}, follow_redirects=False
        )
    assert resp.status_code == 302
    assert resp.headers["location"].endswith("/login?error=access_denied")


def test_me_returns_account(producer):
    body = producer.get("/api/auth/me").json()
    assert body["email"] == "maker@example.com"
    assert body["role"] == "producer"
    assert body["delegated"] is True


def test_bearer_access(producer):
    token = producer.cookies.get("access_token")
    with TestClient(app, base_url=BASE_URL) as client:
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


def test_refresh_rotates_and_rejects_replay(producer):
    old_session = producer.cookies.get("session_token")

    resp = producer.post("/api/auth/refresh")
    assert resp.status_code == 200
    assert resp.json()["account"]["email"] == "maker@example.com"
    assert producer.cookies.get("session_token") != old_session

    replay = TestClient(app, base_url=BASE_URL)
    replay.cookies.set("session_token", old_session)
    resp = replay.post("/api/auth/refresh")
    assert resp.status_code == 401
    assert resp.json()["error_code"] == "SESSION_REVOKED"

    # A replay does not sign the legitimate holder out.
    assert producer.post("/api/auth/refresh").status_code == 200


def test_logout_clears_session(producer):
    session = producer.cookies.get("session_token")

    resp = producer.post("/api/auth/logout")
    assert resp.json() == {"status": "success"}
    assert producer.get("/api/auth/me").status_code == 401

    stale = TestClient(app, base_url=BASE_URL)
    stale.cookies.set("session_token", session)
    assert stale.post("/api/auth/refresh").status_code == 401

    # Repeating is harmless.
    assert producer.post("/api/auth/logout").status_code == 200


def test_delegates_cannot_create_workspaces(editor):
    resp = editor.post("/api/workspaces", json={"name": "Mine"})
    assert resp.status_code == 403
    assert resp.json()["error_code"] == "FORBIDDEN"


def test_unknown_delegate(producer, tmp_path):
    ws = producer.post("/api/workspaces", json={"name": "Main"}).json()
    resp = producer.post(
        f"/api/workspaces/{ws['id']}/assets",
        files=_video(),
        data={"delegate_email": "nobody@example.com"},
    )
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "DELEGATE_NOT_FOUND"
    assert _stored_files(tmp_path) == []


def test_blank_workspace_name_rejected(producer):
    resp = producer.post("/api/workspaces", json={"name": "   "})
    assert resp.status_code == 422

    resp = producer.post("/api/workspaces", json={"name": "  Main  "})
    assert resp.status_code == 201
    assert resp.json()["name"] == "Main"


class BrokenLifecycle:
    def run_submit_original(self, input_data):
        raise RuntimeError("database is locked")


def test_upload_removed_when_submit_crashes(api_env, tmp_path):
    app.dependency_overrides[get_lifecycle] = BrokenLifecycle
    with TestClient(app, base_url=BASE_URL, raise_server_exceptions=False) as client:
        _sign_in(client, "maker", "producer")
        resp = client.post(
            "/api/workspaces/6f1c1d1e-8a0b-4c55-9d0e-1f2a3b4c5d6e/assets",
            files=_video(),
            data={"delegate_email": "editor@example.com"},
        )
    assert resp.status_code == 500
    assert _stored_files(tmp_path) == []


def test_non_video_upload_rejected(producer, editor):
    ws = producer.post("/api/workspaces", json={"name": "Main"}).json()
    resp = producer.post(
        f"/api/workspaces/{ws['id']}/assets",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"delegate_email": "editor@example.com"},
    )
    assert resp.status_code == 415


def test_delegate_sees_delegated_workspace(producer, editor):
    _reviewed_asset(producer, editor)

    workspaces = editor.get("/api/workspaces").json()
    assert [w["name"] for w in workspaces] == ["Main channel"]

    assets = editor.get(f"/api/workspaces/{workspaces[0]['id']}/assets").json()
    assert len(assets) == 1


def test_review_and_publish_once(producer, editor):
    asset_id = _reviewed_asset(producer, editor)

    # Delegates cannot approve or publish
    assert (
        editor.post(f"/api/assets/{asset_id}/decision", json={"decision": "approve"}).status_code
        == 403
    )
    assert editor.post(f"/api/assets/{asset_id}/publish").status_code == 403

    # Not approved yet
    resp = producer.post(f"/api/assets/{asset_id}/publish")
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "INVALID_TRANSITION"

    resp = producer.post(f"/api/assets/{asset_id}/decision", json={"decision": "approve"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"

    resp = producer.post(f"/api/assets/{asset_id}/publish", json={"visibility": "unlisted"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["platform_id"].startswith("dev-")
    assert body["asset"]["published"] is True
    assert body["asset"]["published_title"] == "Final cut"
    assert body["asset"]["published_visibility"] == "unlisted"

    resp = producer.post(f"/api/assets/{asset_id}/publish")
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "ALREADY_PUBLISHED"
    assert resp.json()["platform_id"] == body["platform_id"]

    stored = producer.get(f"/api/assets/{asset_id}").json()
    assert stored["platform_id"] == body["platform_id"]
    assert stored["status"] == "approved"


def test_request_changes_round_trip(producer, editor):
    asset_id = _reviewed_asset(producer, editor)

    resp = producer.post(
        f"/api/assets/{asset_id}/decision",
        json={"decision": "request_changes", "feedback": "Shorter intro"},
    )
    assert resp.json()["status"] == "changes_requested"
    assert editor.get(f"/api/assets/{asset_id}").json()["feedback"] == "Shorter intro"

    resp = editor.post(f"/api/assets/{asset_id}/edit", files=_video("v2.mp4"))
    assert resp.json()["status"] == "review_ready"
