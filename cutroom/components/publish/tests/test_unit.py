"""
Publish component unit tests.

Tests for metadata resolution and platform error classification.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

import pytest

from cutroom.components.publish import (
    PublishAssetInput,
    PublishPipeline,
    resolve_metadata,
    run_publish_asset,
)
from cutroom.domain.entities import (
    Asset,
    DelegatedCredential,
    PublishOptions,
    VideoMetadata,
)
from cutroom.domain.errors import (
    AssetUnavailable,
    PlatformError,
    PublishFailed,
    QuotaExceeded,
    UpstreamTimeout,
)
from cutroom.rules.loader import load_rules
from cutroom.rules.models import PublishingRules

RULES_PATH = Path(__file__).resolve().parents[4] / "rules.yaml"

# --- Mock Implementations ---


class TrackingStream(io.BytesIO):
    pass


class MockAssetStore:
    """In-memory asset store that remembers every stream it hands out."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self.opened: list[TrackingStream] = []

    def add(self, ref: str, data: bytes) -> None:
        self._blobs[ref] = data

    def put(self, data: bytes | BinaryIO, content_type: str, filename: str = "") -> str:
        ref = f"assets/{uuid4()}.mp4"
        self._blobs[ref] = data if isinstance(data, bytes) else data.read()
        return ref

    def get_stream(self, ref: str) -> BinaryIO:
        if ref not in self._blobs:
            raise AssetUnavailable(ref=ref)
        stream = TrackingStream(self._blobs[ref])
        self.opened.append(stream)
        return stream

    def delete(self, ref: str) -> None:
        self._blobs.pop(ref, None)


class MockPlatform:
    """Records inserts; can be primed to fail."""

    def __init__(self) -> None:
        self.inserts: list[tuple[bytes, VideoMetadata, DelegatedCredential]] = []
        self.error: Exception | None = None

    def insert(
        self, stream: BinaryIO, metadata: VideoMetadata, credential: DelegatedCredential
    ) -> str:
        if self.error:
            raise self.error
        self.inserts.append((stream.read(), metadata, credential))
        return f"vid-{len(self.inserts)}"


# --- Fixtures ---


@pytest.fixture
def rules() -> PublishingRules:
    return load_rules(RULES_PATH).publishing


@pytest.fixture
def store() -> MockAssetStore:
    s = MockAssetStore()
    s.add("assets/original.mp4", b"original-bytes")
    s.add("assets/edited.mp4", b"edited-bytes")
    return s


@pytest.fixture
def platform() -> MockPlatform:
    return MockPlatform()


@pytest.fixture
def credential() -> DelegatedCredential:
    return DelegatedCredential(access_token="delegated", refresh_token="r", scope="upload")


def _asset(**overrides: object) -> Asset:
    fields: dict[str, object] = {
        "workspace_id": uuid4(),
        "uploaded_by": uuid4(),
        "assigned_to": uuid4(),
        "original_ref": "assets/original.mp4",
        "status": "approved",
    }
    fields.update(overrides)
    return Asset.model_validate(fields)


# --- Metadata ---


class TestResolveMetadata:
    def test_defaults_from_rules(self, rules: PublishingRules) -> None:
        meta = resolve_metadata(_asset(), PublishOptions(), rules)

        assert meta.title == rules.default_title
        assert meta.description == rules.default_description
        assert meta.visibility == rules.default_visibility
        assert meta.category_id == rules.category_id
        assert meta.made_for_kids is False

    def test_edit_metadata_used_when_no_options(self, rules: PublishingRules) -> None:
        asset = _asset(title="Cut v2", description="Final", tags=["vlog"])
        meta = resolve_metadata(asset, PublishOptions(), rules)

        assert (meta.title, meta.description, meta.tags) == ("Cut v2", "Final", ["vlog"])

    def test_options_override_edit_metadata(self, rules: PublishingRules) -> None:
        asset = _asset(title="Cut v2", description="Final", tags=["vlog"])
        options = PublishOptions(
            title="Launch", description="", tags=[], visibility="public", made_for_kids=True
        )
        meta = resolve_metadata(asset, options, rules)

        assert meta.title == "Launch"
        assert meta.description == ""
        assert meta.tags == []
        assert meta.visibility == "public"
        assert meta.made_for_kids is True

    def test_blank_title_falls_back_to_default(self, rules: PublishingRules) -> None:
        meta = resolve_metadata(_asset(title="   "), PublishOptions(), rules)
        assert meta.title == rules.default_title

    def test_text_is_cut_to_platform_limits(self, rules: PublishingRules) -> None:
        asset = _asset(title="t" * 300, description="d" * 6000)
        meta = resolve_metadata(asset, PublishOptions(), rules)

        assert len(meta.title) == rules.max_title_chars
        assert len(meta.description) == rules.max_description_chars

    def test_content_type_follows_ref(self, rules: PublishingRules) -> None:
        meta = resolve_metadata(_asset(original_ref="assets/a.mov"), PublishOptions(), rules)
        assert meta.content_type == "video/quicktime"

        meta = resolve_metadata(_asset(original_ref="assets/a.bin"), PublishOptions(), rules)
        assert meta.content_type == "video/mp4"


# --- Pipeline ---


class TestPublishAsset:
    def test_prefers_edited_binary(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        asset = _asset(edited_ref="assets/edited.mp4")
        out = run_publish_asset(PublishAssetInput(asset, credential), store, platform, rules)

        assert out.platform_id == "vid-1"
        data, _, used_credential = platform.inserts[0]
        assert data == b"edited-bytes"
        assert used_credential == credential

    def test_falls_back_to_original(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        run_publish_asset(PublishAssetInput(_asset(), credential), store, platform, rules)
        assert platform.inserts[0][0] == b"original-bytes"

    def test_stream_is_closed(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        run_publish_asset(PublishAssetInput(_asset(), credential), store, platform, rules)
        assert all(s.closed for s in store.opened)

    def test_missing_binary(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        asset = _asset(original_ref="assets/gone.mp4")
        with pytest.raises(AssetUnavailable):
            run_publish_asset(PublishAssetInput(asset, credential), store, platform, rules)
        assert platform.inserts == []

    def test_quota_error(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        platform.error = PlatformError("quota", "quotaExceeded", status_code=403)
        with pytest.raises(QuotaExceeded) as exc:
            run_publish_asset(PublishAssetInput(_asset(), credential), store, platform, rules)
        assert exc.value.retryable is True
        assert all(s.closed for s in store.opened)

    def test_other_platform_error(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        platform.error = PlatformError("other", "invalid video", status_code=400)
        with pytest.raises(PublishFailed) as exc:
            run_publish_asset(PublishAssetInput(_asset(), credential), store, platform, rules)
        assert exc.value.retryable is False

    def test_timeout_propagates(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        platform.error = UpstreamTimeout()
        with pytest.raises(UpstreamTimeout):
            run_publish_asset(PublishAssetInput(_asset(), credential), store, platform, rules)
        assert all(s.closed for s in store.opened)

    def test_pipeline_class_returns_resolved_metadata(
        self, store: MockAssetStore, platform: MockPlatform, credential: DelegatedCredential,
        rules: PublishingRules,
    ) -> None:
        pipeline = PublishPipeline(store, platform, rules)
        out = pipeline.publish_asset(_asset(title="Cut"), credential)

        assert out.metadata.title == "Cut"
        assert platform.inserts[0][1] == out.metadata
