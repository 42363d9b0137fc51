"""Publish component - resolves metadata and streams the asset to the platform."""

import logging
import mimetypes

from cutroom.components.publish.models import PublishAssetInput, PublishAssetOutput
from cutroom.components.publish.ports import AssetStorePort, PublishingPlatformPort
from cutroom.domain.entities import (
    Asset,
    DelegatedCredential,
    PublishOptions,
    VideoMetadata,
)
from cutroom.domain.errors import PlatformError, PublishFailed, QuotaExceeded
from cutroom.rules.models import PublishingRules

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "video/mp4"


def resolve_metadata(
    asset: Asset, options: PublishOptions, rules: PublishingRules
) -> VideoMetadata:
    """
    Explicit options win over the delegate's edit metadata, which wins over
    the configured defaults. Text is cut to the platform limits.
    """
    title = (options.title or asset.title or "").strip() or rules.default_title
    if options.description is not None:
        description = options.description
    else:
        description = asset.description or rules.default_description
    tags = options.tags if options.tags is not None else asset.tags

    content_type, _ = mimetypes.guess_type(asset.publish_ref)
    if not content_type or not content_type.startswith("video/"):
        content_type = DEFAULT_CONTENT_TYPE

    return VideoMetadata(
        title=title[: rules.max_title_chars],
        description=description[: rules.max_description_chars],
        tags=list(tags),
        visibility=options.visibility or rules.default_visibility,
        made_for_kids=options.made_for_kids,
        category_id=rules.category_id,
        content_type=content_type,
    )


def run_publish_asset(
    inp: PublishAssetInput,
    store: AssetStorePort,
    platform: PublishingPlatformPort,
    rules: PublishingRules,
) -> PublishAssetOutput:
    """Stream one asset to the platform. Persists nothing."""
    metadata = resolve_metadata(inp.asset, inp.options, rules)

    stream = store.get_stream(inp.asset.publish_ref)
    try:
        platform_id = platform.insert(stream, metadata, inp.credential)
    except PlatformError as e:
        if e.is_quota:
            logger.warning("Platform quota hit publishing asset %s: %s", inp.asset.id, e.message)
            raise QuotaExceeded(e.message) from e
        logger.warning("Platform rejected asset %s: %s", inp.asset.id, e.message)
        raise PublishFailed(e.message) from e
    finally:
        stream.close()

    logger.info("Asset %s accepted by platform as %s", inp.asset.id, platform_id)
    return PublishAssetOutput(platform_id=platform_id, metadata=metadata)


class PublishPipeline:
    """Binds the store, platform and rules so callers only pass the asset."""

    def __init__(
        self,
        store: AssetStorePort,
        platform: PublishingPlatformPort,
        rules: PublishingRules,
    ) -> None:
        self._store = store
        self._platform = platform
        self._rules = rules

    def publish_asset(
        self,
        asset: Asset,
        credential: DelegatedCredential,
        options: PublishOptions | None = None,
    ) -> PublishAssetOutput:
        return run_publish_asset(
            PublishAssetInput(
                asset=asset, credential=credential, options=options or PublishOptions()
            ),
            self._store,
            self._platform,
            self._rules,
        )


def run(
    inp: PublishAssetInput,
    *,
    store: AssetStorePort,
    platform: PublishingPlatformPort,
    rules: PublishingRules,
) -> PublishAssetOutput:
    if isinstance(inp, PublishAssetInput):
        return run_publish_asset(inp, store, platform, rules)
    raise ValueError(f"Unknown input type: {type(inp)}")
