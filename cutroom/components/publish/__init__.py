"""Publish component - streams an approved asset to the publishing platform."""

from cutroom.components.publish.component import (
    PublishPipeline,
    resolve_metadata,
    run,
    run_publish_asset,
)
from cutroom.components.publish.models import PublishAssetInput, PublishAssetOutput
from cutroom.components.publish.ports import AssetStorePort, PublishingPlatformPort

__all__ = [
    # Entry points
    "run",
    "run_publish_asset",
    "resolve_metadata",
    # Component
    "PublishPipeline",
    # Models
    "PublishAssetInput",
    "PublishAssetOutput",
    # Ports
    "AssetStorePort",
    "PublishingPlatformPort",
]
