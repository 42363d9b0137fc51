"""Publishing pipeline models - frozen dataclass inputs and outputs."""

from dataclasses import dataclass, field

from cutroom.domain.entities import Asset, DelegatedCredential, PublishOptions, VideoMetadata


@dataclass(frozen=True)
class PublishAssetInput:
    """Input for streaming one asset to the platform."""

    asset: Asset
    credential: DelegatedCredential
    options: PublishOptions = field(default_factory=PublishOptions)


@dataclass(frozen=True)
class PublishAssetOutput:
    """Platform identifier plus the metadata actually sent."""

    platform_id: str
    metadata: VideoMetadata
