"""Publishing pipeline port definitions - protocols for dependencies."""

from cutroom.ports.asset_store import AssetStorePort
from cutroom.ports.platform import PublishingPlatformPort

__all__ = ["AssetStorePort", "PublishingPlatformPort"]
