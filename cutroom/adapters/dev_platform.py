import logging
from typing import BinaryIO
from uuid import uuid4

from cutroom.domain.entities import DelegatedCredential, VideoMetadata

logger = logging.getLogger(__name__)


class DevPublishingPlatform:
    """
    Publishing platform for local development.
    Drains the stream, logs what would have been uploaded and returns a synthetic id.
    """

    def __init__(self) -> None:
        self.published: list[tuple[str, VideoMetadata]] = []

    def insert(
        self, stream: BinaryIO, metadata: VideoMetadata, credential: DelegatedCredential
    ) -> str:
        size = 0
        while chunk := stream.read(64 * 1024):
            size += len(chunk)

        platform_id = f"dev-{uuid4().hex[:12]}"
        self.published.append((platform_id, metadata))
        logger.info(
            "[DEV PLATFORM] %s: %r (%s, %d bytes)",
            platform_id,
            metadata.title,
            metadata.visibility,
            size,
        )
        return platform_id
