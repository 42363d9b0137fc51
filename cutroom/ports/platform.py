from typing import BinaryIO, Protocol

from cutroom.domain.entities import DelegatedCredential, VideoMetadata


class PublishingPlatformPort(Protocol):
    def insert(
        self, stream: BinaryIO, metadata: VideoMetadata, credential: DelegatedCredential
    ) -> str:
        """
        Upload a video and return the platform-assigned identifier.
        Raises PlatformError(kind="quota" | "other") when nothing was created,
        UpstreamTimeout or PublishOutcomeUnknown when the upload may have landed.
        """
        ...
