"""
YouTube Data API adapter for PublishingPlatformPort.

Flow: POST metadata (Location header) -> PUT binary in chunks -> video id.
"""

import logging
import os
from collections.abc import Iterator
from typing import Any, BinaryIO

import httpx

from cutroom.domain.entities import DelegatedCredential, VideoMetadata
from cutroom.domain.errors import PlatformError, PublishOutcomeUnknown, UpstreamTimeout

logger = logging.getLogger(__name__)

UPLOAD_URL = (
    "https://www.googleapis.com/upload/youtube/v3/videos"
    "?uploadType=resumable&part=snippet,status"
)

QUOTA_REASONS = frozenset(
    {
        "quotaExceeded",
        "rateLimitExceeded",
        "userRateLimitExceeded",
        "dailyLimitExceeded",
        "uploadLimitExceeded",
    }
)


def classify_error(resp: httpx.Response) -> PlatformError:
    """Map a failed API response to PlatformError(kind="quota" | "other")."""
    reasons: set[str] = set()
    message = resp.text[:200]
    try:
        error = resp.json().get("error", {})
        message = error.get("message", message)
        reasons = {e.get("reason", "") for e in error.get("errors", [])}
    except (ValueError, AttributeError):
        pass

    if resp.status_code == 429 or reasons & QUOTA_REASONS:
        return PlatformError("quota", message, status_code=resp.status_code)
    return PlatformError("other", message, status_code=resp.status_code)


def _stream_size(stream: BinaryIO) -> int | None:
    try:
        return os.fstat(stream.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        pass
    try:
        pos = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(pos)
        return end - pos
    except (AttributeError, OSError, ValueError):
        return None


def _iter_chunks(stream: BinaryIO, chunk_bytes: int) -> Iterator[bytes]:
    while True:
        chunk = stream.read(chunk_bytes)
        if not chunk:
            break
        yield chunk


class YouTubePlatform:
    def __init__(
        self,
        *,
        connect_timeout: float = 10.0,
        upload_timeout: float = 300.0,
        chunk_bytes: int = 1024 * 1024,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = httpx.Timeout(upload_timeout, connect=connect_timeout)
        self.chunk_bytes = chunk_bytes
        self._transport = transport

    def _body(self, metadata: VideoMetadata) -> dict[str, Any]:
        return {
            "snippet": {
                "title": metadata.title,
                "description": metadata.description,
                "tags": metadata.tags,
                "categoryId": metadata.category_id,
            },
            "status": {
                "privacyStatus": metadata.visibility,
                "selfDeclaredMadeForKids": metadata.made_for_kids,
            },
        }

    def insert(
        self, stream: BinaryIO, metadata: VideoMetadata, credential: DelegatedCredential
    ) -> str:
        size = _stream_size(stream)
        init_headers = {
            "Authorization": f"Bearer {credential.access_token}",
            "X-Upload-Content-Type": metadata.content_type,
        }
        if size is not None:
            init_headers["X-Upload-Content-Length"] = str(size)

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            # Step 1: Initialize resumable upload. Nothing is on the platform yet.
            try:
                init_resp = client.post(UPLOAD_URL, headers=init_headers, json=self._body(metadata))
            except httpx.TimeoutException:
                raise UpstreamTimeout("Publishing platform timed out") from None
            except httpx.HTTPError as e:
                raise PlatformError("other", f"Publishing platform unreachable: {e}") from e

            if init_resp.status_code != 200:
                raise classify_error(init_resp)

            upload_url = init_resp.headers.get("Location")
            if not upload_url:
                raise PlatformError("other", "No upload URL in response")

            # Step 2: Upload video binary. From here on a lost answer may hide a created video.
            upload_headers = {"Content-Type": metadata.content_type}
            if size is not None:
                upload_headers["Content-Length"] = str(size)
            try:
                upload_resp = client.put(
                    upload_url,
                    headers=upload_headers,
                    content=_iter_chunks(stream, self.chunk_bytes),
                )
            except httpx.TimeoutException:
                raise UpstreamTimeout("Publishing platform timed out during upload") from None
            except httpx.HTTPError as e:
                raise PublishOutcomeUnknown(f"Upload interrupted: {e}") from e

        if upload_resp.status_code not in (200, 201):
            raise classify_error(upload_resp)

        try:
            video_id = upload_resp.json().get("id")
        except (ValueError, AttributeError) as e:
            raise PublishOutcomeUnknown(
                f"Upload accepted with unreadable body (HTTP {upload_resp.status_code})"
            ) from e
        if not video_id:
            raise PublishOutcomeUnknown("Upload accepted but the response carried no video id")

        logger.info("YouTube upload accepted: video_id=%s", video_id)
        return str(video_id)
