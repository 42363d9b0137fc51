"""
Local Filesystem Asset Store.

Implements AssetStorePort on a local directory for development and
single-server deployments.

Refs look like "assets/<uuid>.<ext>" and are relative to the base path.
Stored binaries are immutable; a ref never points at different bytes.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from cutroom.domain.errors import AssetUnavailable

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class LocalFileStorage:
    """
    Local filesystem implementation of AssetStorePort.

    Directory structure: {base_path}/assets/{uuid}.{ext}
    """

    def __init__(self, base_path: str | Path, *, create_dirs: bool = True) -> None:
        self.base_path = Path(base_path)
        if create_dirs:
            (self.base_path / "assets").mkdir(parents=True, exist_ok=True)

    def _ref_to_path(self, ref: str) -> Path:
        # Sanitize ref to prevent directory traversal
        safe_ref = ref.replace("..", "").lstrip("/")
        return self.base_path / safe_ref

    def _extension_for(self, content_type: str, filename: str) -> str:
        suffix = Path(filename).suffix.lower() if filename else ""
        if suffix and len(suffix) <= 8:
            return suffix
        guessed = mimetypes.guess_extension(content_type or "")
        return guessed or ".bin"

    def put(self, data: bytes | BinaryIO, content_type: str, filename: str = "") -> str:
        """Store bytes under a fresh ref and return it."""
        ref = f"assets/{uuid4()}{self._extension_for(content_type, filename)}"
        path = self._ref_to_path(ref)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            if isinstance(data, bytes):
                f.write(data)
            else:
                # Stream from file-like object
                shutil.copyfileobj(data, f, CHUNK_SIZE)

        logger.info("Stored asset %s (%d bytes)", ref, path.stat().st_size)
        return ref

    def get_stream(self, ref: str) -> BinaryIO:
        """Open a read handle. Caller is responsible for closing it."""
        path = self._ref_to_path(ref)
        try:
            return open(path, "rb")
        except (FileNotFoundError, IsADirectoryError):
            raise AssetUnavailable(f"Asset reference no longer resolves: {ref}", ref=ref) from None

    def exists(self, ref: str) -> bool:
        return self._ref_to_path(ref).is_file()

    def delete(self, ref: str) -> None:
        path = self._ref_to_path(ref)
        if path.is_file():
            path.unlink()
            logger.info("Deleted asset %s", ref)


def create_local_storage(
    base_path: str | Path | None = None,
    *,
    env_var: str = "CUTROOM_STORAGE_PATH",
    default_path: str = "./data/storage",
) -> LocalFileStorage:
    """Build LocalFileStorage from an explicit path or the environment."""
    if base_path is None:
        base_path = os.environ.get(env_var, default_path)
    return LocalFileStorage(base_path)
