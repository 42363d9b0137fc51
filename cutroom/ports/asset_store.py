from typing import BinaryIO, Protocol


class AssetStorePort(Protocol):
    """Binary storage. Refs are stable identifiers owned by the store."""

    def put(self, data: bytes | BinaryIO, content_type: str, filename: str = "") -> str:
        """Store bytes and return a stable ref."""
        ...

    def get_stream(self, ref: str) -> BinaryIO:
        """Open the binary for reading. Raises AssetUnavailable if the ref is gone."""
        ...

    def delete(self, ref: str) -> None:
        ...
