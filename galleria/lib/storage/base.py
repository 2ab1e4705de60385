"""Remote object store protocol and common types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class StoredObject:
    """What a backend reports back after accepting an upload."""

    reference: str
    url: str
    width: int
    height: int
    size: int
    format: str


@runtime_checkable
class StorageBackend(Protocol):
    """Interface for pluggable image storage backends.

    Each call is a single attempt; callers decide what a failure means.
    """

    async def upload(self, data: bytes, name: str, folder: str) -> StoredObject:
        """Store image bytes under *folder* and return the assigned reference."""
        ...

    async def delete(self, reference: str) -> None:
        """Remove an object. Missing objects are not an error."""
        ...

    async def get(self, reference: str) -> bytes:
        """Retrieve the raw bytes for a reference."""
        ...

    async def transform(self, reference: str, width: int, height: int | None) -> str:
        """Return the URL of a resized variant, producing it if needed."""
        ...

    async def get_url(self, reference: str) -> str:
        """Return a public or signed URL for the reference."""
        ...
