"""Local filesystem storage backend."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from uuid import uuid4

from galleria.lib.imaging import measure_image, resize_image, variant_key
from galleria.lib.storage.base import StoredObject

logger = logging.getLogger(__name__)


class LocalStorageBackend:
    """Store images on the local filesystem, served under ``/storage/<store>/``."""

    def __init__(self, base_path: Path, store_name: str = "default") -> None:
        self._base_path = base_path
        self._store_name = store_name

    @property
    def base_path(self) -> Path:
        return self._base_path

    async def upload(self, data: bytes, name: str, folder: str) -> StoredObject:
        info = measure_image(data)
        suffix = PurePosixPath(name).suffix.lower()
        reference = f"{folder.strip('/')}/{uuid4().hex}{suffix}"

        path = self._reference_to_path(reference)
        await asyncio.to_thread(self._write_file, path, data)
        logger.debug("Stored %s (%d bytes) in %s", reference, len(data), self._store_name)

        return StoredObject(
            reference=reference,
            url=self._build_url(reference),
            width=info.width,
            height=info.height,
            size=len(data),
            format=info.format,
        )

    async def delete(self, reference: str) -> None:
        path = self._reference_to_path(reference)
        await asyncio.to_thread(self._unlink_with_variants, path)

    async def get(self, reference: str) -> bytes:
        path = self._reference_to_path(reference)
        return await asyncio.to_thread(path.read_bytes)

    async def transform(self, reference: str, width: int, height: int | None) -> str:
        key = variant_key(reference, width, height)
        target = self._reference_to_path(key)

        if not await asyncio.to_thread(target.exists):
            original = await self.get(reference)
            resized, _ = await asyncio.to_thread(resize_image, original, width, height)
            await asyncio.to_thread(self._write_file, target, resized)

        return self._build_url(key)

    async def get_url(self, reference: str) -> str:
        return self._build_url(reference)

    # -- internal helpers --

    def _reference_to_path(self, reference: str) -> Path:
        parts = PurePosixPath(reference).parts
        if not parts or reference.startswith("/") or ".." in parts:
            raise ValueError(f"Invalid storage reference: {reference!r}")
        return self._base_path.joinpath(*parts)

    def _build_url(self, reference: str) -> str:
        return f"/storage/{self._store_name}/{reference}"

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    @staticmethod
    def _unlink_with_variants(path: Path) -> None:
        path.unlink(missing_ok=True)
        if path.parent.exists():
            for variant in path.parent.glob(f"{path.name}.*x*"):
                variant.unlink(missing_ok=True)
