"""S3-compatible storage backend (requires ``pip install galleria[s3]``)."""

from __future__ import annotations

import asyncio
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from uuid import uuid4

try:
    import aioboto3
except ImportError as exc:
    raise ImportError(
        "S3 storage backend requires aioboto3. Install it with: pip install galleria[s3]"
    ) from exc

from galleria.lib.imaging import measure_image, resize_image, variant_key
from galleria.lib.storage.base import StoredObject

if TYPE_CHECKING:
    from galleria.config import S3Config


class S3StorageBackend:
    """Store images in an S3-compatible bucket."""

    def __init__(self, config: S3Config) -> None:
        self._config = config
        self._session = aioboto3.Session()

    def _client_kwargs(self) -> dict:
        kwargs: dict = {
            "region_name": self._config.region,
        }
        if self._config.endpoint_url:
            kwargs["endpoint_url"] = self._config.endpoint_url
        if self._config.access_key_id:
            kwargs["aws_access_key_id"] = self._config.access_key_id
        if self._config.secret_access_key:
            kwargs["aws_secret_access_key"] = self._config.secret_access_key
        return kwargs

    def _full_key(self, reference: str) -> str:
        if self._config.prefix:
            return f"{self._config.prefix.rstrip('/')}/{reference}"
        return reference

    async def _put(self, s3, reference: str, data: bytes, content_type: str) -> None:
        put_kwargs: dict = {
            "Bucket": self._config.bucket,
            "Key": self._full_key(reference),
            "Body": data,
            "ContentType": content_type,
        }
        if self._config.acl:
            put_kwargs["ACL"] = self._config.acl
        await s3.put_object(**put_kwargs)

    async def upload(self, data: bytes, name: str, folder: str) -> StoredObject:
        info = measure_image(data)
        suffix = PurePosixPath(name).suffix.lower()
        reference = f"{folder.strip('/')}/{uuid4().hex}{suffix}"

        async with self._session.client("s3", **self._client_kwargs()) as s3:
            await self._put(s3, reference, data, info.content_type)

        return StoredObject(
            reference=reference,
            url=await self.get_url(reference),
            width=info.width,
            height=info.height,
            size=len(data),
            format=info.format,
        )

    async def get(self, reference: str) -> bytes:
        async with self._session.client("s3", **self._client_kwargs()) as s3:
            response = await s3.get_object(
                Bucket=self._config.bucket, Key=self._full_key(reference)
            )
            return await response["Body"].read()

    async def delete(self, reference: str) -> None:
        async with self._session.client("s3", **self._client_kwargs()) as s3:
            await s3.delete_object(
                Bucket=self._config.bucket, Key=self._full_key(reference)
            )

    async def transform(self, reference: str, width: int, height: int | None) -> str:
        key = variant_key(reference, width, height)

        async with self._session.client("s3", **self._client_kwargs()) as s3:
            try:
                await s3.head_object(Bucket=self._config.bucket, Key=self._full_key(key))
            except s3.exceptions.ClientError:
                response = await s3.get_object(
                    Bucket=self._config.bucket, Key=self._full_key(reference)
                )
                original = await response["Body"].read()
                resized, content_type = await asyncio.to_thread(
                    resize_image, original, width, height
                )
                await self._put(s3, key, resized, content_type)

        return await self.get_url(key)

    async def get_url(self, reference: str) -> str:
        full_key = self._full_key(reference)

        # CDN / custom public URL
        if self._config.public_url:
            base = self._config.public_url.rstrip("/")
            return f"{base}/{full_key}"

        # Public-read bucket: standard S3 URL
        if self._config.acl == "public-read":
            if self._config.endpoint_url:
                base = self._config.endpoint_url.rstrip("/")
                return f"{base}/{self._config.bucket}/{full_key}"
            return f"https://{self._config.bucket}.s3.{self._config.region}.amazonaws.com/{full_key}"

        # Private: generate presigned URL
        async with self._session.client("s3", **self._client_kwargs()) as s3:
            return await s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._config.bucket, "Key": full_key},
                ExpiresIn=self._config.presign_ttl,
            )

    async def close(self) -> None:
        """No persistent resources to clean up."""
