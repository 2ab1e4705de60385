"""Image uploads and ownership-gated image mutations.

An upload touches two systems: the remote object store and the metadata
store. The row and the remote object must end up existing together or not
at all, so a failed insert is followed by a compensating delete of the
object that was just uploaded.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Sequence
from pathlib import PurePosixPath
from uuid import UUID

from galleria.auth.guards import ensure_owner
from galleria.config import IMAGE_EXTENSIONS, MAX_UPLOAD_SIZE
from galleria.db.models import Image
from galleria.db.repositories.base import ImageRepository, ViewCounter
from galleria.lib import observability
from galleria.lib.exceptions import (
    FileTooLarge,
    InternalError,
    InvalidFileType,
    InvalidInput,
    NotFound,
    UploadFailed,
)
from galleria.lib.imaging import IMAGE_SIZES, InvalidImage, detect_image_content_type
from galleria.lib.storage import StorageBackend, StorageManager
from galleria.lib.tasks import BackgroundTasks
from galleria.media.tags import normalize_tags, parse_tags

logger = logging.getLogger(__name__)


class UploadState(enum.Enum):
    VALIDATING = "validating"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    COMPENSATING = "compensating"
    DONE = "done"
    FAILED = "failed"


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


class ImageService:
    def __init__(
        self,
        images: ImageRepository,
        storage: StorageManager,
        tasks: BackgroundTasks,
        views: ViewCounter | None = None,
        max_upload_size: int = MAX_UPLOAD_SIZE,
        allowed_extensions: Sequence[str] = IMAGE_EXTENSIONS,
        folder: str = "images",
    ) -> None:
        self.images = images
        self.storage = storage
        self.tasks = tasks
        self.views = views
        self.max_upload_size = max_upload_size
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}
        self.folder = folder

    def _enter(self, state: UploadState, filename: str) -> UploadState:
        logger.debug("Upload %s: %s", filename, state.value)
        return state

    def validate(self, data: bytes, filename: str) -> None:
        """Reject payloads that should never reach the object store."""
        if PurePosixPath(filename).suffix.lower() not in self.allowed_extensions:
            raise InvalidFileType(
                f"Allowed file types: {', '.join(sorted(self.allowed_extensions))}"
            )
        if len(data) > self.max_upload_size:
            raise FileTooLarge(
                f"File exceeds the {self.max_upload_size // (1024 * 1024)}MB limit"
            )
        if detect_image_content_type(data) is None:
            raise InvalidFileType("File is not a readable image")

    async def upload(
        self,
        owner_id: UUID,
        title: str,
        description: str,
        tags: str,
        data: bytes,
        filename: str,
        is_public: bool = True,
    ) -> Image:
        """Upload image bytes and record them.

        Raises:
            InvalidFileType: The extension is not allowed, or the store could
                not decode the bytes as an image.
            FileTooLarge: The payload exceeds ``max_upload_size``.
            UploadFailed: The remote store rejected the upload.
        """
        self._enter(UploadState.VALIDATING, filename)
        self.validate(data, filename)

        self._enter(UploadState.UPLOADING, filename)
        store_name = self.storage.default_store
        try:
            backend = await self.storage.get(store_name)
            stored = await backend.upload(data, filename, self.folder)
        except InvalidImage as exc:
            self._enter(UploadState.FAILED, filename)
            raise InvalidFileType("File is not a readable image") from exc
        except Exception as exc:
            self._enter(UploadState.FAILED, filename)
            logger.warning("Remote upload of %s failed", filename, exc_info=True)
            raise UploadFailed() from exc

        self._enter(UploadState.PERSISTING, filename)
        image = Image(
            user_id=owner_id,
            storage_ref=stored.reference,
            url=stored.url,
            store=store_name,
            title=title.strip(),
            description=description.strip(),
            tags=normalize_tags(tags),
            is_public=is_public,
            view_count=0,
            width=stored.width,
            height=stored.height,
            file_size=stored.size,
            format=stored.format,
        )
        try:
            image = await self.images.add(image)
        except BaseException:
            self._enter(UploadState.COMPENSATING, filename)
            await asyncio.shield(self._compensate(backend, stored.reference))
            self._enter(UploadState.FAILED, filename)
            raise

        self._enter(UploadState.DONE, filename)
        logger.info("User %s uploaded image %s (%s)", owner_id, image.id, stored.reference)
        return image

    async def _compensate(self, backend: StorageBackend, reference: str) -> None:
        """Single attempt to remove an orphaned remote object."""
        try:
            await backend.delete(reference)
        except Exception:
            logger.error("Compensating delete of %s failed", reference, exc_info=True)
            observability.error("Compensating delete failed {reference}", reference=reference)

    async def delete(self, owner_id: UUID, image_id: UUID) -> None:
        """Delete the remote object, then the row.

        A remote failure is logged and does not stop the row delete.
        """
        image = ensure_owner(await self.images.get(image_id), owner_id, "Image")

        try:
            backend = await self.storage.get(image.store)
            await backend.delete(image.storage_ref)
        except Exception:
            logger.warning(
                "Failed to delete %s from store %r", image.storage_ref, image.store, exc_info=True
            )
            observability.warning(
                "Remote delete failed {reference}", reference=image.storage_ref, store=image.store
            )

        await self.images.delete(image)
        logger.info("User %s deleted image %s", owner_id, image_id)

    async def increment_view(self, image_id: UUID) -> None:
        if self.views is not None:
            await self.views.increment_image(image_id)

    async def _visible(self, image_id: UUID, viewer_id: UUID | None) -> Image:
        image = await self.images.get(image_id)
        # Private images are indistinguishable from missing ones to non-owners
        if image is None or (not image.is_public and image.user_id != viewer_id):
            raise NotFound("Image not found")
        return image

    async def get_image(self, image_id: UUID, viewer_id: UUID | None = None) -> Image:
        image = await self._visible(image_id, viewer_id)
        self.tasks.submit(self.increment_view, image.id, name=f"image-view-{image.id}")
        return image

    async def update_image(
        self,
        owner_id: UUID,
        image_id: UUID,
        title: str | None = None,
        description: str | None = None,
        tags: str | None = None,
        is_public: bool | None = None,
    ) -> Image:
        image = ensure_owner(await self.images.get(image_id), owner_id, "Image")

        if title is not None:
            image.title = title.strip()
        if description is not None:
            image.description = description.strip()
        if tags is not None:
            image.tags = normalize_tags(tags)
        if is_public is not None:
            image.is_public = is_public

        return await self.images.update(image)

    async def list_user_images(self, user_id: UUID, page: int = 1, limit: int = 20) -> Sequence[Image]:
        return await self.images.list_by_user(user_id, page_offset(page, limit), limit)

    async def list_public_images(self, page: int = 1, limit: int = 20) -> Sequence[Image]:
        return await self.images.list_public(page_offset(page, limit), limit)

    async def search_images(self, query: str, page: int = 1, limit: int = 20) -> Sequence[Image]:
        query = query.strip()
        if not query:
            raise InvalidInput("Search query is required")
        return await self.images.search(query, page_offset(page, limit), limit)

    async def images_by_tags(self, tags: str, page: int = 1, limit: int = 20) -> Sequence[Image]:
        tag_list = parse_tags(tags)
        if not tag_list:
            raise InvalidInput("At least one tag is required")
        return await self.images.by_tags(tag_list, page_offset(page, limit), limit)

    async def variant_url(self, image_id: UUID, size: str, viewer_id: UUID | None = None) -> str:
        """URL of a resized variant (``icon``, ``thumb``, ``small``, ``medium``, ``cover``)."""
        if size not in IMAGE_SIZES:
            raise InvalidInput(f"Unknown size {size!r}; expected one of {', '.join(IMAGE_SIZES)}")

        image = await self._visible(image_id, viewer_id)
        width, height = IMAGE_SIZES[size]
        try:
            backend = await self.storage.get(image.store)
            return await backend.transform(image.storage_ref, width, height)
        except Exception as exc:
            raise InternalError(f"Could not produce {size} variant") from exc
