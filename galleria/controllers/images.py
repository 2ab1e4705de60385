from __future__ import annotations

from typing import Annotated
from uuid import UUID

from litestar import Controller, Request, delete, get, post, put
from litestar.enums import RequestEncodingType
from litestar.params import Body, Parameter
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.auth.guards import resolve_current_user
from galleria.controllers.helpers import get_image_service
from galleria.controllers.schemas import (
    ImageOut,
    ImageUploadForm,
    MediaUpdateRequest,
    MessageOut,
    VariantOut,
)
from galleria.lib.exceptions import InvalidInput

Page = Annotated[int, Parameter(ge=1)]
Limit = Annotated[int, Parameter(ge=1, le=100)]


class ImageController(Controller):
    """Authenticated image endpoints."""

    path = "/api/images"

    @post("/", status_code=201)
    async def upload(
        self,
        request: Request,
        db_session: AsyncSession,
        data: Annotated[ImageUploadForm, Body(media_type=RequestEncodingType.MULTI_PART)],
    ) -> ImageOut:
        """Upload one image file with its metadata."""
        claims = resolve_current_user(request)
        if not data.title.strip():
            raise InvalidInput("Title is required")

        content = await data.image.read()
        image = await get_image_service(request, db_session).upload(
            owner_id=claims.user_id,
            title=data.title,
            description=data.description,
            tags=data.tags,
            data=content,
            filename=data.image.filename or "untitled",
            is_public=data.is_public,
        )
        return ImageOut.model_validate(image)

    @get("/my")
    async def my_images(
        self,
        request: Request,
        db_session: AsyncSession,
        page: Page = 1,
        limit: Limit = 20,
    ) -> list[ImageOut]:
        claims = resolve_current_user(request)
        images = await get_image_service(request, db_session).list_user_images(
            claims.user_id, page, limit
        )
        return [ImageOut.model_validate(image) for image in images]

    @get("/{image_id:uuid}")
    async def get_image(
        self, request: Request, db_session: AsyncSession, image_id: UUID
    ) -> ImageOut:
        claims = resolve_current_user(request)
        image = await get_image_service(request, db_session).get_image(
            image_id, viewer_id=claims.user_id
        )
        return ImageOut.model_validate(image)

    @put("/{image_id:uuid}")
    async def update_image(
        self,
        request: Request,
        db_session: AsyncSession,
        image_id: UUID,
        data: MediaUpdateRequest,
    ) -> ImageOut:
        claims = resolve_current_user(request)
        image = await get_image_service(request, db_session).update_image(
            claims.user_id,
            image_id,
            title=data.title,
            description=data.description,
            tags=data.tags,
            is_public=data.is_public,
        )
        return ImageOut.model_validate(image)

    @delete("/{image_id:uuid}", status_code=200)
    async def delete_image(
        self, request: Request, db_session: AsyncSession, image_id: UUID
    ) -> MessageOut:
        claims = resolve_current_user(request)
        await get_image_service(request, db_session).delete(claims.user_id, image_id)
        return MessageOut(message="Image deleted successfully")

    @get("/{image_id:uuid}/variants/{size:str}")
    async def variant(
        self, request: Request, db_session: AsyncSession, image_id: UUID, size: str
    ) -> VariantOut:
        claims = resolve_current_user(request)
        url = await get_image_service(request, db_session).variant_url(
            image_id, size, viewer_id=claims.user_id
        )
        return VariantOut(image_id=image_id, size=size, url=url)
