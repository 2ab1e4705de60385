"""Anonymous access to public images and posts.

A valid bearer token is optional here; when present, owners also see their
own private items by id.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from litestar import Controller, Request, get
from litestar.params import Parameter
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.auth.guards import optional_current_user
from galleria.controllers.helpers import get_image_service, get_post_service
from galleria.controllers.images import Limit, Page
from galleria.controllers.schemas import ImageOut, PostOut, VariantOut

SearchTerm = Annotated[str, Parameter(query="q", min_length=1, max_length=200)]
TagList = Annotated[str, Parameter(query="tags", min_length=1, max_length=1000)]


def _viewer_id(request: Request) -> UUID | None:
    claims = optional_current_user(request)
    return claims.user_id if claims else None


class PublicController(Controller):
    path = "/public"

    @get("/images")
    async def public_images(
        self, request: Request, db_session: AsyncSession, page: Page = 1, limit: Limit = 20
    ) -> list[ImageOut]:
        images = await get_image_service(request, db_session).list_public_images(page, limit)
        return [ImageOut.model_validate(image) for image in images]

    @get("/images/search")
    async def search_images(
        self,
        request: Request,
        db_session: AsyncSession,
        term: SearchTerm,
        page: Page = 1,
        limit: Limit = 20,
    ) -> list[ImageOut]:
        images = await get_image_service(request, db_session).search_images(term, page, limit)
        return [ImageOut.model_validate(image) for image in images]

    @get("/images/tags")
    async def images_by_tags(
        self,
        request: Request,
        db_session: AsyncSession,
        tags: TagList,
        page: Page = 1,
        limit: Limit = 20,
    ) -> list[ImageOut]:
        images = await get_image_service(request, db_session).images_by_tags(tags, page, limit)
        return [ImageOut.model_validate(image) for image in images]

    @get("/images/{image_id:uuid}")
    async def public_image(
        self, request: Request, db_session: AsyncSession, image_id: UUID
    ) -> ImageOut:
        image = await get_image_service(request, db_session).get_image(
            image_id, viewer_id=_viewer_id(request)
        )
        return ImageOut.model_validate(image)

    @get("/images/{image_id:uuid}/variants/{size:str}")
    async def public_variant(
        self, request: Request, db_session: AsyncSession, image_id: UUID, size: str
    ) -> VariantOut:
        url = await get_image_service(request, db_session).variant_url(
            image_id, size, viewer_id=_viewer_id(request)
        )
        return VariantOut(image_id=image_id, size=size, url=url)

    @get("/posts")
    async def public_posts(
        self, request: Request, db_session: AsyncSession, page: Page = 1, limit: Limit = 20
    ) -> list[PostOut]:
        posts = await get_post_service(request, db_session).list_public_posts(page, limit)
        return [PostOut.model_validate(p) for p in posts]

    @get("/posts/search")
    async def search_posts(
        self,
        request: Request,
        db_session: AsyncSession,
        term: SearchTerm,
        page: Page = 1,
        limit: Limit = 20,
    ) -> list[PostOut]:
        posts = await get_post_service(request, db_session).search_posts(term, page, limit)
        return [PostOut.model_validate(p) for p in posts]

    @get("/posts/tags")
    async def posts_by_tags(
        self,
        request: Request,
        db_session: AsyncSession,
        tags: TagList,
        page: Page = 1,
        limit: Limit = 20,
    ) -> list[PostOut]:
        posts = await get_post_service(request, db_session).posts_by_tags(tags, page, limit)
        return [PostOut.model_validate(p) for p in posts]

    @get("/posts/{post_id:uuid}")
    async def public_post(
        self, request: Request, db_session: AsyncSession, post_id: UUID
    ) -> PostOut:
        post_ = await get_post_service(request, db_session).get_post(
            post_id, viewer_id=_viewer_id(request)
        )
        return PostOut.model_validate(post_)
