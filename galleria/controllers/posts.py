from __future__ import annotations

from uuid import UUID

from litestar import Controller, Request, delete, get, post, put
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.auth.guards import resolve_current_user
from galleria.controllers.helpers import get_post_service
from galleria.controllers.images import Limit, Page
from galleria.controllers.schemas import MediaUpdateRequest, MessageOut, PostCreateRequest, PostOut


class PostController(Controller):
    """Authenticated post endpoints."""

    path = "/api/posts"

    @post("/", status_code=201)
    async def create_post(
        self, request: Request, db_session: AsyncSession, data: PostCreateRequest
    ) -> PostOut:
        claims = resolve_current_user(request)
        post_ = await get_post_service(request, db_session).create_post(
            owner_id=claims.user_id,
            title=data.title,
            description=data.description,
            image_ids=data.image_ids,
            tags=data.tags,
            is_public=data.is_public,
        )
        return PostOut.model_validate(post_)

    @get("/my")
    async def my_posts(
        self,
        request: Request,
        db_session: AsyncSession,
        page: Page = 1,
        limit: Limit = 20,
    ) -> list[PostOut]:
        claims = resolve_current_user(request)
        posts = await get_post_service(request, db_session).list_user_posts(
            claims.user_id, page, limit
        )
        return [PostOut.model_validate(p) for p in posts]

    @get("/{post_id:uuid}")
    async def get_post(self, request: Request, db_session: AsyncSession, post_id: UUID) -> PostOut:
        claims = resolve_current_user(request)
        post_ = await get_post_service(request, db_session).get_post(
            post_id, viewer_id=claims.user_id
        )
        return PostOut.model_validate(post_)

    @put("/{post_id:uuid}")
    async def update_post(
        self,
        request: Request,
        db_session: AsyncSession,
        post_id: UUID,
        data: MediaUpdateRequest,
    ) -> PostOut:
        claims = resolve_current_user(request)
        post_ = await get_post_service(request, db_session).update_post(
            claims.user_id,
            post_id,
            title=data.title,
            description=data.description,
            tags=data.tags,
            is_public=data.is_public,
        )
        return PostOut.model_validate(post_)

    @delete("/{post_id:uuid}", status_code=200)
    async def delete_post(
        self, request: Request, db_session: AsyncSession, post_id: UUID
    ) -> MessageOut:
        claims = resolve_current_user(request)
        await get_post_service(request, db_session).delete_post(claims.user_id, post_id)
        return MessageOut(message="Post deleted successfully")
