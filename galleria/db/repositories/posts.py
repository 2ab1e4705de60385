"""Post metadata store backed by SQLAlchemy."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.db.models import Post
from galleria.db.repositories.images import contains_ci


class SQLPostRepository:
    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    def _visible(self):
        return select(Post).where(Post.deleted_at.is_(None))

    def _public(self):
        return self._visible().where(Post.is_public == True)  # noqa: E712

    async def _page(self, query, offset: int, limit: int) -> list[Post]:
        query = query.order_by(Post.created_at.desc()).offset(offset).limit(limit)
        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def add(self, post: Post) -> Post:
        """Insert a post together with its attached images."""
        self.db_session.add(post)
        try:
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise
        return post

    async def get(self, post_id: UUID) -> Post | None:
        result = await self.db_session.execute(self._visible().where(Post.id == post_id))
        return result.scalar_one_or_none()

    async def update(self, post: Post) -> Post:
        await self.db_session.commit()
        return post

    async def delete(self, post: Post) -> None:
        post.deleted_at = datetime.now(UTC)
        await self.db_session.commit()

    async def list_by_user(
        self, user_id: UUID, offset: int = 0, limit: int = 20
    ) -> Sequence[Post]:
        return await self._page(self._visible().where(Post.user_id == user_id), offset, limit)

    async def list_public(self, offset: int = 0, limit: int = 20) -> Sequence[Post]:
        return await self._page(self._public(), offset, limit)

    async def search(self, query: str, offset: int = 0, limit: int = 20) -> Sequence[Post]:
        match = or_(
            contains_ci(Post.title, query),
            contains_ci(Post.description, query),
            contains_ci(Post.tags, query),
        )
        return await self._page(self._public().where(match), offset, limit)

    async def by_tags(
        self, tags: Sequence[str], offset: int = 0, limit: int = 20
    ) -> Sequence[Post]:
        query = self._public()
        if tags:
            query = query.where(and_(*(contains_ci(Post.tags, tag) for tag in tags)))
        return await self._page(query, offset, limit)
