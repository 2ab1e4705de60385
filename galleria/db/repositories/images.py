"""Image metadata store backed by SQLAlchemy."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.db.models import Image, post_images


def contains_ci(column, term: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    return func.lower(column).contains(term.lower(), autoescape=True)


class SQLImageRepository:
    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    def _visible(self):
        return select(Image).where(Image.deleted_at.is_(None))

    def _public(self):
        return self._visible().where(Image.is_public == True)  # noqa: E712

    async def _page(self, query, offset: int, limit: int) -> list[Image]:
        query = query.order_by(Image.created_at.desc()).offset(offset).limit(limit)
        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def add(self, image: Image) -> Image:
        self.db_session.add(image)
        try:
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise
        return image

    async def get(self, image_id: UUID) -> Image | None:
        result = await self.db_session.execute(self._visible().where(Image.id == image_id))
        return result.scalar_one_or_none()

    async def update(self, image: Image) -> Image:
        await self.db_session.commit()
        return image

    async def delete(self, image: Image) -> None:
        image.deleted_at = datetime.now(UTC)
        await self.db_session.execute(
            delete(post_images).where(post_images.c.image_id == image.id)
        )
        await self.db_session.commit()

    async def list_by_user(
        self, user_id: UUID, offset: int = 0, limit: int = 20
    ) -> Sequence[Image]:
        return await self._page(self._visible().where(Image.user_id == user_id), offset, limit)

    async def list_public(self, offset: int = 0, limit: int = 20) -> Sequence[Image]:
        return await self._page(self._public(), offset, limit)

    async def search(self, query: str, offset: int = 0, limit: int = 20) -> Sequence[Image]:
        match = or_(
            contains_ci(Image.title, query),
            contains_ci(Image.description, query),
            contains_ci(Image.tags, query),
        )
        return await self._page(self._public().where(match), offset, limit)

    async def by_tags(
        self, tags: Sequence[str], offset: int = 0, limit: int = 20
    ) -> Sequence[Image]:
        query = self._public()
        if tags:
            query = query.where(and_(*(contains_ci(Image.tags, tag) for tag in tags)))
        return await self._page(query, offset, limit)
