"""View counters that run in their own session.

Increments are scheduled after the response is on its way, when the request
session may already be closed, so each call opens a fresh one.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.db.models import Image, Post

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SQLViewCounter:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def _increment(self, model, row_id: UUID) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(model)
                .where(model.id == row_id, model.deleted_at.is_(None))
                .values(view_count=model.view_count + 1)
                .execution_options(synchronize_session=False)
            )
            await session.commit()

    async def increment_image(self, image_id: UUID) -> None:
        await self._increment(Image, image_id)

    async def increment_post(self, post_id: UUID) -> None:
        await self._increment(Post, post_id)
