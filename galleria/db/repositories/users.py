"""Credential store backed by SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.db.models import User
from galleria.lib.exceptions import EmailExists, UsernameExists

logger = logging.getLogger(__name__)


class SQLUserRepository:
    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    def _active(self):
        return select(User).where(User.deleted_at.is_(None))

    async def add(self, user: User) -> User:
        """Insert a user and commit.

        The unique constraints are the final arbiter for concurrent
        registrations; a violation is reported as the matching conflict.
        """
        self.db_session.add(user)
        try:
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            if await self.get_by_email(user.email) is not None:
                raise EmailExists() from exc
            raise UsernameExists() from exc
        return user

    async def get(self, user_id: UUID) -> User | None:
        result = await self.db_session.execute(self._active().where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db_session.execute(self._active().where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        result = await self.db_session.execute(
            self._active().where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def update(self, user: User) -> User:
        await self.db_session.commit()
        return user

    async def list(self, offset: int = 0, limit: int = 20) -> Sequence[User]:
        query = self._active().order_by(User.created_at.desc()).offset(offset).limit(limit)
        result = await self.db_session.execute(query)
        return list(result.scalars().all())
