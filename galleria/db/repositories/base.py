"""Store capabilities the services depend on.

Repositories report missing rows as ``None``; services decide whether that is
a ``NotFound``. Every default query skips soft-deleted rows.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from galleria.db.models import Image, Post, User


@runtime_checkable
class UserRepository(Protocol):
    async def add(self, user: User) -> User:
        """Persist a new user. Raises EmailExists/UsernameExists on conflict."""
        ...

    async def get(self, user_id: UUID) -> User | None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def get_by_username(self, username: str) -> User | None: ...

    async def update(self, user: User) -> User: ...

    async def list(self, offset: int = 0, limit: int = 20) -> Sequence[User]: ...


@runtime_checkable
class ImageRepository(Protocol):
    async def add(self, image: Image) -> Image: ...

    async def get(self, image_id: UUID) -> Image | None: ...

    async def update(self, image: Image) -> Image: ...

    async def delete(self, image: Image) -> None:
        """Soft-delete the image and detach it from every post."""
        ...

    async def list_by_user(
        self, user_id: UUID, offset: int = 0, limit: int = 20
    ) -> Sequence[Image]: ...

    async def list_public(self, offset: int = 0, limit: int = 20) -> Sequence[Image]: ...

    async def search(
        self, query: str, offset: int = 0, limit: int = 20
    ) -> Sequence[Image]: ...

    async def by_tags(
        self, tags: Sequence[str], offset: int = 0, limit: int = 20
    ) -> Sequence[Image]: ...


@runtime_checkable
class PostRepository(Protocol):
    async def add(self, post: Post) -> Post: ...

    async def get(self, post_id: UUID) -> Post | None: ...

    async def update(self, post: Post) -> Post: ...

    async def delete(self, post: Post) -> None: ...

    async def list_by_user(
        self, user_id: UUID, offset: int = 0, limit: int = 20
    ) -> Sequence[Post]: ...

    async def list_public(self, offset: int = 0, limit: int = 20) -> Sequence[Post]: ...

    async def search(
        self, query: str, offset: int = 0, limit: int = 20
    ) -> Sequence[Post]: ...

    async def by_tags(
        self, tags: Sequence[str], offset: int = 0, limit: int = 20
    ) -> Sequence[Post]: ...


@runtime_checkable
class ViewCounter(Protocol):
    """Best-effort ``view_count + 1``, run outside the request session."""

    async def increment_image(self, image_id: UUID) -> None: ...

    async def increment_post(self, post_id: UUID) -> None: ...
