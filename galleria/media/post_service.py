"""Posts: user-authored groupings of images."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from galleria.auth.guards import can_mutate, ensure_owner
from galleria.db.models import Image, Post
from galleria.db.repositories.base import ImageRepository, PostRepository, ViewCounter
from galleria.lib.exceptions import Forbidden, InvalidInput, NotFound
from galleria.lib.tasks import BackgroundTasks
from galleria.media.image_service import page_offset
from galleria.media.tags import normalize_tags, parse_tags

logger = logging.getLogger(__name__)


class PostService:
    def __init__(
        self,
        posts: PostRepository,
        images: ImageRepository,
        tasks: BackgroundTasks,
        views: ViewCounter | None = None,
    ) -> None:
        self.posts = posts
        self.images = images
        self.tasks = tasks
        self.views = views

    async def _owned_images(self, owner_id: UUID, image_ids: Sequence[UUID]) -> list[Image]:
        """Resolve every id, stopping at the first missing or foreign image."""
        found: list[Image] = []
        for image_id in dict.fromkeys(image_ids):
            image = await self.images.get(image_id)
            if image is None:
                raise NotFound(f"Image {image_id} not found")
            if not can_mutate(owner_id, image.user_id):
                raise Forbidden(f"Image {image_id} belongs to another user")
            found.append(image)
        return found

    async def create_post(
        self,
        owner_id: UUID,
        title: str,
        description: str,
        image_ids: Sequence[UUID],
        tags: str = "",
        is_public: bool = True,
    ) -> Post:
        """Create a post with the given images attached.

        Raises:
            InvalidInput: ``image_ids`` is empty.
            NotFound: An image id does not resolve.
            Forbidden: An image belongs to someone else.
        """
        if not image_ids:
            raise InvalidInput("A post needs at least one image")

        images = await self._owned_images(owner_id, image_ids)

        post = Post(
            user_id=owner_id,
            title=title.strip(),
            description=description.strip(),
            tags=normalize_tags(tags),
            is_public=is_public,
            view_count=0,
            images=images,
        )
        post = await self.posts.add(post)
        logger.info("User %s created post %s with %d images", owner_id, post.id, len(images))
        return post

    async def increment_view(self, post_id: UUID) -> None:
        if self.views is not None:
            await self.views.increment_post(post_id)

    async def get_post(self, post_id: UUID, viewer_id: UUID | None = None) -> Post:
        post = await self.posts.get(post_id)
        if post is None or (not post.is_public and post.user_id != viewer_id):
            raise NotFound("Post not found")
        self.tasks.submit(self.increment_view, post.id, name=f"post-view-{post.id}")
        return post

    async def update_post(
        self,
        owner_id: UUID,
        post_id: UUID,
        title: str | None = None,
        description: str | None = None,
        tags: str | None = None,
        is_public: bool | None = None,
    ) -> Post:
        post = ensure_owner(await self.posts.get(post_id), owner_id, "Post")

        if title is not None:
            post.title = title.strip()
        if description is not None:
            post.description = description.strip()
        if tags is not None:
            post.tags = normalize_tags(tags)
        if is_public is not None:
            post.is_public = is_public

        return await self.posts.update(post)

    async def delete_post(self, owner_id: UUID, post_id: UUID) -> None:
        post = ensure_owner(await self.posts.get(post_id), owner_id, "Post")
        await self.posts.delete(post)
        logger.info("User %s deleted post %s", owner_id, post_id)

    async def list_user_posts(self, user_id: UUID, page: int = 1, limit: int = 20) -> Sequence[Post]:
        return await self.posts.list_by_user(user_id, page_offset(page, limit), limit)

    async def list_public_posts(self, page: int = 1, limit: int = 20) -> Sequence[Post]:
        return await self.posts.list_public(page_offset(page, limit), limit)

    async def search_posts(self, query: str, page: int = 1, limit: int = 20) -> Sequence[Post]:
        query = query.strip()
        if not query:
            raise InvalidInput("Search query is required")
        return await self.posts.search(query, page_offset(page, limit), limit)

    async def posts_by_tags(self, tags: str, page: int = 1, limit: int = 20) -> Sequence[Post]:
        tag_list = parse_tags(tags)
        if not tag_list:
            raise InvalidInput("At least one tag is required")
        return await self.posts.by_tags(tag_list, page_offset(page, limit), limit)
