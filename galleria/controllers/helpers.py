"""Per-request service construction for controllers.

Long-lived collaborators (token service, storage, background tasks) live on
``app.state``; repositories are bound to the request's ``db_session``.
"""

from litestar import Request
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.auth.identity_service import IdentityService
from galleria.db.repositories import SQLImageRepository, SQLPostRepository, SQLUserRepository
from galleria.media.image_service import ImageService
from galleria.media.post_service import PostService


def get_identity_service(request: Request, db_session: AsyncSession) -> IdentityService:
    state = request.app.state
    return IdentityService(
        users=SQLUserRepository(db_session),
        tokens=state.token_service,
        hasher=state.password_hasher,
    )


def get_image_service(request: Request, db_session: AsyncSession) -> ImageService:
    state = request.app.state
    uploads = state.settings.uploads
    return ImageService(
        images=SQLImageRepository(db_session),
        storage=state.storage_manager,
        tasks=state.background_tasks,
        views=state.view_counter,
        max_upload_size=uploads.max_size,
        allowed_extensions=uploads.allowed_extensions,
        folder=uploads.folder,
    )


def get_post_service(request: Request, db_session: AsyncSession) -> PostService:
    state = request.app.state
    return PostService(
        posts=SQLPostRepository(db_session),
        images=SQLImageRepository(db_session),
        tasks=state.background_tasks,
        views=state.view_counter,
    )
