"""Application composition root.

Everything long-lived is built here once from ``Settings`` and hung on
``app.state``; per-request services are assembled by the helpers in
``galleria.controllers.helpers``.
"""

from __future__ import annotations

import logging
from typing import Any

from advanced_alchemy.config import EngineConfig
from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyPlugin,
)
from litestar import Litestar, get
from litestar.datastructures import State
from litestar.static_files import create_static_files_router

from galleria import __version__
from galleria.auth.passwords import PasswordHasher
from galleria.auth.tokens import TokenService
from galleria.config import Settings, get_settings
from galleria.controllers.auth import AccountController, AuthController
from galleria.controllers.images import ImageController
from galleria.controllers.posts import PostController
from galleria.controllers.public import PublicController
from galleria.db.base import Base
from galleria.db.repositories import SQLViewCounter
from galleria.lib import observability
from galleria.lib.exceptions import EXCEPTION_HANDLERS
from galleria.lib.logs import configure_logging
from galleria.lib.storage import StorageManager
from galleria.lib.tasks import BackgroundTasks

logger = logging.getLogger(__name__)

MULTIPART_OVERHEAD = 1024 * 1024


@get("/")
async def index() -> dict[str, str]:
    """Service banner."""
    return {"message": "Galleria API", "version": __version__}


def create_db_config(settings: Settings) -> SQLAlchemyAsyncConfig:
    if "sqlite" in settings.db.url:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_kwargs: dict[str, Any] = dict(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            pool_pre_ping=settings.db.pool_pre_ping,
            echo=settings.db.echo,
        )
        engine_config = EngineConfig(**engine_kwargs)

    return SQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=settings.db.create_all,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def create_storage_routers(storage_manager: StorageManager) -> list:
    """Serve files of local stores under ``/storage/<store>/``."""
    routers = []
    for name, root in storage_manager.local_roots().items():
        root.mkdir(parents=True, exist_ok=True)
        routers.append(
            create_static_files_router(
                path=f"/storage/{name}",
                directories=[root],
                name=f"storage-{name}",
                include_in_schema=False,
            )
        )
    return routers


def create_app(settings: Settings | None = None) -> Litestar:
    """Build the Litestar application.

    Args:
        settings: Explicit settings; defaults to the process-wide ones.

    Returns:
        A configured Litestar application.
    """
    settings = settings or get_settings()

    configure_logging(settings)
    observability.configure(settings)

    db_config = create_db_config(settings)
    storage_manager = StorageManager(settings.storage)
    background_tasks = BackgroundTasks()

    state = State(
        {
            "settings": settings,
            "token_service": TokenService(settings.secret_key, ttl=settings.auth.token_ttl),
            "password_hasher": PasswordHasher(rounds=settings.auth.bcrypt_rounds),
            "storage_manager": storage_manager,
            "background_tasks": background_tasks,
            "view_counter": SQLViewCounter(db_config.get_session),
        }
    )

    async def on_startup(_app: Litestar) -> None:
        observability.instrument_sqlalchemy(db_config.get_engine())
        logger.info(
            "Galleria %s started (store=%s, db=%s)",
            __version__,
            storage_manager.default_store,
            db_config.get_engine().url.render_as_string(hide_password=True),
        )

    async def on_shutdown(_app: Litestar) -> None:
        """Let pending view increments finish, then release storage."""
        await background_tasks.drain()
        await storage_manager.close()

    app = Litestar(
        route_handlers=[
            index,
            AuthController,
            AccountController,
            ImageController,
            PostController,
            PublicController,
            *create_storage_routers(storage_manager),
        ],
        plugins=[SQLAlchemyPlugin(config=db_config)],
        exception_handlers=EXCEPTION_HANDLERS,
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        state=state,
        # Headroom for the multipart envelope; the per-file limit is enforced by ImageService
        request_max_body_size=settings.uploads.max_size + MULTIPART_OVERHEAD,
        debug=settings.debug,
    )

    return app
