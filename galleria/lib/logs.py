from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from galleria.config import Settings

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("aiosqlite", "botocore", "aiobotocore", "PIL")


def configure_logging(settings: Settings) -> None:
    """Configure the root logger from the ``logging`` settings section.

    Safe to call more than once; later calls replace the handlers.
    """
    level = logging.DEBUG if settings.debug else getattr(logging, settings.logging.level)
    logging.basicConfig(level=level, format=settings.logging.format, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    # SQL echo is handled by the engine config
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
