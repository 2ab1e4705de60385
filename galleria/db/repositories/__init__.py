from galleria.db.repositories.base import (
    ImageRepository,
    PostRepository,
    UserRepository,
    ViewCounter,
)
from galleria.db.repositories.images import SQLImageRepository
from galleria.db.repositories.posts import SQLPostRepository
from galleria.db.repositories.users import SQLUserRepository
from galleria.db.repositories.views import SQLViewCounter

__all__ = [
    "ImageRepository",
    "PostRepository",
    "SQLImageRepository",
    "SQLPostRepository",
    "SQLUserRepository",
    "SQLViewCounter",
    "UserRepository",
    "ViewCounter",
]
