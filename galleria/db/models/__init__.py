from galleria.db.models.image import Image
from galleria.db.models.post import Post, post_images
from galleria.db.models.user import User

__all__ = ["Image", "Post", "User", "post_images"]
