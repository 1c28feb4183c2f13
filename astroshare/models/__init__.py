"""SQLAlchemy models."""

from astroshare.models.comment import Comment
from astroshare.models.post import Post
from astroshare.models.user import User

__all__ = [
    "User",
    "Post",
    "Comment",
]
