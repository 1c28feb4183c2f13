"""Comment model."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from astroshare.database import Base
from astroshare.models.base import TimestampMixin


class Comment(Base, TimestampMixin):
    """Comment on a post."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    sender = Column(String(255), nullable=False)

    post = relationship("Post", back_populates="comments")
