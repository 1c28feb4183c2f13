"""Post model."""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from astroshare.database import Base
from astroshare.models.base import TimestampMixin, as_string_list, string_list_column


class Post(Base, TimestampMixin):
    """A shared post, optionally with a picture."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    sender = Column(String(255), nullable=False, index=True)  # user_name of the author
    picture_url = Column(String(1024), nullable=False, default="")
    likes = string_list_column()  # user ids, as strings

    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")

    def liked_by(self) -> list[str]:
        return as_string_list(self.likes)
