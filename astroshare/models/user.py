"""User model."""

from sqlalchemy import Column, Integer, String, Text

from astroshare.database import Base
from astroshare.models.base import TimestampMixin, as_string_list, string_list_column


class User(Base, TimestampMixin):
    """User account, reachable by password, Google sign-in, or both."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    user_name = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(255), unique=True, nullable=True)
    profile_picture_url = Column(String(1024), nullable=False)
    bio = Column(Text, nullable=True)

    # One entry per signed-in device
    refresh_tokens = string_list_column()

    # Bumped on every flush; concurrent writers fail with StaleDataError
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_google_linked(self) -> bool:
        return self.google_id is not None

    def active_refresh_tokens(self) -> list[str]:
        """Stored refresh tokens, tolerating a corrupted or missing column value."""
        return as_string_list(self.refresh_tokens)
