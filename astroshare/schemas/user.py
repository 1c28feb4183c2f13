"""User profile schemas."""

from pydantic import Field

from astroshare.schemas import CamelModel


class UserProfile(CamelModel):
    """Public view of a user."""

    id: int = Field(serialization_alias="_id")
    user_name: str
    email: str
    profile_picture_url: str
    bio: str | None = None
    is_google_linked: bool = Field(False, serialization_alias="googleLinked")
