"""Post schemas."""

from datetime import datetime

from pydantic import Field, field_validator

from astroshare.schemas import CamelModel


class PostResponse(CamelModel):
    id: int = Field(serialization_alias="_id")
    title: str
    content: str
    sender: str
    picture_url: str
    likes: list[str]
    created_at: datetime
    updated_at: datetime

    @field_validator("likes", mode="before")
    @classmethod
    def normalize_likes(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]
