"""Comment schemas."""

from datetime import datetime

from pydantic import Field

from astroshare.schemas import CamelModel


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)
    post_id: int


class CommentUpdate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(CamelModel):
    id: int = Field(serialization_alias="_id")
    content: str
    sender: str
    post_id: int
    created_at: datetime
    updated_at: datetime
