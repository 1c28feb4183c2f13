"""Comment API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from astroshare.api.dependencies import get_current_user
from astroshare.database import get_db
from astroshare.exceptions import ForbiddenError
from astroshare.models import Comment, Post, User
from astroshare.schemas.auth import MessageResponse
from astroshare.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from astroshare.services.crud import CrudService

router = APIRouter(prefix="/api/comments", tags=["comments"])


def get_comment_service(db: Annotated[Session, Depends(get_db)]) -> CrudService[Comment]:
    return CrudService(db, Comment)


def get_own_comment(comments: CrudService[Comment], comment_id: int, user: User) -> Comment:
    comment = comments.get(comment_id)
    if comment.sender != user.user_name:
        raise ForbiddenError("Only the sender can change this comment")
    return comment


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    comments: Annotated[CrudService[Comment], Depends(get_comment_service)],
    db: Annotated[Session, Depends(get_db)],
):
    """Comment on a post."""
    # 404 if the post is gone
    CrudService(db, Post).get(comment_data.post_id)
    return comments.create(
        content=comment_data.content,
        sender=current_user.user_name,
        post_id=comment_data.post_id,
    )


@router.get("/post/{post_id}", response_model=list[CommentResponse])
async def get_comments_by_post(
    post_id: int,
    comments: Annotated[CrudService[Comment], Depends(get_comment_service)],
):
    """Get the comments on a post."""
    return comments.list(post_id=post_id)


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: int,
    comments: Annotated[CrudService[Comment], Depends(get_comment_service)],
):
    """Get a specific comment."""
    return comments.get(comment_id)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    comments: Annotated[CrudService[Comment], Depends(get_comment_service)],
):
    """Edit one of your comments."""
    comment = get_own_comment(comments, comment_id, current_user)
    return comments.update(comment, content=comment_data.content)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    comments: Annotated[CrudService[Comment], Depends(get_comment_service)],
):
    """Delete one of your comments."""
    comments.delete(get_own_comment(comments, comment_id, current_user))
    return MessageResponse(message="deleted")
