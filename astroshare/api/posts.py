"""Post API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from astroshare.api.dependencies import get_current_user, get_file_store
from astroshare.database import get_db
from astroshare.exceptions import ForbiddenError, ValidationError
from astroshare.models import Post, User
from astroshare.schemas.auth import MessageResponse
from astroshare.schemas.post import PostResponse
from astroshare.services.crud import CrudService
from astroshare.services.files import FileStoreError, LocalFileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


def get_post_service(db: Annotated[Session, Depends(get_db)]) -> CrudService[Post]:
    return CrudService(db, Post)


def get_own_post(posts: CrudService[Post], post_id: int, user: User) -> Post:
    """Get a post the user sent."""
    post = posts.get(post_id)
    if post.sender != user.user_name:
        raise ForbiddenError("Only the sender can change this post")
    return post


async def store_photo(files: LocalFileStore, photo: UploadFile | None) -> str | None:
    """Upload a photo, returning None if there is none or the upload failed."""
    if photo is None:
        return None
    try:
        return await files.save(await photo.read(), photo.filename)
    except FileStoreError as e:
        logger.error(f"Error uploading post photo: {e}")
        return None


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    current_user: Annotated[User, Depends(get_current_user)],
    posts: Annotated[CrudService[Post], Depends(get_post_service)],
    files: Annotated[LocalFileStore, Depends(get_file_store)],
    title: Annotated[str | None, Form()] = None,
    content: Annotated[str | None, Form()] = None,
    photo: Annotated[UploadFile | None, File()] = None,
):
    """Create a post as the current user."""
    if not title or not content:
        raise ValidationError("Title and content are required")

    picture_url = await store_photo(files, photo) or ""
    return posts.create(
        title=title,
        content=content,
        sender=current_user.user_name,
        picture_url=picture_url,
        likes=[],
    )


@router.get("", response_model=list[PostResponse])
async def get_posts(posts: Annotated[CrudService[Post], Depends(get_post_service)]):
    """Get all posts."""
    return posts.list()


@router.get("/sender/{sender}", response_model=list[PostResponse])
async def get_posts_by_sender(
    sender: str,
    posts: Annotated[CrudService[Post], Depends(get_post_service)],
):
    """Get the posts of one user."""
    return posts.list(sender=sender)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    posts: Annotated[CrudService[Post], Depends(get_post_service)],
):
    """Get a specific post."""
    return posts.get(post_id)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    posts: Annotated[CrudService[Post], Depends(get_post_service)],
    files: Annotated[LocalFileStore, Depends(get_file_store)],
    title: Annotated[str | None, Form()] = None,
    content: Annotated[str | None, Form()] = None,
    delete_photo: Annotated[bool, Form(alias="deletePhoto")] = False,
    photo: Annotated[UploadFile | None, File()] = None,
):
    """Update a post's text or picture."""
    post = get_own_post(posts, post_id, current_user)
    old_picture_url = post.picture_url or None

    picture_url = None
    if photo is not None:
        try:
            picture_url = await files.replace(
                old_picture_url, await photo.read(), photo.filename
            )
        except FileStoreError as e:
            logger.error(f"Error uploading photo for post {post_id}: {e}")
    elif delete_photo and old_picture_url:
        try:
            await files.delete(old_picture_url)
        except FileStoreError as e:
            logger.error(f"Error deleting photo of post {post_id}: {e}")
        picture_url = ""

    return posts.update(post, title=title or None, content=content or None, picture_url=picture_url)


@router.post("/like/{post_id}", response_model=PostResponse)
async def toggle_like(
    post_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    posts: Annotated[CrudService[Post], Depends(get_post_service)],
):
    """Like a post, or take back an existing like."""
    post = posts.get(post_id)
    user_key = str(current_user.id)
    likes = post.liked_by()
    if user_key in likes:
        likes.remove(user_key)
        logger.info(f"User {current_user.id} unliked post {post_id}")
    else:
        likes.append(user_key)
        logger.info(f"User {current_user.id} liked post {post_id}")
    return posts.update(post, likes=likes)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    posts: Annotated[CrudService[Post], Depends(get_post_service)],
    files: Annotated[LocalFileStore, Depends(get_file_store)],
):
    """Delete a post with its comments and picture."""
    post = get_own_post(posts, post_id, current_user)
    picture_url = post.picture_url
    posts.delete(post)

    try:
        await files.delete(picture_url)
    except FileStoreError as e:
        logger.warning(f"Could not remove picture of deleted post {post_id}: {e}")
    return MessageResponse(message="deleted")
