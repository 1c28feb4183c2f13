"""User profile API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile

from astroshare.api.dependencies import get_current_user_id, get_file_store, get_user_repository
from astroshare.config import get_settings
from astroshare.exceptions import ConflictError, ForbiddenError, NotFoundError
from astroshare.models.user import User
from astroshare.schemas.user import UserProfile
from astroshare.services.files import FileStoreError, LocalFileStore
from astroshare.services.users import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_by_name(users: UserRepository, user_name: str) -> User:
    user = users.find_by_username(user_name)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_name}", response_model=UserProfile)
async def get_user(
    user_name: str,
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Get a user's public profile."""
    return get_user_by_name(users, user_name)


@router.put("/{user_name}", response_model=UserProfile)
async def update_user(
    user_name: str,
    current_user_id: Annotated[int, Depends(get_current_user_id)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
    files: Annotated[LocalFileStore, Depends(get_file_store)],
    new_user_name: Annotated[str | None, Form(alias="userName")] = None,
    bio: Annotated[str | None, Form()] = None,
    profile_picture: Annotated[UploadFile | None, File(alias="profilePicture")] = None,
):
    """Update your own username, bio or profile picture."""
    user = get_user_by_name(users, user_name)
    if user.id != current_user_id:
        raise ForbiddenError("You can only update your own profile")

    new_url = None
    if profile_picture is not None:
        try:
            new_url = await files.save(await profile_picture.read(), profile_picture.filename)
        except FileStoreError as e:
            logger.error(f"Error uploading profile picture for user {user.id}: {e}")

    old_url = user.profile_picture_url
    if new_url:
        user.profile_picture_url = new_url
    if new_user_name:
        user.user_name = new_user_name
    if bio:
        user.bio = bio

    try:
        user = users.save(user)
    except ConflictError:
        try:
            await files.delete(new_url)
        except FileStoreError as e:
            logger.warning(f"Could not remove unused profile picture of user {user.id}: {e}")
        raise ConflictError(
            "Username already exists, Please choose another one", status_code=400
        ) from None

    if new_url and old_url != get_settings().default_profile_picture_url:
        try:
            await files.delete(old_url)
        except FileStoreError as e:
            logger.warning(f"Could not remove old profile picture of user {user.id}: {e}")
    return user
