"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile

from astroshare.api.dependencies import get_auth_service, get_current_user
from astroshare.models.user import User
from astroshare.schemas.auth import (
    AuthResponse,
    GoogleComplete,
    GoogleSignIn,
    MessageResponse,
    RefreshTokenRequest,
    RegisteredUser,
    TokenPairResponse,
    UserLogin,
)
from astroshare.schemas.user import UserProfile
from astroshare.services.auth import AuthResult, AuthService, ProfilePicture

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        id=result.user.id,
        user_name=result.user.user_name,
        email=result.user.email,
        profile_picture_url=result.user.profile_picture_url,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/register", response_model=RegisteredUser)
async def register(
    auth: Annotated[AuthService, Depends(get_auth_service)],
    user_name: Annotated[str | None, Form(alias="userName")] = None,
    email: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    profile_picture: Annotated[UploadFile | None, File(alias="profilePicture")] = None,
):
    """Register a new password account."""
    picture = None
    if profile_picture is not None:
        picture = ProfilePicture(data=await profile_picture.read(), filename=profile_picture.filename)

    user = await auth.register(user_name, email, password, picture)
    return RegisteredUser.model_validate(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Login with username and password."""
    return _auth_response(auth.login(credentials.user_name, credentials.password))


@router.post("/google", response_model=AuthResponse)
async def google_sign_in(
    body: GoogleSignIn,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Sign in with a Google ID token."""
    return _auth_response(await auth.google_sign_in(body.credential))


@router.post("/google/complete", response_model=AuthResponse)
async def google_complete(
    body: GoogleComplete,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Finish a Google sign-in with a user-chosen username."""
    return _auth_response(await auth.google_complete(body.credential, body.new_username))


@router.post("/refresh", response_model=TokenPairResponse)
async def refresh(
    body: RefreshTokenRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """Exchange a refresh token for a new token pair."""
    tokens = auth.refresh(body.refresh_token)
    return TokenPairResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: RefreshTokenRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    """End the session that owns a refresh token."""
    auth.logout(body.refresh_token)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserProfile)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user
