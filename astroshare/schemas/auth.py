"""Authentication schemas."""

from pydantic import Field

from astroshare.schemas import CamelModel


class UserLogin(CamelModel):
    """Password login request. Missing fields are rejected by the service."""

    user_name: str | None = None
    password: str | None = None


class GoogleSignIn(CamelModel):
    """Google sign-in with an ID token from Google Identity Services."""

    credential: str | None = None


class GoogleComplete(CamelModel):
    """Google sign-in retried with a username chosen by the user."""

    credential: str | None = None
    new_username: str | None = None


class RefreshTokenRequest(CamelModel):
    """Body of refresh and logout requests."""

    refresh_token: str | None = None


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str


class RegisteredUser(CamelModel):
    """Public profile returned by registration."""

    user_name: str
    email: str
    profile_picture_url: str


class AuthResponse(CamelModel):
    """Profile and tokens returned by a successful sign-in."""

    id: int = Field(serialization_alias="_id")
    user_name: str
    email: str
    profile_picture_url: str
    access_token: str
    refresh_token: str


class MessageResponse(CamelModel):
    message: str
