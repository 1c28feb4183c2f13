"""FastAPI dependencies for authentication and services."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from astroshare.config import get_settings
from astroshare.database import get_db
from astroshare.exceptions import ConfigurationError, NotFoundError, UnauthenticatedError
from astroshare.models.user import User
from astroshare.services.auth import AuthService
from astroshare.services.files import LocalFileStore
from astroshare.services.google import GoogleIdentityVerifier
from astroshare.services.passwords import CredentialHasher
from astroshare.services.tokens import TokenService
from astroshare.services.users import UserRepository

# auto_error=False so a missing header reaches the guard and gets our 401
security = HTTPBearer(auto_error=False)


def get_token_service() -> TokenService:
    """Token service built from current settings."""
    return TokenService.from_settings(get_settings())


@lru_cache
def get_credential_hasher() -> CredentialHasher:
    return CredentialHasher(rounds=get_settings().bcrypt_rounds)


@lru_cache
def get_google_verifier() -> GoogleIdentityVerifier:
    return GoogleIdentityVerifier(get_settings().google_client_id)


@lru_cache
def get_file_store() -> LocalFileStore:
    settings = get_settings()
    return LocalFileStore(settings.upload_dir, settings.public_base_url)


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserRepository:
    return UserRepository(db, update_attempts=get_settings().session_update_attempts)


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    hasher: Annotated[CredentialHasher, Depends(get_credential_hasher)],
    google: Annotated[GoogleIdentityVerifier, Depends(get_google_verifier)],
    files: Annotated[LocalFileStore, Depends(get_file_store)],
) -> AuthService:
    """Get auth service with dependencies."""
    return AuthService(
        users,
        tokens,
        hasher,
        google,
        files,
        default_profile_picture_url=get_settings().default_profile_picture_url,
    )


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> int:
    """Auth guard: the id of the user a bearer access token was issued to.

    Trusts the signature alone. The user may have been removed or signed out
    since; access tokens stay valid until they expire.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Access denied")
    if not tokens.is_configured:
        raise ConfigurationError("Token secret not set", status_code=400)
    return tokens.verify(credentials.credentials, expected_type="access").user_id


def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> User:
    """The authenticated user's record, for routes that act on their behalf."""
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
