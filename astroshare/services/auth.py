"""Authentication service: registration, sign-in and session token lifecycle.

A session is one refresh token stored on the user. Login and Google sign-in
add one, refresh swaps one for a new one, logout removes one. Presenting a
refresh token that is no longer stored is treated as theft and signs the user
out everywhere.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from astroshare.exceptions import (
    ConfigurationError,
    ConflictError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    ReplayError,
    ValidationError,
)
from astroshare.models.user import User
from astroshare.services.files import FileStoreError, LocalFileStore
from astroshare.services.google import GoogleIdentity, GoogleIdentityVerifier
from astroshare.services.passwords import CredentialHasher
from astroshare.services.tokens import TokenPair, TokenService
from astroshare.services.users import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """A signed-in user and the token pair issued for this session."""

    user: User
    tokens: TokenPair


@dataclass(frozen=True)
class ProfilePicture:
    data: bytes
    filename: str | None = None


def derive_user_name(email: str) -> str:
    """Default username for a Google account: the local part of its email."""
    return email.split("@")[0] or "New User"


class AuthService:
    """Orchestrates the user repository, token service and identity checks."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        hasher: CredentialHasher,
        google: GoogleIdentityVerifier,
        files: LocalFileStore,
        *,
        default_profile_picture_url: str,
    ):
        self.users = users
        self.tokens = tokens
        self.hasher = hasher
        self.google = google
        self.files = files
        self.default_profile_picture_url = default_profile_picture_url

    # --------- Registration ----------

    async def register(
        self,
        user_name: str | None,
        email: str | None,
        password: str | None,
        profile_picture: ProfilePicture | None = None,
    ) -> User:
        """Create a password account. Never issues tokens."""
        if not user_name or not email or not password:
            raise ValidationError("Email, username, and password required")

        try:
            username_taken = self.users.find_by_username(user_name) is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking for existing user: {e}")
            raise InternalError("Server error") from None
        if username_taken:
            raise ConflictError("Username already exists", status_code=400)

        try:
            email_taken = self.users.find_by_email(email) is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking for existing email: {e}")
            raise InternalError("Server error") from None
        if email_taken:
            raise ConflictError("Email already exists", status_code=400)

        password_hash = self.hasher.hash(password)
        profile_picture_url = await self._store_profile_picture(profile_picture)

        try:
            user = self.users.create(
                user_name=user_name,
                email=email,
                password_hash=password_hash,
                profile_picture_url=profile_picture_url,
            )
        except ConflictError as e:
            # Lost a race with a concurrent registration
            raise ConflictError(e.detail, status_code=400) from None
        except SQLAlchemyError as e:
            logger.error(f"Registration error: {e}")
            raise InternalError("Error registering user", details={"error": str(e)}) from None

        logger.info(f"Registered user {user.id} ({user.user_name})")
        return user

    async def _store_profile_picture(self, picture: ProfilePicture | None) -> str:
        if picture is None or not picture.data:
            return self.default_profile_picture_url
        try:
            return await self.files.save(picture.data, picture.filename)
        except FileStoreError as e:
            logger.error(f"Error uploading profile picture, using default: {e}")
            return self.default_profile_picture_url

    # --------- Sign-in ----------

    def login(self, user_name: str | None, password: str | None) -> AuthResult:
        """Password login. Every credential failure raises the same error."""
        if not user_name or not password:
            logger.info("Login rejected: missing username or password")
            raise InvalidCredentialsError()

        user = self.users.find_by_username(user_name)
        if user is None:
            logger.info("Login rejected: unknown username")
            raise InvalidCredentialsError()
        if not self.hasher.verify(password, user.password_hash):
            logger.info(f"Login rejected: wrong password for user {user.id}")
            raise InvalidCredentialsError()

        return self._start_session(user)

    async def google_sign_in(self, credential: str | None) -> AuthResult:
        """Sign in with a Google ID token, creating the account on first use."""
        if not credential:
            raise ValidationError("Google credential required")
        identity = await self._verify_google(credential)

        user = self._find_google_user(identity)
        if user is None:
            user_name = derive_user_name(identity.email)
            if self.users.find_by_username(user_name) is not None:
                raise ConflictError(
                    "Username already exists",
                    extra={
                        "message": "Please choose another username",
                        "email": identity.email,
                        "suggestedUserName": user_name,
                    },
                )
            user = self._create_google_user(identity, user_name)
        elif user.google_id is None:
            # Existing password account adopts Google sign-in
            user.google_id = identity.sub
            user = self.users.save(user)
            logger.info(f"Linked Google account to existing user {user.id}")

        return self._start_session(user)

    async def google_complete(
        self, credential: str | None, new_user_name: str | None
    ) -> AuthResult:
        """Finish a Google sign-in whose derived username was taken."""
        if not credential or not new_user_name:
            raise ValidationError("Credential and newUsername are required.")
        identity = await self._verify_google(credential)

        if self.users.find_by_username(new_user_name) is not None:
            raise ConflictError("Username already exists")

        user = self._find_google_user(identity)
        if user is None:
            user = self._create_google_user(identity, new_user_name)
        else:
            user.user_name = new_user_name
            if user.google_id is None:
                user.google_id = identity.sub
            user = self.users.save(user)
            logger.info(f"Renamed user {user.id} to {new_user_name}")

        return self._start_session(user)

    async def _verify_google(self, credential: str) -> GoogleIdentity:
        identity = await self.google.verify(credential)
        if not identity.email:
            raise ValidationError("Google authentication failed: No email found.")
        return identity

    def _find_google_user(self, identity: GoogleIdentity) -> User | None:
        """The account linked to this Google subject, else the one holding its email."""
        user = self.users.find_by_google_id(identity.sub)
        if user is None:
            user = self.users.find_by_email(identity.email)
        return user

    def _create_google_user(self, identity: GoogleIdentity, user_name: str) -> User:
        user = self.users.create(
            user_name=user_name,
            email=identity.email,
            google_id=identity.sub,
            profile_picture_url=identity.picture or self.default_profile_picture_url,
        )
        logger.info(f"Created Google user {user.id} ({user.user_name})")
        return user

    def _start_session(self, user: User) -> AuthResult:
        """Issue a token pair and record its refresh token on the user."""
        try:
            tokens = self.tokens.issue_token_pair(user.id, user.email)
        except ConfigurationError:
            raise InternalError("Error generating tokens") from None

        def add_session(current: User) -> User:
            current.refresh_tokens = [*current.active_refresh_tokens(), tokens.refresh_token]
            return current

        user = self.users.update(user.id, add_session)
        logger.info(f"Started session for user {user.id}")
        return AuthResult(user=user, tokens=tokens)

    # --------- Session tokens ----------

    def refresh(self, refresh_token: str | None) -> TokenPair:
        """Rotate a refresh token: the presented one stops working, a new pair is returned."""
        if not refresh_token:
            raise ValidationError("Invalid refresh token")
        claims = self.tokens.verify(refresh_token, expected_type="refresh")

        if self.users.find_by_id(claims.user_id) is None:
            raise NotFoundError("Invalid token")

        replayed = False
        new_tokens: TokenPair | None = None

        def rotate(user: User) -> None:
            nonlocal replayed, new_tokens
            stored = user.active_refresh_tokens()
            if refresh_token not in stored:
                replayed = True
                new_tokens = None
                user.refresh_tokens = []
                return
            replayed = False
            new_tokens = self.tokens.issue_token_pair(user.id, user.email)
            user.refresh_tokens = [
                *(token for token in stored if token != refresh_token),
                new_tokens.refresh_token,
            ]

        self.users.update(claims.user_id, rotate)

        if replayed:
            logger.warning(
                f"Refresh token replay for user {claims.user_id}, all sessions revoked"
            )
            raise ReplayError()
        logger.info(f"Rotated refresh token for user {claims.user_id}")
        return new_tokens

    def logout(self, refresh_token: str | None) -> None:
        """End the session belonging to a refresh token. Repeating it is harmless."""
        if not refresh_token:
            raise ValidationError("Refresh token required")
        claims = self.tokens.verify(refresh_token, expected_type="refresh")

        if self.users.find_by_id(claims.user_id) is None:
            logger.error("Logout failed: user not found")
            raise NotFoundError("Invalid Token")

        presented = refresh_token.strip()

        def remove_session(user: User) -> None:
            user.refresh_tokens = [
                token for token in user.active_refresh_tokens() if token != presented
            ]

        self.users.update(claims.user_id, remove_session)
        logger.info(f"Logged out one session of user {claims.user_id}")
