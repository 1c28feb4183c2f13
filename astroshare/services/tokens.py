"""Signed access/refresh token issuance and verification."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from jose import ExpiredSignatureError, JWTError, jwt

from astroshare.config import Settings
from astroshare.exceptions import ConfigurationError, InvalidTokenError

logger = logging.getLogger(__name__)

TokenType = Literal["access", "refresh"]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a session token."""

    user_id: int
    token_type: TokenType
    email: str | None
    expires_at: datetime


class TokenService:
    """Issues and verifies HS256 session tokens.

    Access and refresh tokens share the signing secret but carry different
    claims and lifetimes. Every token embeds a random nonce, so two tokens
    minted for the same user in the same second are still distinct strings.
    """

    def __init__(
        self,
        secret: str | None,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self.secret = secret or None
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.token_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expiration_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expiration_days),
        )

    @property
    def is_configured(self) -> bool:
        return self.secret is not None

    def _require_secret(self) -> str:
        if self.secret is None:
            logger.error("Token secret is not configured")
            raise ConfigurationError("Token secret not set")
        return self.secret

    def _encode(self, claims: dict, ttl: timedelta, secret: str) -> str:
        now = datetime.now(UTC)
        to_encode = {
            **claims,
            "nonce": secrets.token_hex(16),
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def issue_token_pair(self, user_id: int, email: str | None = None) -> TokenPair:
        """Mint a fresh access/refresh pair for a user."""
        secret = self._require_secret()
        access_token = self._encode(
            {"sub": str(user_id), "email": email, "type": "access"}, self.access_ttl, secret
        )
        refresh_token = self._encode(
            {"sub": str(user_id), "type": "refresh"}, self.refresh_ttl, secret
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify(self, token: str, expected_type: TokenType | None = None) -> TokenClaims:
        """Verify signature and expiry, then return the token's claims."""
        secret = self._require_secret()
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidTokenError("Token expired") from None
        except JWTError:
            raise InvalidTokenError() from None

        token_type = payload.get("type")
        if token_type not in ("access", "refresh"):
            raise InvalidTokenError()
        if expected_type is not None and token_type != expected_type:
            raise InvalidTokenError()

        try:
            user_id = int(payload["sub"])
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenError() from None

        return TokenClaims(
            user_id=user_id,
            token_type=token_type,
            email=payload.get("email"),
            expires_at=expires_at,
        )
