"""Typed application errors.

Services raise these; a single handler in ``astroshare.main`` turns them into
JSON responses of the form ``{"detail": ..., **extra}``.
"""

from typing import Any


class AstroShareError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(
        self,
        detail: str | None = None,
        *,
        status_code: int | None = None,
        extra: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.detail = detail or self.default_detail
        if status_code is not None:
            self.status_code = status_code
        # Merged into the response body
        self.extra = extra or {}
        # Diagnostics for logs only
        self.details = details or {}
        super().__init__(self.detail)


class ValidationError(AstroShareError):
    status_code = 400
    default_detail = "Invalid request"


class ConflictError(AstroShareError):
    status_code = 409
    default_detail = "Already exists"


class InvalidCredentialsError(AstroShareError):
    """Login failure. The message never says which part was wrong."""

    status_code = 400
    default_detail = "Wrong username or password"


class InvalidGoogleCredentialError(AstroShareError):
    status_code = 401
    default_detail = "Google authentication failed"


class InvalidTokenError(AstroShareError):
    status_code = 403
    default_detail = "Invalid token"


class ReplayError(AstroShareError):
    """A refresh token that is no longer live for its owner was presented."""

    status_code = 400
    default_detail = "Invalid refresh token"


class NotFoundError(AstroShareError):
    status_code = 404
    default_detail = "Not found"


class UnauthenticatedError(AstroShareError):
    status_code = 401
    default_detail = "Access denied"


class ForbiddenError(AstroShareError):
    status_code = 403
    default_detail = "Not allowed"


class ConfigurationError(AstroShareError):
    """A deployment fault, such as a missing signing secret."""

    status_code = 500
    default_detail = "Token secret not set"


class InternalError(AstroShareError):
    status_code = 500
    default_detail = "Internal server error"
