"""Password hashing."""

from passlib.context import CryptContext
from passlib.exc import UnknownHashError


class CredentialHasher:
    """Salted bcrypt hashing through passlib."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        """Hash a password. Each call uses a fresh salt."""
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str | None) -> bool:
        """Check a password against a stored hash. Never raises on mismatch."""
        if not password or not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except (UnknownHashError, ValueError, TypeError):
            return False
