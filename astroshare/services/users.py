"""User persistence."""

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from astroshare.exceptions import ConflictError, InternalError, NotFoundError
from astroshare.models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """Name the duplicated field when the database error makes it visible."""
    message = str(exc.orig).lower()
    if "user_name" in message:
        return ConflictError("Username already exists")
    if "email" in message:
        return ConflictError("Email already exists")
    if "google_id" in message:
        return ConflictError("Google account already linked")
    return ConflictError("User already exists")


class UserRepository:
    """Lookup and persistence of users over a SQLAlchemy session."""

    def __init__(self, db: Session, *, update_attempts: int = 3):
        self.db = db
        self.update_attempts = update_attempts

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def find_by_username(self, user_name: str) -> User | None:
        return self.db.query(User).filter(User.user_name == user_name).first()

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_google_id(self, google_id: str) -> User | None:
        return self.db.query(User).filter(User.google_id == google_id).first()

    def create(self, **fields) -> User:
        """Insert a user. Unique constraint violations become ConflictError."""
        fields.setdefault("refresh_tokens", [])
        user = User(**fields)
        self.db.add(user)
        self.save(user)
        return user

    def save(self, user: User) -> User:
        """Commit pending changes to a user."""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise _conflict_from_integrity_error(e) from None
        self.db.refresh(user)
        return user

    def update(self, user_id: int, mutate: Callable[[User], T]) -> T:
        """Apply ``mutate`` to the current state of a user and commit it.

        The users table is versioned, so a commit that races another writer
        fails with StaleDataError. The change is then re-applied to freshly
        loaded state, so ``mutate`` always decides against what is stored.
        Exceptions raised by ``mutate`` abort without writing.
        """
        for attempt in range(1, self.update_attempts + 1):
            user = (
                self.db.query(User)
                .filter(User.id == user_id)
                .populate_existing()
                .first()
            )
            if user is None:
                raise NotFoundError("User not found")

            try:
                result = mutate(user)
            except Exception:
                self.db.rollback()
                raise

            try:
                self.db.commit()
            except StaleDataError:
                self.db.rollback()
                logger.info(f"Concurrent update of user {user_id}, retrying (attempt {attempt})")
                continue
            except IntegrityError as e:
                self.db.rollback()
                raise _conflict_from_integrity_error(e) from None
            return result

        raise InternalError(
            "Server error",
            details={"reason": f"user {user_id} kept changing after {self.update_attempts} attempts"},
        )
