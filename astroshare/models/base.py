"""Shared column helpers for SQLAlchemy models."""

from sqlalchemy import JSON, Column, DateTime, func


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamp columns."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def string_list_column() -> Column:
    """A JSON array of strings.

    In-place mutation is not tracked: callers assign a new list to persist a change.
    """
    return Column(JSON, nullable=True, default=list)


def as_string_list(value: object) -> list[str]:
    """Normalize a stored JSON list, discarding anything that is not a list of strings."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str)]
