"""Generic create/read/update/delete over one SQLAlchemy model."""

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from astroshare.database import Base
from astroshare.exceptions import NotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class CrudService(Generic[ModelT]):
    """Basic persistence for one model, shared by the per-resource routes."""

    def __init__(self, db: Session, model: type[ModelT]):
        self.db = db
        self.model = model
        self.label = model.__name__

    def create(self, **fields: Any) -> ModelT:
        item = self.model(**fields)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Created {self.label} {item.id}")
        return item

    def list(self, **filters: Any) -> list[ModelT]:
        """All rows matching the given column values, oldest first."""
        query = self.db.query(self.model)
        if filters:
            query = query.filter_by(**filters)
        return query.order_by(self.model.id).all()

    def get(self, item_id: int) -> ModelT:
        item = self.db.get(self.model, item_id)
        if item is None:
            raise NotFoundError(f"{self.label} not found")
        return item

    def update(self, item: ModelT, **fields: Any) -> ModelT:
        """Set the given fields. None values are skipped."""
        for name, value in fields.items():
            if value is not None:
                setattr(item, name, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete(self, item: ModelT) -> None:
        item_id = item.id
        self.db.delete(item)
        self.db.commit()
        logger.info(f"Deleted {self.label} {item_id}")
