"""Base repository with shared natural-key lookup and unique-write patterns.

Subclasses specify model_class and key_columns; the base provides exact
lookups by natural key and a flush that turns unique-index violations into
DuplicateIdError.  Neither commits: the owning service decides when a unit of
work ends.

Override _base_query() to apply default filters (e.g., restricting
AttackObjectRepository to the STIX types of one endpoint).
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

import sqlalchemy.exc
from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import DuplicateIdError

ModelT = TypeVar("ModelT", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:  The SQLAlchemy model (e.g., AttackObject)
        key_columns:  Column names forming the natural key, in argument order
    """

    model_class: Type[ModelT]
    key_columns: tuple[str, ...] = ("id",)

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        """Base query for natural-key lookups.

        Override in subclasses to apply default filters.
        """
        return self.db.query(self.model_class)

    def _key_filter(self, query: Query, key_values: tuple[Any, ...]) -> Query:
        for column, value in zip(self.key_columns, key_values, strict=True):
            query = query.filter(getattr(self.model_class, column) == value)
        return query

    def get_by_key_optional(self, *key_values: Any) -> Optional[ModelT]:
        """Get entity by natural key, or None if not found."""
        return self._key_filter(self._base_query(), key_values).first()

    def _key_of(self, entity: ModelT) -> dict[str, Any]:
        return {column: getattr(entity, column) for column in self.key_columns}

    def save(self, entity: ModelT) -> ModelT:
        """Add and flush *entity*. Raises DuplicateIdError on a unique-key clash.

        The session is rolled back on a clash so it stays usable.
        """
        key = self._key_of(entity)
        self.db.add(entity)
        try:
            self.db.flush()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Duplicate key rejected by store",
                extra={"table": self.model_class.__tablename__, "key": key, "error": str(e.orig)},
            )
            raise DuplicateIdError(key) from e
        self.db.refresh(entity)
        return entity

    def remove(self, entity: ModelT) -> ModelT:
        """Delete *entity* and flush."""
        self.db.delete(entity)
        self.db.flush()
        return entity
