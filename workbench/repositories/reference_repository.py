"""Reference repository for database operations."""

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query

from ..models import Reference
from ..schemas.reference import ReferenceQueryOptions
from .attack_object_repository import search_clause
from .base import BaseRepository

SEARCH_FIELDS = ("source_name", "description", "url")


class ReferenceRepository(BaseRepository[Reference]):
    """Repository for the reference catalog, keyed by source_name."""

    model_class = Reference
    key_columns = ("source_name",)

    def _filtered_query(self, options: ReferenceQueryOptions) -> Query:
        query = self._base_query()
        if options.search:
            clause = search_clause(Reference, SEARCH_FIELDS, options.search)
            if clause is not None:
                query = query.filter(clause)
        if options.source_name is not None:
            query = query.filter(Reference.source_name == options.source_name)
        return query

    def _paginate(self, query: Query, options: ReferenceQueryOptions) -> Query:
        query = query.order_by(Reference.source_name)
        if options.offset:
            query = query.offset(options.offset)
        if options.limit:
            query = query.limit(options.limit)
        return query

    def get_all(self, options: ReferenceQueryOptions) -> List[Reference]:
        return self._paginate(self._filtered_query(options), options).all()

    def get_page(self, options: ReferenceQueryOptions) -> Tuple[List[Reference], int]:
        """One page of references and the match count, from a single statement."""
        query = self._filtered_query(options).add_columns(func.count().over().label("total"))
        rows = self._paginate(query, options).all()
        if rows:
            return [row[0] for row in rows], rows[0].total
        return [], (self.count(options) if options.offset else 0)

    def count(self, options: ReferenceQueryOptions) -> int:
        return self._filtered_query(options).count()

    def get_by_source_name(self, source_name: str) -> Optional[Reference]:
        return self.get_by_key_optional(source_name)

    def create(self, source_name: str, description: Optional[str], url: Optional[str]) -> Reference:
        """Insert a reference. Raises DuplicateIdError if source_name exists."""
        return self.save(Reference(source_name=source_name, description=description, url=url))
