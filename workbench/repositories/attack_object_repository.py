"""Versioned object repository: the latest-version query engine.

The store keeps every version of an object as its own row.  "Latest" queries
reduce those rows to one per stix_id with the following pipeline:

    1. group versions by stix_id and keep the maximum modified
    2. join back to recover the full row of that version
    3. apply revoked / deprecated / workflow-state filters
    4. apply free-text search over name and description
    5. order by stix_id, then skip and limit

Filters run after the reduction, so an object whose latest version is
revoked or deprecated disappears from the results entirely rather than
falling back to an older version.  Search also runs on the reduced stream:
a term found only in a superseded version does not surface that object.
"""

from typing import Iterable, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query

from ..models import AttackObject
from ..schemas.attack_object import QueryOptions
from .base import BaseRepository

SEARCH_FIELDS = ("name", "description")


def search_clause(model, fields: Iterable[str], search: str):
    """OR together a case-insensitive substring match of every term on every field.

    A row matches when any term matches any searchable field.  Terms are
    literal: ``%`` and ``_`` are escaped, not wildcards.
    """
    terms = [term for term in search.split() if term]
    clauses = [
        getattr(model, field).icontains(term, autoescape=True)
        for term in terms
        for field in fields
    ]
    return or_(*clauses) if clauses else None


class AttackObjectRepository(BaseRepository[AttackObject]):
    """Repository for version-chained STIX objects.

    When *stix_types* is given, every query is restricted to those STIX
    types; otherwise the repository spans all object kinds (used when
    resolving collection contents, which may point at any kind).
    """

    model_class = AttackObject
    key_columns = ("stix_id", "modified")

    def __init__(self, db, stix_types: Optional[Iterable[str]] = None):
        super().__init__(db)
        self.stix_types = tuple(stix_types) if stix_types else None

    def _base_query(self) -> Query:
        query = self.db.query(AttackObject)
        if self.stix_types:
            query = query.filter(AttackObject.type.in_(self.stix_types))
        return query

    # ------------------------------------------------------------------
    # Latest-version reduction
    # ------------------------------------------------------------------

    def _latest_query(self, options: QueryOptions) -> Query:
        """Build the reduce-then-filter query described in the module docstring."""
        latest = self.db.query(
            AttackObject.stix_id.label("stix_id"),
            func.max(AttackObject.modified).label("modified"),
        )
        if self.stix_types:
            latest = latest.filter(AttackObject.type.in_(self.stix_types))
        latest = latest.group_by(AttackObject.stix_id).subquery()

        query = self.db.query(AttackObject).join(
            latest,
            and_(
                AttackObject.stix_id == latest.c.stix_id,
                AttackObject.modified == latest.c.modified,
            ),
        )

        if not options.include_revoked:
            query = query.filter(or_(AttackObject.revoked.is_(None), AttackObject.revoked.is_(False)))
        if not options.include_deprecated:
            query = query.filter(or_(AttackObject.deprecated.is_(None), AttackObject.deprecated.is_(False)))
        if options.state is not None:
            query = query.filter(AttackObject.workflow_state == options.state)

        if options.search:
            clause = search_clause(AttackObject, SEARCH_FIELDS, options.search)
            if clause is not None:
                query = query.filter(clause)

        return query

    def _paginate(self, query: Query, options: QueryOptions) -> Query:
        query = query.order_by(AttackObject.stix_id)
        if options.offset:
            query = query.offset(options.offset)
        if options.limit:
            query = query.limit(options.limit)
        return query

    def get_latest_versions(self, options: QueryOptions) -> List[AttackObject]:
        """Latest version of every object matching *options*, ordered by stix_id."""
        return self._paginate(self._latest_query(options), options).all()

    def get_latest_versions_page(self, options: QueryOptions) -> Tuple[List[AttackObject], int]:
        """One page of latest versions plus the pre-pagination match count.

        The count rides along each row as a window aggregate, so page and
        total come from the same statement.  A page past the end has no rows
        to carry it and falls back to a separate count.
        """
        query = self._latest_query(options).add_columns(func.count().over().label("total"))
        rows = self._paginate(query, options).all()
        if rows:
            return [row[0] for row in rows], rows[0].total
        total = self.count_latest_versions(options) if options.offset else 0
        return [], total

    def count_latest_versions(self, options: QueryOptions) -> int:
        """Number of objects matching *options* before pagination."""
        return self._latest_query(options).order_by(None).count()

    # ------------------------------------------------------------------
    # Single-id lookups
    # ------------------------------------------------------------------

    def get_versions(self, stix_id: str) -> List[AttackObject]:
        """Every stored version of *stix_id*, in storage order."""
        return self._base_query().filter(AttackObject.stix_id == stix_id).order_by(AttackObject.id).all()

    def get_latest(self, stix_id: str) -> Optional[AttackObject]:
        """Version of *stix_id* with the greatest modified, or None."""
        return (
            self._base_query()
            .filter(AttackObject.stix_id == stix_id)
            .order_by(AttackObject.modified.desc())
            .first()
        )

    def get_version(self, stix_id: str, modified: str) -> Optional[AttackObject]:
        """Exact version, or None."""
        return self.get_by_key_optional(stix_id, modified)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, stix: dict, workspace: dict) -> AttackObject:
        """Insert a new version. Raises DuplicateIdError if the key exists."""
        db_object = AttackObject()
        db_object.apply_stix(stix)
        db_object.apply_workspace(workspace)
        return self.save(db_object)

    def delete_version(self, stix_id: str, modified: str) -> Optional[AttackObject]:
        """Remove one exact version. Returns the removed row, or None if absent."""
        db_object = self.get_version(stix_id, modified)
        if db_object is None:
            return None
        return self.remove(db_object)
