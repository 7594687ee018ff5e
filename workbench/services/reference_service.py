"""Reference service: the citation catalog keyed by source_name."""

import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..exceptions import MissingParameterError
from ..models import Reference
from ..repositories import ReferenceRepository
from ..schemas.attack_object import Pagination
from ..schemas.reference import (
    PaginatedReferences,
    ReferenceCreate,
    ReferenceQueryOptions,
    ReferenceResponse,
    ReferenceUpdate,
)

logger = logging.getLogger(__name__)


class ReferenceService:
    """CRUD and search over references."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReferenceRepository(db)

    def retrieve_all(self, options: ReferenceQueryOptions) -> Union[List[Reference], PaginatedReferences]:
        """References ordered by source_name, optionally searched and paginated."""
        if not options.include_pagination:
            return self.repo.get_all(options)

        references, total = self.repo.get_page(options)
        return PaginatedReferences(
            pagination=Pagination(total=total, offset=options.offset, limit=options.limit),
            data=[ReferenceResponse.model_validate(ref) for ref in references],
        )

    def create(self, data: ReferenceCreate) -> Reference:
        """Create a reference. Raises DuplicateIdError if source_name is taken."""
        reference = self.repo.create(data.source_name, data.description, data.url)
        self.db.commit()
        logger.info("Created reference", extra={"source_name": data.source_name})
        return reference

    def update(self, data: ReferenceUpdate) -> Optional[Reference]:
        """Overwrite the supplied fields of the reference named by data.source_name.

        Returns None if no such reference exists.
        """
        if not data.source_name:
            raise MissingParameterError("source_name")

        reference = self.repo.get_by_source_name(data.source_name)
        if reference is None:
            return None

        for field, value in data.model_dump(exclude_unset=True, exclude={"source_name"}).items():
            setattr(reference, field, value)

        self.repo.save(reference)
        self.db.commit()
        logger.info("Updated reference", extra={"source_name": data.source_name})
        return reference

    def delete(self, source_name: Optional[str]) -> Optional[ReferenceResponse]:
        """Remove a reference. Returns what was removed, or None."""
        if not source_name:
            raise MissingParameterError("source_name")

        reference = self.repo.get_by_source_name(source_name)
        if reference is None:
            return None

        removed = ReferenceResponse.model_validate(reference)
        self.repo.remove(reference)
        self.db.commit()
        logger.info("Deleted reference", extra={"source_name": source_name})
        return removed
