"""Collection service: versioned collections and their contents.

A collection version lists exact object versions in ``x_mitre_contents``.
Retrieval can expand that list into the referenced objects; deletion can
cascade to them.  Both fan out over a bounded thread pool with one session
per task.  Cascading delete has no transaction around it: contents are
removed first, and the first failure aborts the rest of the batch (and the
removal of the collection itself) without undoing what already happened.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, sessionmaker

from ..core.config import settings
from ..core.identity import validate_stix_id, validate_version_key
from ..core.object_types import COLLECTIONS
from ..models import AttackObject
from ..repositories import AttackObjectRepository
from ..schemas.attack_object import AttackObjectResponse, CollectionResponse, QueryOptions
from .attack_object_service import AttackObjectService
from .content_resolver import ContentResolver, content_key
from .fanout import map_bounded

logger = logging.getLogger(__name__)


class CollectionService(AttackObjectService):
    """Collection lifecycle with content expansion and cascading delete."""

    def __init__(self, db: Session, max_workers: Optional[int] = None):
        super().__init__(db, COLLECTIONS)
        self.max_workers = max_workers or settings.content_fanout_width
        self.session_factory = sessionmaker(bind=db.get_bind(), autoflush=False)
        self.resolver = ContentResolver(self.session_factory, self.max_workers)

    @staticmethod
    def _contents_of(collection: AttackObject) -> list:
        return collection.stix.get("x_mitre_contents") or []

    def retrieve_by_id(self, stix_id: Optional[str], options: QueryOptions) -> list:
        """As AttackObjectService.retrieve_by_id, plus ``contents`` when requested.

        Collections are expanded one after another; each expansion fans out.
        """
        collections = super().retrieve_by_id(stix_id, options)
        if not options.retrieve_contents:
            return collections

        expanded = []
        for collection in collections:
            response = CollectionResponse.model_validate(collection)
            response.contents = self.resolver.resolve(self._contents_of(collection))
            expanded.append(response)
        return expanded

    # ------------------------------------------------------------------
    # Cascading delete
    # ------------------------------------------------------------------

    def _delete_content(self, key: tuple[str, str]) -> bool:
        """Remove one referenced version in its own session. Runs on a worker thread."""
        with self.session_factory() as session:
            removed = AttackObjectRepository(session).delete_version(*key)
            session.commit()
            return removed is not None

    def _delete_contents(self, collections: List[AttackObject]) -> int:
        """Remove every version referenced by *collections*. Returns how many existed."""
        # Validate every reference before touching the store.
        keys = [content_key(ref) for collection in collections for ref in self._contents_of(collection)]
        keys = list(dict.fromkeys(keys))
        if not keys:
            return 0

        results = map_bounded(self._delete_content, keys, self.max_workers)
        count = sum(1 for removed in results if removed)
        logger.info(
            "Deleted collection contents",
            extra={"requested": len(keys), "removed": count},
        )
        return count

    def delete_version(
        self,
        stix_id: Optional[str],
        modified: Optional[str],
        delete_all_contents: bool = False,
    ) -> List[AttackObjectResponse]:
        """Remove one collection version, and optionally everything it references."""
        stix_id, modified = validate_version_key(stix_id, modified)
        collection = self.repo.get_version(stix_id, modified)
        collections = [collection] if collection else []
        if delete_all_contents:
            self._delete_contents(collections)
        return self._remove(collections)

    def delete(self, stix_id: Optional[str], delete_all_contents: bool = False) -> List[AttackObjectResponse]:
        """Remove every version of a collection, and optionally all referenced versions."""
        validate_stix_id(stix_id)
        collections = self.repo.get_versions(stix_id)
        if delete_all_contents:
            self._delete_contents(collections)
        return self._remove(collections)
