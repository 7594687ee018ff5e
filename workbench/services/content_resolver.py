"""Resolution of collection content references.

A collection lists its contents as ``{object_ref, object_modified}`` pairs,
each addressing one exact version of another object.  The resolver looks
those versions up with bounded concurrency, keeps the input order, and
silently drops references that point at nothing.  A lookup that fails
(e.g. a malformed reference) aborts the whole batch.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.identity import validate_version_key
from ..exceptions import BadlyFormattedParameterError
from ..repositories import AttackObjectRepository
from ..schemas.attack_object import AttackObjectResponse
from ..schemas.stix import ContentReference
from .fanout import FANOUT_WIDTH_DEFAULT, map_bounded

logger = logging.getLogger(__name__)

RefLike = Union[ContentReference, Mapping[str, Any]]


def content_key(ref: RefLike) -> tuple[str, str]:
    """Validated (stix_id, modified) key of a content reference."""
    if isinstance(ref, ContentReference):
        return validate_version_key(ref.object_ref, ref.object_modified)
    if not isinstance(ref, Mapping):
        raise BadlyFormattedParameterError("x_mitre_contents", ref)
    return validate_version_key(ref.get("object_ref"), ref.get("object_modified"))


class ContentResolver:
    """Resolve content references to stored versions.

    Each lookup runs on a worker thread with its own session from
    *session_factory*, so the caller's session is never shared across
    threads.
    """

    def __init__(self, session_factory: Callable[[], Session], max_workers: int = FANOUT_WIDTH_DEFAULT):
        self.session_factory = session_factory
        self.max_workers = max_workers

    def _resolve_one(self, ref: RefLike) -> Optional[AttackObjectResponse]:
        stix_id, modified = content_key(ref)
        with self.session_factory() as session:
            db_object = AttackObjectRepository(session).get_version(stix_id, modified)
            if db_object is None:
                return None
            return AttackObjectResponse.model_validate(db_object)

    def resolve(self, refs: Iterable[RefLike]) -> List[AttackObjectResponse]:
        """Resolved versions in reference order, unresolvable references dropped."""
        refs = list(refs)
        resolved = map_bounded(self._resolve_one, refs, self.max_workers)
        found = [obj for obj in resolved if obj is not None]
        if len(found) < len(refs):
            logger.debug(
                "Dropped unresolved content references",
                extra={"requested": len(refs), "resolved": len(found)},
            )
        return found
