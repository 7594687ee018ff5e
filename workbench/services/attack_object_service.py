"""Versioned object service: lifecycle of one object kind.

Owns create / retrieve / update / delete for the version chains of one
object kind (techniques, tactics, ...).  Every version is its own stored
document addressed by (stix.id, stix.modified):

- create appends a version; the store's unique index rejects a second
  version with the same key (DuplicateIdError), so concurrent creators
  need no application lock
- update replaces the one exact version the caller addresses; it never
  appends a new version on its own
- delete removes exact versions; removing something already gone is not
  an error

Lookups that find nothing return None / [] and leave the 404 decision to
the caller.
"""

import logging
from typing import List, Optional, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PayloadValidationError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.identity import (
    generate_stix_id,
    normalize_timestamp,
    stix_type_of,
    validate_stix_id,
    validate_version_key,
)
from ..core.object_types import ObjectType
from ..exceptions import InvalidQueryParameterError, ValidationError
from ..models import AttackObject
from ..repositories import AttackObjectRepository
from ..schemas.attack_object import (
    AttackObjectCreate,
    AttackObjectResponse,
    AttackObjectUpdate,
    PaginatedAttackObjects,
    Pagination,
    QueryOptions,
)
from ..schemas.stix import StixObject

logger = logging.getLogger(__name__)

_stix_adapter = TypeAdapter(StixObject)

VERSIONS_ALL = "all"
VERSIONS_LATEST = "latest"


class AttackObjectService:
    """Lifecycle operations for the version chains of one object kind."""

    def __init__(self, db: Session, object_type: ObjectType):
        self.db = db
        self.object_type = object_type
        self.repo = AttackObjectRepository(db, object_type.stix_types)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def retrieve_all(self, options: QueryOptions) -> Union[List[AttackObject], PaginatedAttackObjects]:
        """Latest version of every matching object.

        Returns a bare list, or ``{pagination, data}`` when
        ``options.include_pagination`` is set.
        """
        if not options.include_pagination:
            return self.repo.get_latest_versions(options)

        documents, total = self.repo.get_latest_versions_page(options)
        return PaginatedAttackObjects(
            pagination=Pagination(total=total, offset=options.offset, limit=options.limit),
            data=[AttackObjectResponse.model_validate(doc) for doc in documents],
        )

    def retrieve_by_id(self, stix_id: Optional[str], options: QueryOptions) -> list:
        """Versions of one object selected by ``options.versions``.

        ``all`` returns every stored version in storage order; ``latest``
        returns the newest version in a one-element list, or [] if the id is
        unknown.
        """
        validate_stix_id(stix_id)

        if options.versions == VERSIONS_ALL:
            return self.repo.get_versions(stix_id)
        if options.versions == VERSIONS_LATEST:
            latest = self.repo.get_latest(stix_id)
            return [latest] if latest else []
        raise InvalidQueryParameterError("versions", options.versions)

    def retrieve_version_by_id(self, stix_id: Optional[str], modified: Optional[str]) -> Optional[AttackObject]:
        """One exact version, or None."""
        stix_id, modified = validate_version_key(stix_id, modified)
        return self.repo.get_version(stix_id, modified)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _prepare_new_version(self, stix: dict) -> dict:
        """Apply identity rules and server-side stamps to a new version."""
        stix_type = stix["type"]
        if not self.object_type.accepts(stix_type):
            raise ValidationError(
                f"stix.type '{stix_type}' is not a {self.object_type.label}",
                field="stix.type",
            )

        if stix.get("id"):
            validate_stix_id(stix["id"], "stix.id")
            if stix_type_of(stix["id"]) != stix_type:
                raise ValidationError("stix.id prefix does not match stix.type", field="stix.id")
        else:
            stix["id"] = generate_stix_id(stix_type)

        stix["modified"] = normalize_timestamp(stix.get("modified"), "stix.modified")
        stix["created"] = normalize_timestamp(stix.get("created") or stix["modified"], "stix.created")
        stix.setdefault("spec_version", "2.1")
        stix["x_mitre_attack_spec_version"] = settings.attack_spec_version

        if settings.organization_identity_ref:
            stix.setdefault("created_by_ref", settings.organization_identity_ref)
            stix["x_mitre_modified_by_ref"] = settings.organization_identity_ref

        return stix

    @staticmethod
    def _validate_payload(stix: dict) -> dict:
        """Check a merged payload against its STIX variant; return it as stored."""
        try:
            validated = _stix_adapter.validate_python(stix)
        except PayloadValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in ("stix", *error["loc"][1:]))
            raise ValidationError(f"{field}: {error['msg']}", field=field) from e
        return validated.model_dump(exclude_unset=True, exclude_none=True)

    def create(self, data: AttackObjectCreate) -> AttackObject:
        """Store a new version. Raises DuplicateIdError if (id, modified) exists."""
        stix = self._prepare_new_version(data.stix.model_dump(exclude_unset=True, exclude_none=True))
        workspace = data.workspace.model_dump(exclude_none=True)

        db_object = self.repo.create(stix, workspace)
        self.db.commit()
        logger.info(
            f"Created {self.object_type.label} version",
            extra={"stix_id": stix["id"], "modified": stix["modified"]},
        )
        return db_object

    def update_version(
        self,
        stix_id: Optional[str],
        modified: Optional[str],
        data: AttackObjectUpdate,
    ) -> Optional[AttackObject]:
        """Replace the exact version (stix_id, modified) in place.

        The caller's ``stix`` / ``workspace`` fields are merged over the
        stored ones.  Returns None when the version does not exist.  Changing
        stix.modified onto another stored version raises DuplicateIdError.
        """
        stix_id, modified = validate_version_key(stix_id, modified)
        db_object = self.repo.get_version(stix_id, modified)
        if db_object is None:
            return None

        stix = {**db_object.stix, **data.stix}
        stix["id"] = db_object.stix_id
        stix["type"] = db_object.type
        stix["modified"] = normalize_timestamp(stix.get("modified"), "stix.modified")
        stix["created"] = normalize_timestamp(stix.get("created"), "stix.created")
        if settings.organization_identity_ref:
            stix["x_mitre_modified_by_ref"] = settings.organization_identity_ref
        db_object.apply_stix(self._validate_payload(stix))

        if data.workspace is not None:
            db_object.apply_workspace({**(db_object.workspace or {}), **data.workspace})

        self.repo.save(db_object)
        self.db.commit()
        logger.info(
            f"Updated {self.object_type.label} version",
            extra={"stix_id": stix_id, "modified": modified, "new_modified": stix["modified"]},
        )
        return db_object

    def _remove(self, documents: List[AttackObject]) -> List[AttackObjectResponse]:
        """Delete rows and commit. Returns snapshots taken before removal."""
        removed = [AttackObjectResponse.model_validate(doc) for doc in documents]
        for doc in documents:
            self.repo.remove(doc)
        self.db.commit()
        if removed:
            logger.info(
                f"Deleted {len(removed)} {self.object_type.label} version(s)",
                extra={"keys": [(r.stix["id"], r.stix["modified"]) for r in removed]},
            )
        return removed

    def delete_version(self, stix_id: Optional[str], modified: Optional[str]) -> List[AttackObjectResponse]:
        """Remove one exact version. Returns what was removed (possibly nothing)."""
        stix_id, modified = validate_version_key(stix_id, modified)
        db_object = self.repo.get_version(stix_id, modified)
        return self._remove([db_object] if db_object else [])

    def delete_all_versions(self, stix_id: Optional[str]) -> List[AttackObjectResponse]:
        """Remove every version of *stix_id*."""
        validate_stix_id(stix_id)
        return self._remove(self.repo.get_versions(stix_id))
