"""Versioned object API endpoints.

One router per object kind, all with the same shape.  Endpoints are thin:
the service owns the version rules and returns None / [] for misses, which
become 404 here.
"""

from typing import Callable, Iterable, List, Optional, Union

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.object_types import ObjectType
from ..database import get_db
from ..exceptions import ObjectNotFoundError
from ..schemas.attack_object import (
    AttackObjectCreate,
    AttackObjectResponse,
    AttackObjectUpdate,
    PaginatedAttackObjects,
    QueryOptions,
)
from ..services import AttackObjectService


def list_options(
    include_revoked: bool = Query(False, alias="includeRevoked"),
    include_deprecated: bool = Query(False, alias="includeDeprecated"),
    state: Optional[str] = None,
    search: Optional[str] = None,
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=0),
    include_pagination: bool = Query(False, alias="includePagination"),
) -> QueryOptions:
    """Query-string options for list endpoints."""
    return QueryOptions(
        include_revoked=include_revoked,
        include_deprecated=include_deprecated,
        state=state,
        search=search,
        offset=offset,
        limit=settings.default_page_limit if limit is None else limit,
        include_pagination=include_pagination,
    )


def build_router(
    object_type: ObjectType,
    service_class: Callable[..., AttackObjectService] = AttackObjectService,
    exclude: Iterable[str] = (),
) -> APIRouter:
    """Create the standard endpoints for *object_type*.

    Endpoint names in *exclude* are left out so a kind-specific router can
    provide its own version.
    """
    router = APIRouter(prefix=f"/api/{object_type.name}", tags=[object_type.name])
    exclude = frozenset(exclude)

    def get_service(db: Session = Depends(get_db)) -> AttackObjectService:
        if service_class is AttackObjectService:
            return AttackObjectService(db, object_type)
        return service_class(db)

    if "retrieve_all" not in exclude:
        @router.get("", response_model=Union[PaginatedAttackObjects, List[AttackObjectResponse]])
        def retrieve_all(
            options: QueryOptions = Depends(list_options),
            service: AttackObjectService = Depends(get_service),
        ):
            """Latest version of every object, filtered and paginated."""
            return service.retrieve_all(options)

    if "create" not in exclude:
        @router.post("", response_model=AttackObjectResponse, status_code=201)
        def create(data: AttackObjectCreate, service: AttackObjectService = Depends(get_service)):
            """Create an object or a new version of an existing one."""
            return service.create(data)

    if "retrieve_by_id" not in exclude:
        @router.get("/{stix_id}", response_model=List[AttackObjectResponse])
        def retrieve_by_id(
            stix_id: str,
            versions: str = Query("latest"),
            service: AttackObjectService = Depends(get_service),
        ):
            """Latest version (default) or all versions of one object."""
            documents = service.retrieve_by_id(stix_id, QueryOptions(versions=versions))
            if not documents:
                raise ObjectNotFoundError({"stix_id": stix_id})
            return documents

    if "retrieve_version" not in exclude:
        @router.get("/{stix_id}/modified/{modified}", response_model=AttackObjectResponse)
        def retrieve_version(stix_id: str, modified: str, service: AttackObjectService = Depends(get_service)):
            """One exact version."""
            document = service.retrieve_version_by_id(stix_id, modified)
            if document is None:
                raise ObjectNotFoundError({"stix_id": stix_id, "modified": modified})
            return document

    if "update_version" not in exclude:
        @router.put("/{stix_id}/modified/{modified}", response_model=AttackObjectResponse)
        def update_version(
            stix_id: str,
            modified: str,
            data: AttackObjectUpdate,
            service: AttackObjectService = Depends(get_service),
        ):
            """Replace one exact version."""
            document = service.update_version(stix_id, modified, data)
            if document is None:
                raise ObjectNotFoundError({"stix_id": stix_id, "modified": modified})
            return document

    if "delete_version" not in exclude:
        @router.delete("/{stix_id}/modified/{modified}", status_code=204)
        def delete_version(stix_id: str, modified: str, service: AttackObjectService = Depends(get_service)):
            """Delete one exact version."""
            removed = service.delete_version(stix_id, modified)
            if not removed:
                raise ObjectNotFoundError({"stix_id": stix_id, "modified": modified})
            return Response(status_code=204)

    return router
