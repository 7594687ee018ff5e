"""Collection API endpoints that differ from the standard object endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..core.object_types import COLLECTIONS
from ..database import get_db
from ..exceptions import ObjectNotFoundError
from ..schemas.attack_object import CollectionResponse, QueryOptions
from ..services import CollectionService

router = APIRouter(prefix=f"/api/{COLLECTIONS.name}", tags=[COLLECTIONS.name])


def get_service(db: Session = Depends(get_db)) -> CollectionService:
    return CollectionService(db)


@router.get("/{stix_id}", response_model=List[CollectionResponse], response_model_exclude_none=True)
def retrieve_collection(
    stix_id: str,
    versions: str = Query("latest"),
    retrieve_contents: bool = Query(False, alias="retrieveContents"),
    service: CollectionService = Depends(get_service),
):
    """Latest or all versions of a collection, optionally with resolved contents."""
    collections = service.retrieve_by_id(
        stix_id, QueryOptions(versions=versions, retrieve_contents=retrieve_contents)
    )
    if not collections:
        raise ObjectNotFoundError({"stix_id": stix_id})
    return collections


@router.delete("/{stix_id}/modified/{modified}", status_code=204)
def delete_collection_version(
    stix_id: str,
    modified: str,
    delete_all_contents: bool = Query(False, alias="deleteAllContents"),
    service: CollectionService = Depends(get_service),
):
    """Delete one collection version, optionally with the versions it references."""
    removed = service.delete_version(stix_id, modified, delete_all_contents=delete_all_contents)
    if not removed:
        raise ObjectNotFoundError({"stix_id": stix_id, "modified": modified})
    return Response(status_code=204)


@router.delete("/{stix_id}", status_code=204)
def delete_collection(
    stix_id: str,
    delete_all_contents: bool = Query(False, alias="deleteAllContents"),
    service: CollectionService = Depends(get_service),
):
    """Delete every version of a collection, optionally with everything they reference."""
    removed = service.delete(stix_id, delete_all_contents=delete_all_contents)
    if not removed:
        raise ObjectNotFoundError({"stix_id": stix_id})
    return Response(status_code=204)
