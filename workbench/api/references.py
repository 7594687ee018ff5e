"""Reference API endpoints."""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import get_db
from ..exceptions import ObjectNotFoundError
from ..schemas.reference import (
    PaginatedReferences,
    ReferenceCreate,
    ReferenceQueryOptions,
    ReferenceResponse,
    ReferenceUpdate,
)
from ..services import ReferenceService

router = APIRouter(prefix="/api/references", tags=["references"])


@router.get("", response_model=Union[PaginatedReferences, List[ReferenceResponse]])
def retrieve_references(
    source_name: Optional[str] = Query(None, alias="sourceName"),
    search: Optional[str] = None,
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=0),
    include_pagination: bool = Query(False, alias="includePagination"),
    db: Session = Depends(get_db),
):
    """List references, optionally filtered by source name or free text."""
    options = ReferenceQueryOptions(
        source_name=source_name,
        search=search,
        offset=offset,
        limit=settings.default_page_limit if limit is None else limit,
        include_pagination=include_pagination,
    )
    return ReferenceService(db).retrieve_all(options)


@router.post("", response_model=ReferenceResponse, status_code=201)
def create_reference(data: ReferenceCreate, db: Session = Depends(get_db)):
    """Create a reference."""
    return ReferenceService(db).create(data)


@router.put("", response_model=ReferenceResponse)
def update_reference(data: ReferenceUpdate, db: Session = Depends(get_db)):
    """Update the reference named by source_name in the body."""
    reference = ReferenceService(db).update(data)
    if reference is None:
        raise ObjectNotFoundError({"source_name": data.source_name})
    return reference


@router.delete("", status_code=204)
def delete_reference(
    source_name: Optional[str] = Query(None, alias="sourceName"),
    db: Session = Depends(get_db),
):
    """Delete a reference by source name."""
    removed = ReferenceService(db).delete(source_name)
    if removed is None:
        raise ObjectNotFoundError({"source_name": source_name})
    return Response(status_code=204)
