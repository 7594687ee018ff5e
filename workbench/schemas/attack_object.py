"""Versioned object schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .stix import StixObject


class Workflow(BaseModel):
    model_config = ConfigDict(extra="allow")

    state: Optional[str] = None  # e.g. "work-in-progress", "reviewed"


class Workspace(BaseModel):
    """Editorial metadata kept alongside the STIX payload."""

    model_config = ConfigDict(extra="allow")

    workflow: Optional[Workflow] = None


class AttackObjectCreate(BaseModel):
    """Schema for creating a version. The payload kind is selected by stix.type."""
    workspace: Workspace = Field(default_factory=Workspace)
    stix: StixObject

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "workspace": {"workflow": {"state": "work-in-progress"}},
                    "stix": {
                        "type": "x-mitre-tactic",
                        "name": "Collection",
                        "spec_version": "2.1",
                        "created": "2021-04-01T12:00:00.000Z",
                        "modified": "2021-04-01T12:00:00.000Z",
                        "description": "The adversary is trying to gather data of interest.",
                        "x_mitre_shortname": "collection",
                    },
                }
            ]
        }
    }


class AttackObjectUpdate(BaseModel):
    """Schema for replacing one exact version.

    Fields present in ``stix`` / ``workspace`` overwrite the stored ones;
    absent fields are kept.  ``stix.id`` and ``stix.type`` cannot change.
    """
    model_config = ConfigDict(extra="ignore")

    workspace: Optional[Dict[str, Any]] = None
    stix: Dict[str, Any] = {}


class AttackObjectResponse(BaseModel):
    """Schema for a stored version."""
    workspace: Dict[str, Any] = {}
    stix: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class CollectionResponse(AttackObjectResponse):
    """A collection version, optionally with its resolved contents."""
    contents: Optional[List[AttackObjectResponse]] = None


class QueryOptions(BaseModel):
    """Options accepted by the retrieval operations."""
    include_revoked: bool = False
    include_deprecated: bool = False
    state: Optional[str] = None
    search: Optional[str] = None
    offset: int = Field(0, ge=0)
    limit: int = Field(0, ge=0)  # 0 = no limit
    include_pagination: bool = False
    versions: str = "latest"
    retrieve_contents: bool = False


class Pagination(BaseModel):
    total: int
    offset: int
    limit: int


class PaginatedAttackObjects(BaseModel):
    pagination: Pagination
    data: List[AttackObjectResponse]

