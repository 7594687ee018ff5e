"""Pydantic schemas for request/response validation."""

from .stix import ContentReference, StixObject
from .attack_object import (
    AttackObjectCreate,
    AttackObjectUpdate,
    AttackObjectResponse,
    CollectionResponse,
    QueryOptions,
    Pagination,
    PaginatedAttackObjects,
)
from .reference import (
    ReferenceCreate,
    ReferenceUpdate,
    ReferenceResponse,
    ReferenceQueryOptions,
    PaginatedReferences,
)

__all__ = [
    "ContentReference", "StixObject",
    "AttackObjectCreate", "AttackObjectUpdate", "AttackObjectResponse",
    "CollectionResponse", "QueryOptions", "Pagination", "PaginatedAttackObjects",
    "ReferenceCreate", "ReferenceUpdate", "ReferenceResponse",
    "ReferenceQueryOptions", "PaginatedReferences",
]
