"""API routes."""

from ..core.object_types import COLLECTIONS, OBJECT_TYPES
from ..services import CollectionService
from .attack_objects import build_router
from .collections import router as collections_router
from .references import router as references_router

# Standard endpoints for every kind; collections replace the by-id and
# delete endpoints with their cascading versions from collections_router.
object_routers = [
    build_router(object_type)
    for object_type in OBJECT_TYPES.values()
    if object_type is not COLLECTIONS
]
object_routers.append(
    build_router(
        COLLECTIONS,
        service_class=CollectionService,
        exclude=("retrieve_by_id", "delete_version"),
    )
)

__all__ = [
    "object_routers",
    "collections_router",
    "references_router",
]
