"""Business logic services."""

from .attack_object_service import AttackObjectService
from .collection_service import CollectionService
from .content_resolver import ContentResolver
from .reference_service import ReferenceService

__all__ = ["AttackObjectService", "CollectionService", "ContentResolver", "ReferenceService"]
