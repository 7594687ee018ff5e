"""Data access repositories."""

from .base import BaseRepository
from .attack_object_repository import AttackObjectRepository
from .reference_repository import ReferenceRepository

__all__ = [
    "BaseRepository",
    "AttackObjectRepository",
    "ReferenceRepository",
]
