"""Database models."""

from .attack_object import AttackObject
from .reference import Reference

__all__ = ["AttackObject", "Reference"]
