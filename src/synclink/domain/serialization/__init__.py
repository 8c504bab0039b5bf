"""Serialization of entity graphs."""

from __future__ import annotations

from .engine import CIRCULAR_REFERENCE, serialize
from .rules import LIST_MARKER, RemoveRule, ReplaceRule, SerializeRules

__all__ = [
    "CIRCULAR_REFERENCE",
    "LIST_MARKER",
    "RemoveRule",
    "ReplaceRule",
    "SerializeRules",
    "serialize",
]
