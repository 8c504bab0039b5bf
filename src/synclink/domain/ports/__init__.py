"""Domain port definitions for adapters."""

from __future__ import annotations

from .store import SyncStore
from .transform import Transform

__all__ = ["SyncStore", "Transform"]
