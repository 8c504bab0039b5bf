"""SQLAlchemy adapter package for the sync registry."""

from __future__ import annotations

from .mappings import (
    mapper_registry,
    start_mappers,
    sync_entity_type_table,
    sync_provider_table,
    sync_run_table,
)
from .migrations import upgrade_head
from .store import SqlAlchemySyncStore

__all__ = [
    "SqlAlchemySyncStore",
    "mapper_registry",
    "start_mappers",
    "sync_entity_type_table",
    "sync_provider_table",
    "sync_run_table",
    "upgrade_head",
]
