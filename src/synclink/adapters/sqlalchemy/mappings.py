"""SQLAlchemy tables for the sync registry."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)

from synclink.domain.model.run import RunRecord

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

sync_run_table = Table(
    "_sync_run",
    mapper_registry.metadata,
    Column("run_id", Integer, primary_key=True, autoincrement=True),
    Column("run_uuid", String(36), nullable=False, unique=True),
    Column("run_command", Text, nullable=False),
    Column("run_arguments_json", Text, nullable=False),
    Column("started_at", UTCDateTime, nullable=False),
    Column("finished_at", UTCDateTime, nullable=True),
    Column("exit_status", Integer, nullable=True),
    Column("error_count", Integer, nullable=True),
    Column("warning_count", Integer, nullable=True),
    Column("errors_json", Text, nullable=True),
)

sync_provider_table = Table(
    "_sync_provider",
    mapper_registry.metadata,
    Column("provider_id", Integer, primary_key=True, autoincrement=True),
    Column("provider_hash", String(64), nullable=False, unique=True),
    Column("provider_class", Text, nullable=False),
    Column("added_at", UTCDateTime, nullable=False),
    Column("last_seen", UTCDateTime, nullable=False),
)

sync_entity_type_table = Table(
    "_sync_entity_type",
    mapper_registry.metadata,
    Column("entity_type_id", Integer, primary_key=True, autoincrement=True),
    Column("entity_type_class", Text, nullable=False, unique=True),
    Column("added_at", UTCDateTime, nullable=False),
    Column("last_seen", UTCDateTime, nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map the run history onto ``RunRecord``."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(RunRecord, sync_run_table)
    return mapper_registry
