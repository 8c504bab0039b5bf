from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from synclink.adapters.sqlalchemy import SqlAlchemySyncStore
from synclink.config.sync import SyncConfig
from tests.helpers.providers import InMemoryProvider

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(sqlite_engine: Engine) -> Iterator[SqlAlchemySyncStore]:
    sync_store = SqlAlchemySyncStore(engine=sqlite_engine, command="pytest")
    try:
        yield sync_store
    finally:
        sync_store.close()


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig()


@pytest.fixture
def provider(store: SqlAlchemySyncStore, sync_config: SyncConfig) -> InMemoryProvider:
    return InMemoryProvider(store, sync_config=sync_config)
