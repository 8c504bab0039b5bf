"""Alembic environment for the synclink registry tables."""

from __future__ import annotations

from typing import Any

from alembic import context
from sqlalchemy import create_engine, pool

from synclink.adapters.sqlalchemy.mappings import mapper_registry
from synclink.config import get_database_config

config = context.config

target_metadata = mapper_registry.metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _run(**options: Any) -> None:
    # batch mode so SQLite can alter the registry tables
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=True,
        compare_type=True,
        compare_server_default=True,
        **options,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    _run(url=_database_url(), literal_binds=True)


def run_migrations_online() -> None:
    """Reuse a connection handed over by ``upgrade_head`` or open a throwaway engine."""

    existing_connection = config.attributes.get("connection")
    if existing_connection is not None:
        _run(connection=existing_connection)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _run(connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
