"""SQLite-backed registry of providers, entity types and runs."""

from __future__ import annotations

import json
import re
import uuid
import weakref
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Literal, cast

from sqlalchemy import create_engine, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from synclink.config.storage import get_database_config
from synclink.domain.deferral.queue import DeferralQueue
from synclink.domain.exceptions import (
    BackendUnreachableError,
    HeartbeatCheckFailedError,
    InvalidEntityTypeError,
    ProviderAlreadyRegisteredError,
    StoreClosedError,
)
from synclink.domain.model.entity import SyncEntity, default_type_uri
from synclink.domain.model.errors import SyncErrorCollection, SyncErrorRecord
from synclink.domain.model.run import RunRecord

from .mappings import (
    start_mappers,
    sync_entity_type_table,
    sync_provider_table,
    sync_run_table,
)
from .migrations import upgrade_head

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from sqlalchemy import Table
    from sqlalchemy.engine import Connection, Engine

    from synclink.domain.provider import SyncProvider

log = getLogger(__name__)

_NAMESPACE_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _class_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


@dataclass(slots=True)
class _RunState:
    """Everything needed to close a run, kept apart from the store for the exit hook."""

    command: str
    arguments_json: str
    run_uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    run_id: int | None = None
    closed: bool = False
    errors: SyncErrorCollection = field(default_factory=SyncErrorCollection)


@dataclass(frozen=True, slots=True)
class _Namespace:
    prefix: str
    uri: str
    module: str


def _finish_run(engine: Engine, state: _RunState, exit_status: int) -> None:
    if state.closed:
        return
    if state.run_id is None:
        state.closed = True
        return
    values = {
        "finished_at": _utcnow(),
        "exit_status": exit_status,
        "error_count": state.errors.error_count,
        "warning_count": state.errors.warning_count,
        "errors_json": state.errors.to_json(),
    }
    with engine.begin() as connection:
        connection.execute(
            update(sync_run_table)
            .where(sync_run_table.c.run_id == state.run_id)
            .values(**values)
        )
    state.closed = True
    log.info(
        "Closed run %s with exit status %s (%s errors, %s warnings)",
        state.run_uuid,
        exit_status,
        state.errors.error_count,
        state.errors.warning_count,
    )


def _close_abandoned_run(engine: Engine, state: _RunState) -> None:
    """Exit hook for stores that were never closed explicitly."""
    try:
        _finish_run(engine, state, 1)
    except SQLAlchemyError:
        log.exception("Unable to close abandoned run %s", state.run_uuid)


class SqlAlchemySyncStore:
    """Registry shared by every provider in one run.

    Providers and entity types get stable integer ids persisted in the
    ``_sync_provider`` and ``_sync_entity_type`` tables. The ``_sync_run`` row
    is only written once the store is actually used, and is closed exactly
    once: explicitly via ``close()``, or with exit status 1 when the store is
    garbage collected or the interpreter exits.
    """

    def __init__(
        self,
        *,
        engine: Engine | None = None,
        database_uri: str | None = None,
        command: str = "",
        arguments: Sequence[str] = (),
    ) -> None:
        self._owns_engine = engine is None
        self._engine = engine or create_engine(
            database_uri or get_database_config().uri, future=True
        )
        start_mappers()
        upgrade_head(engine=self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        self._state = _RunState(command=command, arguments_json=json.dumps(list(arguments)))
        self._finalizer = weakref.finalize(self, _close_abandoned_run, self._engine, self._state)
        self._providers: dict[str, SyncProvider] = {}
        self._provider_ids: dict[int, SyncProvider] = {}
        self._entity_types: dict[type[SyncEntity], int] = {}
        self._namespaces: dict[str, _Namespace] = {}
        self._queue = DeferralQueue()

    def __enter__(self) -> SqlAlchemySyncStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close(0 if exc_type is None else 1)
        return False

    # --- run lifecycle ------------------------------------------------

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._state.run_id is not None and not self._state.closed

    @property
    def is_closed(self) -> bool:
        return self._state.closed

    def _check(self) -> _RunState:
        """Open the run on first use."""
        state = self._state
        if state.closed:
            raise StoreClosedError(f"Sync store for run {state.run_uuid} is closed")
        if state.run_id is None:
            record = RunRecord(
                run_uuid=state.run_uuid,
                run_command=state.command,
                run_arguments_json=state.arguments_json,
                started_at=_utcnow(),
            )
            with self._session_factory.begin() as session:
                session.add(record)
            state.run_id = record.run_id
            log.info("Started run %s (%s)", state.run_uuid, state.run_id)
        return state

    @property
    def run_id(self) -> int:
        return cast(int, self._check().run_id)

    @property
    def run_uuid(self) -> str:
        return self._check().run_uuid

    def close(self, exit_status: int = 0) -> None:
        """Record the end of the run. Later calls do nothing."""
        if self._state.closed:
            log.debug("Sync store for run %s already closed", self._state.run_uuid)
            return
        self._finalizer.detach()
        _finish_run(self._engine, self._state, exit_status)
        if self._owns_engine:
            self._engine.dispose()

    def recent_runs(self, limit: int = 10) -> list[RunRecord]:
        with Session(self._engine) as session:
            statement = select(RunRecord).order_by(sync_run_table.c.run_id.desc()).limit(limit)
            return list(session.scalars(statement))

    # --- registration -------------------------------------------------

    def _upsert(
        self, connection: Connection, table: Table, key: str, values: dict[str, object]
    ) -> int:
        now = _utcnow()
        statement = sqlite_insert(table).values(**values, added_at=now, last_seen=now)
        statement = statement.on_conflict_do_update(
            index_elements=[table.c[key]],
            set_={"last_seen": statement.excluded.last_seen},
        )
        connection.execute(statement)
        row_id = connection.execute(
            select(table.primary_key.columns.values()[0]).where(table.c[key] == values[key])
        ).scalar_one()
        return int(row_id)

    def register_provider(self, provider: SyncProvider) -> int:
        """Assign ``provider`` its stable id.

        Raises ``ProviderAlreadyRegisteredError`` if a provider with the same
        hash was already registered with this store.
        """
        self._check()
        provider_hash = provider.provider_hash
        provider_class = _class_name(type(provider))
        if provider_hash in self._providers:
            raise ProviderAlreadyRegisteredError(provider_hash, provider_class)
        with self._engine.begin() as connection:
            provider_id = self._upsert(
                connection,
                sync_provider_table,
                "provider_hash",
                {"provider_hash": provider_hash, "provider_class": provider_class},
            )
        provider.set_provider_id(provider_id)
        self._providers[provider_hash] = provider
        self._provider_ids[provider_id] = provider
        log.debug("Registered provider %s as %s", provider.describe(), provider_id)
        return provider_id

    def provider(self, provider_id: int) -> SyncProvider | None:
        return self._provider_ids.get(provider_id)

    @property
    def providers(self) -> tuple[SyncProvider, ...]:
        return tuple(self._providers.values())

    def register_entity_type(self, entity_type: type[SyncEntity]) -> int:
        if not (isinstance(entity_type, type) and issubclass(entity_type, SyncEntity)):
            raise InvalidEntityTypeError(f"Not a subclass of SyncEntity: {entity_type!r}")
        entity_type_id = self._entity_types.get(entity_type)
        if entity_type_id is not None:
            return entity_type_id
        self._check()
        with self._engine.begin() as connection:
            entity_type_id = self._upsert(
                connection,
                sync_entity_type_table,
                "entity_type_class",
                {"entity_type_class": _class_name(entity_type)},
            )
        self._entity_types[entity_type] = entity_type_id
        log.debug("Registered entity type %s as %s", entity_type.__qualname__, entity_type_id)
        return entity_type_id

    def entity_type_id(self, entity_type: type[SyncEntity]) -> int | None:
        return self._entity_types.get(entity_type)

    def register_namespace(self, prefix: str, uri: str, module: str) -> None:
        """Give entity types in ``module`` (and below) URIs under ``uri``."""
        if not _NAMESPACE_PREFIX.match(prefix):
            raise ValueError(f"Invalid namespace prefix: {prefix!r}")
        prefix = prefix.lower()
        for namespace in self._namespaces.values():
            if namespace.prefix != prefix and namespace.module == module:
                raise ValueError(f"Module already registered as {namespace.prefix}: {module}")
        self._namespaces[prefix] = _Namespace(prefix, uri.rstrip("/"), module)

    def entity_type_uri(self, entity_type: type[SyncEntity], *, compact: bool = True) -> str:
        module = entity_type.__module__
        best: _Namespace | None = None
        for namespace in self._namespaces.values():
            if module == namespace.module or module.startswith(namespace.module + "."):
                if best is None or len(namespace.module) > len(best.module):
                    best = namespace
        if best is None:
            return default_type_uri(entity_type)
        rest = module[len(best.module) :].lstrip(".")
        parts = [*rest.split("."), entity_type.snake_name()] if rest else [entity_type.snake_name()]
        path = "/".join(parts)
        return f"{best.prefix}:{path}" if compact else f"{best.uri}/{path}"

    # --- errors -------------------------------------------------------

    def error(
        self,
        error: SyncErrorRecord,
        *,
        deduplicate: bool = False,
        to_log: bool = False,
    ) -> None:
        state = self._check()
        if deduplicate and state.errors.has(error):
            return
        state.errors.add(error)
        if to_log:
            log.log(error.level.logging_level, "%s", error)

    @property
    def errors(self) -> SyncErrorCollection:
        return self._state.errors.copy()

    @property
    def error_count(self) -> int:
        return self._state.errors.error_count

    @property
    def warning_count(self) -> int:
        return self._state.errors.warning_count

    # --- heartbeats ---------------------------------------------------

    def check_heartbeats(
        self,
        *providers: SyncProvider,
        ttl: int = 300,
        fail_early: bool = False,
    ) -> tuple[SyncProvider, ...]:
        """Check every given (or registered) provider; raise if any is unreachable."""
        targets = providers or self.providers
        failed: list[str] = []
        checked: list[SyncProvider] = []
        for provider in targets:
            try:
                provider.check_heartbeat(ttl)
            except NotImplementedError:
                log.info("Heartbeat check not supported: %s", provider.describe())
                continue
            except BackendUnreachableError as exc:
                failed.append(provider.describe())
                if fail_early:
                    raise HeartbeatCheckFailedError(failed) from exc
                continue
            checked.append(provider)
        if failed:
            raise HeartbeatCheckFailedError(failed)
        return tuple(checked)

    # --- deferral -----------------------------------------------------

    @property
    def deferral_queue(self) -> DeferralQueue:
        return self._queue

    def deferral_checkpoint(self) -> int:
        return self._queue.checkpoint()

    def resolve_deferred(self, checkpoint: int) -> bool:
        return self._queue.resolve_from(checkpoint)
