"""Application orchestration entry points."""

from __future__ import annotations

from contextlib import ExitStack
from logging import getLogger
from typing import TYPE_CHECKING

from synclink.adapters.jsonplaceholder import Comment, JsonPlaceholderProvider, Post, User
from synclink.adapters.jsonplaceholder import entities as jsonplaceholder_entities
from synclink.adapters.sqlalchemy import SqlAlchemySyncStore
from synclink.config.sync import get_sync_config
from synclink.domain.exceptions import EntityNotFoundError
from synclink.domain.model.enums import DeferralPolicy, HydrationPolicy
from synclink.domain.operations.resolver import id_from_name_or_id

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.engine import Engine

    from synclink.adapters.http_resilience import ResilientClient
    from synclink.config.http_resilience import ResilienceConfig
    from synclink.config.jsonplaceholder import JsonPlaceholderConfig
    from synclink.config.sync import SyncConfig
    from synclink.domain.model.entity import SyncEntity
    from synclink.domain.model.run import RunRecord

log = getLogger(__name__)

JSONPLACEHOLDER_NAMESPACE = "jsonplaceholder"

ENTITY_TYPES: dict[str, type[SyncEntity]] = {
    "user": User,
    "post": Post,
    "comment": Comment,
}

_NAME_FIELDS: dict[type[SyncEntity], str] = {
    User: "name",
    Post: "title",
    Comment: "name",
}


def open_sync_store(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    command: str = "",
    arguments: Sequence[str] = (),
) -> SqlAlchemySyncStore:
    """Open the registry for one run; close it (or use it as a context manager) when done."""
    return SqlAlchemySyncStore(
        engine=engine,
        database_uri=database_uri,
        command=command,
        arguments=arguments,
    )


def build_jsonplaceholder_provider(
    store: SqlAlchemySyncStore,
    *,
    config: JsonPlaceholderConfig | None = None,
    sync_config: SyncConfig | None = None,
    resilience: ResilienceConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> JsonPlaceholderProvider:
    provider = JsonPlaceholderProvider(
        store,
        config=config,
        sync_config=sync_config,
        resilience=resilience,
        client_factory=client_factory,
    )
    store.register_namespace(
        JSONPLACEHOLDER_NAMESPACE,
        provider.api_config.base_url,
        jsonplaceholder_entities.__name__,
    )
    return provider


def entity_type_for(name: str) -> type[SyncEntity]:
    try:
        return ENTITY_TYPES[name.strip().lower()]
    except KeyError:
        choices = ", ".join(sorted(ENTITY_TYPES))
        raise ValueError(f"Unknown entity type {name!r} (expected one of: {choices})") from None


def fetch_entities(
    entity: str,
    *,
    entity_id: str | int | None = None,
    filters: Mapping[str, object] | None = None,
    deferral_policy: DeferralPolicy | None = None,
    hydration_policy: HydrationPolicy | None = None,
    store: SqlAlchemySyncStore | None = None,
    provider: JsonPlaceholderProvider | None = None,
) -> list[dict[str, object]]:
    """Fetch one entity (by id or name) or a filtered list, serialized.

    Without a ``store`` a new run is opened and closed around the fetch.
    """
    entity_type = entity_type_for(entity)
    with ExitStack() as stack:
        if store is None:
            store = stack.enter_context(
                open_sync_store(command="get", arguments=_describe_fetch(entity, entity_id, filters))
            )
        if provider is None:
            provider = build_jsonplaceholder_provider(store)

        context = provider.get_context()
        if deferral_policy is not None:
            context = context.with_deferral_policy(deferral_policy)
        if hydration_policy is not None:
            context = context.with_hydration_policy(hydration_policy)
        operations = provider.with_entity(entity_type, context)

        log.info(
            "Fetching %s: id=%s, filters=%s, policy=%s, hydration=%s",
            entity_type.__qualname__,
            entity_id,
            dict(filters or {}),
            context.deferral_policy.value,
            context.hydration_policy.value,
        )
        if entity_id is not None:
            lookup = provider.with_entity(
                entity_type,
                context.with_deferral_policy(DeferralPolicy.DO_NOT_RESOLVE).with_hydration_policy(
                    HydrationPolicy.SUPPRESS
                ),
            )
            resolved_id = id_from_name_or_id(
                lookup, entity_id, name_field=_NAME_FIELDS.get(entity_type, "name")
            )
            found = operations.get(resolved_id)
            if found is None:
                raise EntityNotFoundError(f"{entity_type.__qualname__} not found: {entity_id}")
            results = [found]
        else:
            results = list(operations.get_list(**dict(filters or {})))

        serialized = [item.to_dict() for item in results]
        log.info(
            "Fetched %s %s (%s errors, %s warnings)",
            len(serialized),
            entity_type.plural_name(),
            store.error_count,
            store.warning_count,
        )
        return serialized


def _describe_fetch(
    entity: str, entity_id: str | int | None, filters: Mapping[str, object] | None
) -> list[str]:
    arguments = [entity]
    if entity_id is not None:
        arguments.append(f"--id={entity_id}")
    arguments.extend(f"--filter={key}={value}" for key, value in (filters or {}).items())
    return arguments


def check_heartbeats(
    *,
    ttl: int | None = None,
    store: SqlAlchemySyncStore | None = None,
    providers: Sequence[JsonPlaceholderProvider] = (),
) -> list[str]:
    """Check every provider's backend; return the ones that answered."""
    effective_ttl = get_sync_config().heartbeat_ttl if ttl is None else ttl
    with ExitStack() as stack:
        if store is None:
            store = stack.enter_context(
                open_sync_store(command="heartbeat", arguments=[f"--ttl={effective_ttl}"])
            )
        targets = tuple(providers) or (build_jsonplaceholder_provider(store),)
        checked = store.check_heartbeats(*targets, ttl=effective_ttl)
        return [provider.describe() for provider in checked]


def list_runs(limit: int = 10, *, store: SqlAlchemySyncStore | None = None) -> list[RunRecord]:
    if store is not None:
        return store.recent_runs(limit)
    # Reading history must not record a run of its own.
    reader = open_sync_store()
    try:
        return reader.recent_runs(limit)
    finally:
        reader.close()
