"""Placeholders for entities and relationships that have not been fetched yet."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol, cast, runtime_checkable

from synclink.domain.model.enums import (
    DeferralPolicy,
    ErrorLevel,
    HydrationPolicy,
    LinkType,
    SyncErrorType,
    SyncOperation,
)
from synclink.domain.model.errors import SyncErrorRecord

from .slots import ItemSlot

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from synclink.domain.context import SyncContext
    from synclink.domain.model.base import EntityId
    from synclink.domain.model.entity import SyncEntity
    from synclink.domain.provider import SyncProvider

    from .slots import Slot

log = getLogger(__name__)


@runtime_checkable
class Resolvable(Protocol):
    @property
    def is_resolved(self) -> bool: ...

    def resolve(self) -> object: ...


class DeferredEntity[T: SyncEntity]:
    """Stand-in for an entity known only by its id.

    The placeholder writes itself into ``slot`` when deferred and replaces
    itself with the fetched entity when resolved. Resolving twice is a no-op.
    """

    __slots__ = ("_resolved", "_value", "context", "entity_id", "entity_type", "provider", "slot")

    def __init__(
        self,
        provider: SyncProvider,
        context: SyncContext,
        entity_type: type[T],
        entity_id: EntityId,
        slot: Slot,
    ) -> None:
        self.provider = provider
        self.context = context
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.slot = slot
        self._resolved = False
        self._value: T | None = None

    @classmethod
    def defer(
        cls,
        provider: SyncProvider,
        context: SyncContext,
        entity_type: type[T],
        entity_id: EntityId,
        slot: Slot,
    ) -> DeferredEntity[T]:
        deferred = cls(provider, context, entity_type, entity_id, slot)
        slot.set(deferred)
        provider.store.deferral_queue.enqueue(deferred)
        return deferred

    @classmethod
    def defer_list(
        cls,
        provider: SyncProvider,
        context: SyncContext,
        entity_type: type[T],
        entity_ids: Iterable[EntityId],
        slot: Slot,
    ) -> list[object]:
        """Write a list holding one placeholder per id into ``slot``."""
        placeholders: list[object] = []
        slot.set(placeholders)
        for index, entity_id in enumerate(entity_ids):
            placeholders.append(None)
            cls.defer(provider, context, entity_type, entity_id, ItemSlot(placeholders, index))
        return placeholders

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def key(self) -> tuple[str, type[T], EntityId]:
        return (self.provider.provider_hash, self.entity_type, self.entity_id)

    def resolve(self) -> T | None:
        if self._resolved:
            return self._value

        queue = self.provider.store.deferral_queue
        entity = queue.lookup(self.key)
        if entity is None:
            log.debug(
                "Resolving deferred %s %s", self.entity_type.__qualname__, self.entity_id
            )
            operations = self.provider.with_entity(
                self.entity_type,
                self.context.with_deferral_policy(DeferralPolicy.DO_NOT_RESOLVE),
            )
            entity = operations.get(self.entity_id)
            if entity is None:
                self.provider.store.error(
                    SyncErrorRecord(
                        error_type=SyncErrorType.ENTITY_NOT_FOUND,
                        message="%s not found: %s",
                        values=(self.entity_type.__qualname__, self.entity_id),
                        level=ErrorLevel.ERROR,
                        entity_type=self.entity_type.__qualname__,
                        entity_id=self.entity_id,
                        provider=type(self.provider).__qualname__,
                    ),
                    deduplicate=True,
                )
            else:
                queue.remember(self.key, entity)

        self._value = entity  # type: ignore[assignment]
        self._resolved = True
        self.slot.set(entity)
        return self._value

    def to_link(
        self, link_type: LinkType = LinkType.DEFAULT, *, compact: bool = True
    ) -> dict[str, object]:
        if self._value is not None:
            return self._value.to_link(link_type, compact=compact)
        type_uri = self.provider.store.entity_type_uri(self.entity_type, compact=compact)
        if link_type is LinkType.COMPACT:
            return {"@id": f"{type_uri}/{self.entity_id}"}
        return {"@type": type_uri, "@id": self.entity_id}

    def __repr__(self) -> str:
        state = "resolved" if self._resolved else "unresolved"
        return f"<DeferredEntity {self.entity_type.__qualname__}:{self.entity_id} {state}>"


class DeferredRelationship[T: SyncEntity]:
    """Stand-in for the entities of one type that refer to an owning entity.

    Resolution lists ``entity_type`` filtered by the owner's id and writes the
    resulting list into ``slot``. Iterating an unresolved relationship resolves
    it first.
    """

    __slots__ = (
        "_resolved",
        "_value",
        "context",
        "entity_type",
        "for_entity_id",
        "for_entity_property",
        "for_entity_type",
        "provider",
        "slot",
    )

    def __init__(
        self,
        provider: SyncProvider,
        context: SyncContext,
        entity_type: type[T],
        for_entity_type: type[SyncEntity],
        for_entity_property: str,
        for_entity_id: EntityId,
        slot: Slot,
    ) -> None:
        self.provider = provider
        self.context = context
        self.entity_type = entity_type
        self.for_entity_type = for_entity_type
        self.for_entity_property = for_entity_property
        self.for_entity_id = for_entity_id
        self.slot = slot
        self._resolved = False
        self._value: list[T] | None = None

    @classmethod
    def defer(
        cls,
        provider: SyncProvider,
        context: SyncContext,
        entity_type: type[T],
        for_entity_type: type[SyncEntity],
        for_entity_property: str,
        for_entity_id: EntityId,
        slot: Slot,
    ) -> DeferredRelationship[T] | None:
        policy = context.hydration_policy_for(entity_type)
        if policy is HydrationPolicy.SUPPRESS:
            return None

        deferred = cls(
            provider,
            context,
            entity_type,
            for_entity_type,
            for_entity_property,
            for_entity_id,
            slot,
        )
        slot.set(deferred)
        if policy is HydrationPolicy.EAGER:
            deferred.resolve()
        elif policy is HydrationPolicy.DEFER:
            provider.store.deferral_queue.enqueue(deferred)
        return deferred

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    @property
    def value(self) -> list[T] | None:
        return self._value

    @property
    def filter(self) -> dict[str, EntityId]:
        return {self.for_entity_type.snake_name(): self.for_entity_id}

    def resolve(self) -> list[T]:
        if self._resolved:
            return cast(list[T], self._value)

        log.debug(
            "Resolving %s.%s for %s %s",
            self.for_entity_type.__qualname__,
            self.for_entity_property,
            self.entity_type.__qualname__,
            self.for_entity_id,
        )
        operations = self.provider.with_entity(
            self.entity_type,
            self.context.with_deferral_policy(DeferralPolicy.DO_NOT_RESOLVE),
        )
        entities: list[T] = operations.run_collecting_list(SyncOperation.READ_LIST, **self.filter)
        self._value = entities
        self._resolved = True
        self.slot.set(entities)
        return entities

    def __iter__(self) -> Iterator[T]:
        return iter(self.resolve())

    def __len__(self) -> int:
        return len(self.resolve())

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        state = "resolved" if self._resolved else "unresolved"
        return (
            f"<DeferredRelationship {self.for_entity_type.__qualname__}.{self.for_entity_property}"
            f" -> {self.entity_type.__qualname__} {state}>"
        )
