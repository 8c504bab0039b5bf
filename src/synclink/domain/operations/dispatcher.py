"""Entity-agnostic façade over provider operations."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, cast

from synclink.domain.deferral.deferred import DeferredEntity
from synclink.domain.exceptions import DeferralLimitExceededError, SyncOperationNotImplementedError
from synclink.domain.model.enums import DeferralPolicy, SyncOperation

from .resolver import EntityNameResolver, FuzzyEntityNameResolver, MatchAlgorithm

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from synclink.domain.context import SyncContext
    from synclink.domain.deferral.slots import Slot
    from synclink.domain.model.base import EntityId
    from synclink.domain.model.entity import SyncEntity
    from synclink.domain.provider import SyncProvider

    from .definition import OperationClosure, SyncDefinition

log = getLogger(__name__)


class EntityOperations[T: SyncEntity]:
    """Run operations on one entity type and resolve what they defer.

    Returned by ``SyncProvider.with_entity``. The context's deferral policy
    decides when placeholders enqueued by an operation are resolved:

    * ``DO_NOT_RESOLVE`` leaves them for the caller.
    * ``RESOLVE_EARLY`` resolves before each list item is handed out.
    * ``RESOLVE_LATE`` resolves once a list has been consumed.

    Single-item operations resolve once after returning unless the policy is
    ``DO_NOT_RESOLVE``.
    """

    def __init__(
        self,
        provider: SyncProvider,
        entity_type: type[T],
        definition: SyncDefinition[T],
        context: SyncContext,
    ) -> None:
        self.provider = provider
        self.entity_type = entity_type
        self.definition = definition
        self.context = context

    # --- dispatch -----------------------------------------------------

    def _closure(self, operation: SyncOperation) -> OperationClosure:
        closure = self.definition.get_closure(operation)
        if closure is None:
            raise SyncOperationNotImplementedError(
                type(self.provider).__qualname__, self.entity_type.__qualname__, operation
            )
        return closure

    def run(self, operation: SyncOperation, *args: object, **filters: object) -> object:
        """Run ``operation`` with the provider, applying the deferral policy."""
        closure = self._closure(operation)
        context = self.context.with_operation(operation, args, filters)
        policy = context.deferral_policy
        checkpoint = self.provider.store.deferral_checkpoint()

        result = closure(context, *args)
        if not operation.is_list:
            if policy is not DeferralPolicy.DO_NOT_RESOLVE:
                self._resolve_deferred(checkpoint, context)
            return result

        items = cast("Iterable[T]", result)
        if policy is DeferralPolicy.RESOLVE_EARLY:
            return self._resolve_early(items, checkpoint, context)
        if policy is DeferralPolicy.RESOLVE_LATE:
            return self._resolve_late(items, checkpoint, context)
        return iter(items)

    def run_collecting_list(
        self, operation: SyncOperation, *args: object, **filters: object
    ) -> list[T]:
        """Run a list operation, materialise its result, then resolve once."""
        if not operation.is_list:
            raise ValueError(f"Not a list operation: {operation.value}")
        closure = self._closure(operation)
        context = self.context.with_operation(operation, args, filters)
        checkpoint = self.provider.store.deferral_checkpoint()

        items = list(cast("Iterable[T]", closure(context, *args)))
        if context.deferral_policy is not DeferralPolicy.DO_NOT_RESOLVE:
            self._resolve_deferred(checkpoint, context)
        return items

    def _resolve_early(
        self, items: Iterable[T], checkpoint: int, context: SyncContext
    ) -> Iterator[T]:
        store = self.provider.store
        for item in items:
            self._resolve_deferred(checkpoint, context)
            checkpoint = store.deferral_checkpoint()
            yield item

    def _resolve_late(
        self, items: Iterable[T], checkpoint: int, context: SyncContext
    ) -> Iterator[T]:
        yield from items
        self._resolve_deferred(checkpoint, context)

    def _resolve_deferred(self, checkpoint: int, context: SyncContext) -> None:
        """Resolve from ``checkpoint`` until a pass finds nothing to do."""
        store = self.provider.store
        for _ in range(context.max_deferral_passes):
            next_checkpoint = store.deferral_checkpoint()
            if not store.resolve_deferred(checkpoint):
                return
            checkpoint = next_checkpoint
        if store.deferral_queue.pending(checkpoint):
            raise DeferralLimitExceededError(context.max_deferral_passes)

    # --- shorthands ---------------------------------------------------

    def create(self, entity: T) -> T:
        return cast("T", self.run(SyncOperation.CREATE, entity))

    def get(self, entity_id: EntityId | None = None, **filters: object) -> T | None:
        return cast("T | None", self.run(SyncOperation.READ, entity_id, **filters))

    def update(self, entity: T) -> T:
        return cast("T", self.run(SyncOperation.UPDATE, entity))

    def delete(self, entity: T) -> T:
        return cast("T", self.run(SyncOperation.DELETE, entity))

    def create_list(self, entities: Iterable[T]) -> Iterator[T]:
        return cast("Iterator[T]", self.run(SyncOperation.CREATE_LIST, entities))

    def get_list(self, **filters: object) -> Iterator[T]:
        return cast("Iterator[T]", self.run(SyncOperation.READ_LIST, **filters))

    def update_list(self, entities: Iterable[T]) -> Iterator[T]:
        return cast("Iterator[T]", self.run(SyncOperation.UPDATE_LIST, entities))

    def delete_list(self, entities: Iterable[T]) -> Iterator[T]:
        return cast("Iterator[T]", self.run(SyncOperation.DELETE_LIST, entities))

    def get_list_collected(self, **filters: object) -> list[T]:
        return self.run_collecting_list(SyncOperation.READ_LIST, **filters)

    # --- deferral -----------------------------------------------------

    def defer(self, entity_id: EntityId, slot: Slot) -> DeferredEntity[T]:
        return DeferredEntity.defer(self.provider, self.context, self.entity_type, entity_id, slot)

    def defer_list(self, entity_ids: Iterable[EntityId], slot: Slot) -> list[object]:
        return DeferredEntity.defer_list(
            self.provider, self.context, self.entity_type, entity_ids, slot
        )

    # --- lookup by name -----------------------------------------------

    def resolver(
        self,
        name_field: str = "name",
        *,
        algorithm: MatchAlgorithm | None = None,
        uncertainty_threshold: float | None = None,
        weight_field: str | None = None,
        require_one_match: bool = False,
    ) -> EntityNameResolver[T]:
        """Return a resolver that finds entities of this type by name.

        Without an ``algorithm`` names must match exactly after normalisation.
        """
        if algorithm is None or algorithm is MatchAlgorithm.SAME:
            return EntityNameResolver(self, name_field)
        return FuzzyEntityNameResolver(
            self,
            name_field,
            algorithm=algorithm,
            uncertainty_threshold=uncertainty_threshold,
            weight_field=weight_field,
            require_one_match=require_one_match,
        )

    def __repr__(self) -> str:
        return (
            f"<EntityOperations {type(self.provider).__qualname__}:{self.entity_type.__qualname__}"
            f" {self.context.deferral_policy.value}>"
        )
