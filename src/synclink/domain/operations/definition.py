"""Binding of sync operations to provider methods for one entity type."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from synclink.domain.model.enums import SyncOperation

if TYPE_CHECKING:
    from synclink.domain.context import SyncContext
    from synclink.domain.model.entity import SyncEntity
    from synclink.domain.provider import SyncProvider

log = getLogger(__name__)

type OperationClosure = Callable[..., object]

_SINGLE_WRITES = frozenset({SyncOperation.CREATE, SyncOperation.UPDATE, SyncOperation.DELETE})


class SyncDefinition[T: SyncEntity]:
    """Find the provider method implementing each operation on ``entity``.

    For an entity ``Post`` the provider may implement ``create_post``,
    ``get_post``, ``update_post`` and ``delete_post`` taking ``(ctx, value)``,
    and ``get_posts`` or ``get_list_post`` (likewise for the other verbs)
    taking ``(ctx)`` or ``(ctx, entities)``. ``overrides`` take precedence over
    provider methods and ``operations``, when given, limits what is supported.
    """

    def __init__(
        self,
        entity: type[T],
        provider: SyncProvider,
        *,
        operations: Iterable[SyncOperation] | None = None,
        overrides: Mapping[SyncOperation, OperationClosure] | None = None,
    ) -> None:
        self.entity = entity
        self.provider = provider
        self.operations = frozenset(operations) if operations is not None else None
        self.overrides = dict(overrides or {})
        self._closures: dict[SyncOperation, OperationClosure | None] = {}

    def method_names(self, operation: SyncOperation) -> tuple[str, ...]:
        singular = self.entity.snake_name()
        if operation.is_list:
            return (
                f"{operation.verb}_{self.entity.plural_name()}",
                f"{operation.verb}_list_{singular}",
            )
        return (f"{operation.verb}_{singular}",)

    def get_closure(self, operation: SyncOperation) -> OperationClosure | None:
        """Return a callable taking ``(ctx, *args)``, or ``None`` if unsupported."""
        if operation in self._closures:
            return self._closures[operation]
        closure = self._find_closure(operation)
        self._closures[operation] = closure
        return closure

    def supported_operations(self) -> tuple[SyncOperation, ...]:
        return tuple(op for op in SyncOperation if self.get_closure(op) is not None)

    def _find_closure(self, operation: SyncOperation) -> OperationClosure | None:
        if self.operations is not None and operation not in self.operations:
            return None
        method = self.overrides.get(operation)
        if method is None:
            for name in self.method_names(operation):
                candidate = getattr(self.provider, name, None)
                if callable(candidate):
                    method = candidate
                    break
        if method is None:
            return None
        if operation in _SINGLE_WRITES:
            return self._checked(method, operation)
        return method

    def _checked(self, method: OperationClosure, operation: SyncOperation) -> OperationClosure:
        entity = self.entity

        def checked(ctx: SyncContext, value: object, *args: object) -> object:
            if not isinstance(value, entity):
                raise TypeError(
                    f"{operation.value} {entity.__qualname__} expects a {entity.__qualname__},"
                    f" got {type(value).__qualname__}"
                )
            return method(ctx, value, *args)

        return checked

    def __repr__(self) -> str:
        return f"<SyncDefinition {type(self.provider).__qualname__}:{self.entity.__qualname__}>"
