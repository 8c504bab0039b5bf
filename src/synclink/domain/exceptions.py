"""Errors raised by the sync engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model.enums import SyncOperation


class SyncException(Exception):  # noqa: N818
    """Base class for sync engine errors."""


class SyncOperationNotImplementedError(SyncException, NotImplementedError):
    def __init__(self, provider: str, entity: str, operation: SyncOperation) -> None:
        self.provider = provider
        self.entity = entity
        self.operation = operation
        super().__init__(f"{provider} does not implement {operation.value} for {entity}")


class ProviderAlreadyRegisteredError(SyncException):
    def __init__(self, provider_hash: str, provider_class: str) -> None:
        self.provider_hash = provider_hash
        self.provider_class = provider_class
        super().__init__(f"Provider already registered: {provider_class} ({provider_hash})")


class InvalidEntityTypeError(SyncException, TypeError):
    """Raised when a class does not satisfy the entity contract."""


class UnsupportedEntityTypeError(SyncException, LookupError):
    """Raised when a provider implements no operations for an entity type."""


class SerializationError(SyncException):
    """Raised when a value cannot be serialized."""


class SerializationDepthError(SerializationError):
    def __init__(self, path: Sequence[str]) -> None:
        self.path = ".".join(path)
        super().__init__(f"In too deep: {self.path}")


class ReplacementConflictError(SerializationError):
    def __init__(self, key: str, new_key: str) -> None:
        self.key = key
        self.new_key = new_key
        super().__init__(f"Cannot rename '{key}': '{new_key}' already set")


class StoreClosedError(SyncException, RuntimeError):
    """Raised when a closed sync store is used."""


class BackendUnreachableError(SyncException, ConnectionError):
    """Raised when a provider's backend fails its heartbeat check."""


class HeartbeatCheckFailedError(SyncException):
    def __init__(self, failed: Sequence[str]) -> None:
        self.failed = tuple(failed)
        noun = "provider" if len(self.failed) == 1 else "providers"
        names = ", ".join(self.failed)
        super().__init__(f"Heartbeat check failed for {len(self.failed)} {noun}: {names}")


class DeferralLimitExceededError(SyncException, RuntimeError):
    def __init__(self, passes: int) -> None:
        self.passes = passes
        super().__init__(f"Deferred entities still pending after {passes} resolution passes")


class EntityNotFoundError(SyncException, LookupError):
    """Raised when no entity matches a name or identifier."""
