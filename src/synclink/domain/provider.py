"""Base class for backend adapters that provide sync entities."""

from __future__ import annotations

import hashlib
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from synclink.config.sync import SyncConfig, get_sync_config
from synclink.domain.context import SyncContext
from synclink.domain.exceptions import (
    BackendUnreachableError,
    InvalidEntityTypeError,
    UnsupportedEntityTypeError,
)
from synclink.domain.model.dates import DateFormatter
from synclink.domain.model.entity import SyncEntity
from synclink.domain.operations.definition import SyncDefinition
from synclink.domain.operations.dispatcher import EntityOperations

if TYPE_CHECKING:
    from collections.abc import Callable

    from synclink.domain.ports.store import SyncStore

log = getLogger(__name__)


class SyncProvider(ABC):
    """A backend that creates, reads, updates or deletes sync entities.

    Operations are plain methods named after the entity they handle, e.g.
    ``get_post(ctx, id)`` or ``get_posts(ctx)``; see ``SyncDefinition`` for the
    naming rules. Attributes used by ``backend_identifier`` must be set before
    calling ``super().__init__`` because the provider registers itself there.
    """

    def __init__(
        self,
        store: SyncStore,
        *,
        config: SyncConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.config = config or get_sync_config()
        self._clock = clock
        self._provider_id: int | None = None
        self._provider_hash = self._compute_hash()
        self._date_formatter: DateFormatter | None = None
        self._definitions: dict[type[SyncEntity], SyncDefinition] = {}
        self._heartbeat_expires_at: float | None = None
        store.register_provider(self)

    @abstractmethod
    def backend_identifier(self) -> tuple[str, ...]:
        """Values that identify the backend instance, e.g. base URL and tenant."""

    def _compute_hash(self) -> str:
        cls = type(self)
        parts = [f"{cls.__module__}.{cls.__qualname__}", *self.backend_identifier()]
        return hashlib.sha256("\0".join(parts).encode()).hexdigest()

    @property
    def provider_hash(self) -> str:
        return self._provider_hash

    @property
    def provider_id(self) -> int | None:
        return self._provider_id

    def set_provider_id(self, provider_id: int) -> None:
        if self._provider_id is not None and self._provider_id != provider_id:
            raise RuntimeError(f"{self.describe()} already has provider id {self._provider_id}")
        self._provider_id = provider_id

    def describe(self) -> str:
        identifier = ", ".join(self.backend_identifier())
        name = type(self).__qualname__
        return f"{name} ({identifier})" if identifier else name

    # --- dates --------------------------------------------------------

    def _build_date_formatter(self) -> DateFormatter:
        return DateFormatter()

    def date_formatter(self) -> DateFormatter:
        if self._date_formatter is None:
            self._date_formatter = self._build_date_formatter()
        return self._date_formatter

    # --- operations ---------------------------------------------------

    def get_context(self, **overrides: object) -> SyncContext:
        context = SyncContext(
            provider=self,
            deferral_policy=self.config.deferral_policy,
            hydration_policy=self.config.hydration_policy,
            max_deferral_passes=self.config.max_deferral_passes,
        )
        return replace(context, **overrides) if overrides else context  # type: ignore[arg-type]

    def _build_definition(self, entity_type: type[SyncEntity]) -> SyncDefinition:
        return SyncDefinition(entity_type, self)

    def definition_for(self, entity_type: type[SyncEntity]) -> SyncDefinition:
        definition = self._definitions.get(entity_type)
        if definition is None:
            definition = self._definitions[entity_type] = self._build_definition(entity_type)
        return definition

    def with_entity[T: SyncEntity](
        self,
        entity_type: type[T],
        context: SyncContext | None = None,
    ) -> EntityOperations[T]:
        if not (isinstance(entity_type, type) and issubclass(entity_type, SyncEntity)):
            raise InvalidEntityTypeError(f"Not a sync entity: {entity_type!r}")
        definition = self.definition_for(entity_type)
        if not definition.supported_operations():
            raise UnsupportedEntityTypeError(
                f"{type(self).__qualname__} does not provide {entity_type.__qualname__}"
            )
        self.store.register_entity_type(entity_type)
        return EntityOperations(self, entity_type, definition, context or self.get_context())

    # --- heartbeat ----------------------------------------------------

    def _check_backend(self) -> None:
        """Raise ``BackendUnreachableError`` if the backend cannot be reached."""
        raise NotImplementedError(f"{type(self).__qualname__} has no heartbeat check")

    def check_heartbeat(self, ttl: int = 300) -> SyncProvider:
        """Raise if the backend is unreachable.

        A successful check is trusted for ``ttl`` seconds; failures are never
        cached.
        """
        now = self._clock()
        if self._heartbeat_expires_at is not None and now < self._heartbeat_expires_at:
            return self
        self._heartbeat_expires_at = None
        try:
            self._check_backend()
        except BackendUnreachableError:
            log.warning("Heartbeat check failed: %s", self.describe())
            raise
        log.debug("Heartbeat check passed: %s", self.describe())
        if ttl > 0:
            self._heartbeat_expires_at = now + ttl
        return self
