"""Port for the registry shared by providers in one run."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from synclink.domain.deferral.queue import DeferralQueue
    from synclink.domain.model.entity import SyncEntity
    from synclink.domain.model.errors import SyncErrorCollection, SyncErrorRecord
    from synclink.domain.provider import SyncProvider


@runtime_checkable
class SyncStore(Protocol):
    """Registry of providers, entity types, run history and sync errors."""

    @property
    def deferral_queue(self) -> DeferralQueue: ...

    def register_provider(self, provider: SyncProvider) -> int: ...

    def register_entity_type(self, entity_type: type[SyncEntity]) -> int: ...

    def entity_type_uri(self, entity_type: type[SyncEntity], *, compact: bool = True) -> str: ...

    def deferral_checkpoint(self) -> int: ...

    def resolve_deferred(self, checkpoint: int) -> bool: ...

    def error(
        self,
        error: SyncErrorRecord,
        *,
        deduplicate: bool = False,
        to_log: bool = False,
    ) -> None: ...

    @property
    def errors(self) -> SyncErrorCollection: ...
