"""
Small structural contracts implemented by sync entities:
identity, provider binding, serialization.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from synclink.domain.context import SyncContext
    from synclink.domain.provider import SyncProvider

    from .enums import LinkType

type EntityId = int | str
type ObjectKey = tuple[str, EntityId | tuple[str, int], str | None]


@runtime_checkable
class Identifiable(Protocol):
    id: EntityId | None
    canonical_id: EntityId | None

    def object_key(self) -> ObjectKey: ...


@runtime_checkable
class Providable(Protocol):
    @property
    def provider(self) -> SyncProvider | None: ...

    @property
    def context(self) -> SyncContext | None: ...


@runtime_checkable
class Serializable(Protocol):
    def to_fields(self) -> dict[str, object]: ...

    def to_link(self, link_type: LinkType = ..., *, compact: bool = True) -> dict[str, object]: ...
