"""Execution context passed to provider operations."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from synclink.domain.model.enums import DeferralPolicy, HydrationPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping

    from synclink.domain.model.entity import SyncEntity
    from synclink.domain.model.enums import SyncOperation
    from synclink.domain.provider import SyncProvider


def _empty_mapping() -> Mapping[str, object]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncContext:
    """Immutable settings for one operation call.

    Each ``with_*`` method returns a new context; the original is unchanged.
    """

    provider: SyncProvider
    deferral_policy: DeferralPolicy = DeferralPolicy.RESOLVE_EARLY
    hydration_policy: HydrationPolicy = HydrationPolicy.DEFER
    hydration_overrides: Mapping[type[SyncEntity], HydrationPolicy] = field(
        default_factory=_empty_mapping  # type: ignore[arg-type]
    )
    max_deferral_passes: int = 100
    operation: SyncOperation | None = None
    args: tuple[object, ...] = ()
    filter: Mapping[str, object] = field(default_factory=_empty_mapping)
    stack: tuple[SyncEntity, ...] = ()

    def with_deferral_policy(self, policy: DeferralPolicy) -> SyncContext:
        if policy is self.deferral_policy:
            return self
        return replace(self, deferral_policy=policy)

    def with_hydration_policy(
        self,
        policy: HydrationPolicy,
        entity_type: type[SyncEntity] | None = None,
    ) -> SyncContext:
        if entity_type is None:
            return replace(self, hydration_policy=policy, hydration_overrides=_empty_mapping())
        overrides = dict(self.hydration_overrides)
        overrides[entity_type] = policy
        return replace(self, hydration_overrides=MappingProxyType(overrides))

    def hydration_policy_for(self, entity_type: type[SyncEntity]) -> HydrationPolicy:
        for cls in entity_type.__mro__:
            policy = self.hydration_overrides.get(cls)  # type: ignore[call-overload]
            if policy is not None:
                return policy
        return self.hydration_policy

    def with_operation(
        self,
        operation: SyncOperation,
        args: tuple[object, ...] = (),
        filter: Mapping[str, object] | None = None,  # noqa: A002
    ) -> SyncContext:
        return replace(
            self,
            operation=operation,
            args=args,
            filter=MappingProxyType(dict(filter or {})),
        )

    def push(self, entity: SyncEntity) -> SyncContext:
        """Return a context for work done on behalf of ``entity``."""
        if self.stack and self.stack[-1] is entity:
            return self
        return replace(self, stack=(*self.stack, entity))

    @property
    def last_entity(self) -> SyncEntity | None:
        return self.stack[-1] if self.stack else None

    @property
    def depth(self) -> int:
        return len(self.stack)
