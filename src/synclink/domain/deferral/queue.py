"""Ordered queue of placeholders drained from checkpoints."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable

    from synclink.domain.model.entity import SyncEntity

    from .deferred import Resolvable

log = getLogger(__name__)


class DeferralQueue:
    """Log of placeholders addressed by absolute position.

    A checkpoint is the number of placeholders ever enqueued, so it never
    decreases. ``resolve_from(c)`` only touches placeholders enqueued at or
    after ``c`` and before the call started.

    Once every placeholder up to some position is resolved, that prefix is
    dropped; checkpoints keep counting from the start of the run. Resolved
    entities passed to ``remember`` are kept until the store goes away.
    """

    def __init__(self) -> None:
        self._entries: list[Resolvable] = []
        self._offset = 0
        self._resolved: dict[Hashable, SyncEntity] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def checkpoint(self) -> int:
        return self._offset + len(self._entries)

    def enqueue(self, deferred: Resolvable) -> int:
        self._entries.append(deferred)
        return self.checkpoint() - 1

    def pending(self, checkpoint: int = 0) -> int:
        start = max(checkpoint - self._offset, 0)
        return sum(1 for entry in self._entries[start:] if not entry.is_resolved)

    def resolve_from(self, checkpoint: int) -> bool:
        """Resolve outstanding placeholders in enqueue order.

        Returns ``False`` when there was nothing left to resolve.
        """
        if checkpoint < 0:
            raise ValueError(f"Invalid checkpoint: {checkpoint}")
        end = self.checkpoint()
        resolved = 0
        for position in range(max(checkpoint, self._offset), end):
            entry = self._entries[position - self._offset]
            if entry.is_resolved:
                continue
            entry.resolve()
            resolved += 1
        if resolved:
            log.debug("Resolved %s deferred value(s) from checkpoint %s", resolved, checkpoint)
        self._trim()
        return resolved > 0

    def _trim(self) -> None:
        done = 0
        for entry in self._entries:
            if not entry.is_resolved:
                break
            done += 1
        if done:
            del self._entries[:done]
            self._offset += done

    def lookup(self, key: Hashable) -> SyncEntity | None:
        return self._resolved.get(key)

    def remember(self, key: Hashable, entity: SyncEntity) -> None:
        self._resolved[key] = entity
