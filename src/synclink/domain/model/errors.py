"""Errors recorded while sync operations run."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import ErrorLevel, SyncErrorType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .entity import SyncEntity

type ErrorValue = str | int | float | bool | None


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncErrorRecord:
    """One problem encountered during a sync operation.

    Records compare by value, so the same problem reported twice can be
    deduplicated. ``message`` is a printf-style template filled from ``values``.
    """

    error_type: SyncErrorType
    message: str
    values: tuple[ErrorValue, ...] = ()
    level: ErrorLevel = ErrorLevel.ERROR
    entity_type: str | None = None
    entity_id: int | str | None = None
    entity_name: str | None = None
    provider: str | None = None

    @classmethod
    def for_entity(
        cls,
        error_type: SyncErrorType,
        message: str,
        *values: ErrorValue,
        entity: SyncEntity,
        level: ErrorLevel = ErrorLevel.ERROR,
    ) -> SyncErrorRecord:
        provider = entity.provider
        return cls(
            error_type=error_type,
            message=message,
            values=values,
            level=level,
            entity_type=type(entity).__qualname__,
            entity_id=entity.id,
            entity_name=entity.name(),
            provider=type(provider).__qualname__ if provider is not None else None,
        )

    def formatted_message(self) -> str:
        if not self.values:
            return self.message
        try:
            return self.message % self.values
        except (TypeError, ValueError):
            # a template that does not fit its values is kept verbatim
            return f"{self.message} {self.values!r}"

    def to_dict(self) -> dict[str, object]:
        return {
            "error_type": self.error_type.value,
            "level": self.level.name,
            "message": self.formatted_message(),
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "provider": self.provider,
        }

    def __str__(self) -> str:
        subject = self.entity_type or "sync"
        if self.entity_id is not None:
            subject = f"{subject}[{self.entity_id}]"
        return f"{self.level.name} {self.error_type.value} {subject}: {self.formatted_message()}"


@dataclass(slots=True)
class SyncErrorCollection:
    """Append-only list of sync errors with running counts."""

    _records: list[SyncErrorRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[SyncErrorRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def has(self, record: SyncErrorRecord) -> bool:
        return record in self._records

    def add(self, record: SyncErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[SyncErrorRecord]) -> None:
        self._records.extend(records)

    def copy(self) -> SyncErrorCollection:
        return SyncErrorCollection(list(self._records))

    @property
    def error_count(self) -> int:
        return sum(1 for record in self._records if record.level.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for record in self._records if record.level.is_warning)

    def summary(self) -> list[tuple[SyncErrorType, str, int]]:
        """Return ``(type, message template, occurrences)`` in first-seen order."""
        counts = Counter((record.error_type, record.message) for record in self._records)
        return [(error_type, message, count) for (error_type, message), count in counts.items()]

    def to_json(self) -> str:
        return json.dumps([record.to_dict() for record in self._records])
