"""Explicit field tables mapping payload keys onto entity fields."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD = re.compile(r"[^0-9A-Za-z]+")

type FieldSplit = tuple[dict[str, object], dict[str, object]]


def to_snake_case(name: str) -> str:
    """Normalise ``userId``, ``USER_ID`` and ``User Id`` to ``user_id``."""
    text = _WORD_BOUNDARY.sub("_", name.strip())
    return _NON_WORD.sub("_", text).strip("_").lower()


def removable_prefixes(class_names: Sequence[str]) -> tuple[str, ...]:
    """Expand class names into snake_case prefixes, longest first.

    ``AdminUser`` yields ``admin_user`` and ``user`` so both ``ADMIN_USER_ID``
    and ``user_id`` map to ``id``.
    """
    prefixes: set[str] = set()
    for class_name in class_names:
        words = to_snake_case(class_name).split("_")
        for start in range(len(words)):
            prefixes.add("_".join(words[start:]))
    return tuple(sorted(prefixes, key=lambda prefix: (-len(prefix), prefix)))


@dataclass(frozen=True, slots=True)
class FieldMap:
    """Field table for one entity class.

    ``fields`` is the ordered list of declared public fields; ``aliases`` maps
    normalised payload keys to field names ahead of any other rule.
    """

    entity: str
    fields: tuple[str, ...]
    date_fields: frozenset[str] = frozenset()
    prefixes: tuple[str, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = (self.date_fields | set(self.aliases.values())) - set(self.fields)
        if unknown:
            names = ", ".join(sorted(unknown))
            raise ValueError(f"{self.entity} has no fields named: {names}")

    def resolve(self, key: str) -> str | None:
        """Return the field a payload key maps to, or ``None`` for extension data."""
        snake = to_snake_case(key)
        alias = self.aliases.get(snake)
        if alias is not None:
            return alias
        if snake in self.fields:
            return snake
        for prefix in self.prefixes:
            if snake.startswith(prefix + "_"):
                candidate = snake[len(prefix) + 1 :]
                if candidate in self.fields:
                    return candidate
        return None

    def split(self, data: Mapping[str, object]) -> FieldSplit:
        known: dict[str, object] = {}
        extra: dict[str, object] = {}
        for key, value in data.items():
            name = self.resolve(key)
            if name is None:
                extra[key] = value
            else:
                known[name] = value
        return known, extra

    def mapper(self, keys: Sequence[str]) -> Callable[[Mapping[str, object]], FieldSplit]:
        """Precompute the split for records that all share ``keys``."""
        plan = tuple((key, self.resolve(key)) for key in keys)

        def apply(data: Mapping[str, object]) -> FieldSplit:
            known: dict[str, object] = {}
            extra: dict[str, object] = {}
            for key, name in plan:
                if name is None:
                    extra[key] = data[key]
                else:
                    known[name] = data[key]
            return known, extra

        return apply
