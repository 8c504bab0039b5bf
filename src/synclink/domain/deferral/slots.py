"""Settable locations that placeholders overwrite once resolved."""

from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Slot(Protocol):
    def get(self) -> object: ...

    def set(self, value: object) -> None: ...


@dataclass(slots=True)
class AttributeSlot:
    """An attribute of an object, usually an entity field."""

    target: object
    name: str

    def get(self) -> object:
        return getattr(self.target, self.name)

    def set(self, value: object) -> None:
        setattr(self.target, self.name, value)


@dataclass(slots=True)
class ItemSlot:
    """An element of a list or a value in a mapping."""

    container: MutableSequence[object] | MutableMapping[object, object]
    key: object

    def get(self) -> object:
        return self.container[self.key]  # type: ignore[index]

    def set(self, value: object) -> None:
        self.container[self.key] = value  # type: ignore[index]


@dataclass(slots=True)
class ValueSlot:
    """A standalone holder, for callers with nowhere else to put the value."""

    value: object = None

    def get(self) -> object:
        return self.value

    def set(self, value: object) -> None:
        self.value = value
