"""Port for mapping raw backend payloads into entity-shaped data."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transform[TInput, TOutput](Protocol):
    def __call__(self, payload: TInput, /) -> TOutput: ...
