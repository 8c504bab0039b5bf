"""Run history persisted by the sync store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class RunRecord:
    """One invocation of a command that used the sync store."""

    run_uuid: str
    run_command: str
    run_arguments_json: str
    started_at: datetime
    finished_at: datetime | None = None
    exit_status: int | None = None
    error_count: int | None = None
    warning_count: int | None = None
    errors_json: str | None = None
    run_id: int | None = None

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None
