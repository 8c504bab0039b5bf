"""Date formatting and parsing for providers and serializers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo


@dataclass(frozen=True, slots=True)
class DateFormatter:
    """Format and parse backend timestamps.

    Without a ``format`` values round-trip through ISO 8601. Naive values are
    assumed to be UTC. When ``timezone`` is set, values are converted to it
    before formatting.
    """

    format: str | None = None
    timezone: tzinfo | None = None

    def format_value(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        if self.timezone is not None:
            value = value.astimezone(self.timezone)
        if self.format is None:
            return value.isoformat()
        return value.strftime(self.format)

    def parse(self, value: str | datetime | None) -> datetime | None:
        if value is None or isinstance(value, datetime):
            return value
        text = value.strip()
        if not text:
            return None
        if self.format is None:
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        else:
            parsed = datetime.strptime(text, self.format)  # noqa: DTZ007
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.timezone or UTC)
        return parsed


DEFAULT_DATE_FORMATTER = DateFormatter()
