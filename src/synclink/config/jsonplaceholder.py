"""JSONPlaceholder provider configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import env_int
from .errors import ConfigurationError

JSONPLACEHOLDER_BASE_URL: Final[str] = "https://jsonplaceholder.typicode.com"
DEFAULT_CACHE_TTL_SECONDS: Final[int] = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class JsonPlaceholderConfig:
    base_url: str = JSONPLACEHOLDER_BASE_URL
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS

    def __post_init__(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid JSONPlaceholder base URL: {self.base_url}")

    @classmethod
    def from_environment(cls) -> JsonPlaceholderConfig:
        base_url = os.getenv("JSONPLACEHOLDER_BASE_URL") or JSONPLACEHOLDER_BASE_URL
        return cls(
            base_url=base_url.rstrip("/"),
            cache_ttl_seconds=env_int(
                "JSONPLACEHOLDER_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS
            ),
        )


def get_jsonplaceholder_config() -> JsonPlaceholderConfig:
    return JsonPlaceholderConfig.from_environment()
