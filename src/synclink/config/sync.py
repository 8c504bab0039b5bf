"""Defaults for deferral, hydration and heartbeat behaviour."""

from __future__ import annotations

import os
from dataclasses import dataclass

from synclink.domain.model.enums import DeferralPolicy, HydrationPolicy

from .env import env_int
from .errors import ConfigurationError

DEFAULT_MAX_DEFERRAL_PASSES = 100
DEFAULT_HEARTBEAT_TTL = 300


@dataclass(frozen=True, slots=True)
class SyncConfig:
    deferral_policy: DeferralPolicy = DeferralPolicy.RESOLVE_EARLY
    hydration_policy: HydrationPolicy = HydrationPolicy.DEFER
    max_deferral_passes: int = DEFAULT_MAX_DEFERRAL_PASSES
    heartbeat_ttl: int = DEFAULT_HEARTBEAT_TTL

    def __post_init__(self) -> None:
        if self.max_deferral_passes < 1:
            raise ConfigurationError("max_deferral_passes must be at least 1")
        if self.heartbeat_ttl < 0:
            raise ConfigurationError("heartbeat_ttl must be non-negative")


def _env_policy[E: (DeferralPolicy, HydrationPolicy)](name: str, enum: type[E], default: E) -> E:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return enum(value.strip().lower().replace("-", "_"))
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum)
        raise ConfigurationError(f"{name} must be one of: {choices}") from exc


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        deferral_policy=_env_policy(
            "SYNCLINK_DEFERRAL_POLICY", DeferralPolicy, DeferralPolicy.RESOLVE_EARLY
        ),
        hydration_policy=_env_policy(
            "SYNCLINK_HYDRATION_POLICY", HydrationPolicy, HydrationPolicy.DEFER
        ),
        max_deferral_passes=env_int("SYNCLINK_MAX_DEFERRAL_PASSES", DEFAULT_MAX_DEFERRAL_PASSES),
        heartbeat_ttl=env_int("SYNCLINK_HEARTBEAT_TTL", DEFAULT_HEARTBEAT_TTL),
    )
