from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from synclink.config import (
    ConfigurationError,
    JsonPlaceholderConfig,
    MissingConfigurationError,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    SyncConfig,
    env_int,
    get_database_config,
    get_jsonplaceholder_config,
    get_storage_config,
    get_sync_config,
    require_env_vars,
)
from synclink.config.jsonplaceholder import JSONPLACEHOLDER_BASE_URL
from synclink.config.storage import DEFAULT_DB_FILENAME, get_http_cache_path
from synclink.domain.model import DeferralPolicy, HydrationPolicy


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_reports_blank_and_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


def test_env_int(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOME_INT", "42")
    monkeypatch.setenv("BAD_INT", "forty-two")
    monkeypatch.delenv("UNSET_INT", raising=False)

    assert env_int("SOME_INT", 1) == 42
    assert env_int("UNSET_INT", 7) == 7
    with pytest.raises(ConfigurationError, match="BAD_INT must be an integer"):
        env_int("BAD_INT", 1)


def test_sync_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SYNCLINK_DEFERRAL_POLICY",
        "SYNCLINK_HYDRATION_POLICY",
        "SYNCLINK_MAX_DEFERRAL_PASSES",
        "SYNCLINK_HEARTBEAT_TTL",
    ):
        monkeypatch.delenv(name, raising=False)

    assert get_sync_config() == SyncConfig()


def test_sync_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNCLINK_DEFERRAL_POLICY", "Resolve-Late")
    monkeypatch.setenv("SYNCLINK_HYDRATION_POLICY", "eager")
    monkeypatch.setenv("SYNCLINK_MAX_DEFERRAL_PASSES", "5")
    monkeypatch.setenv("SYNCLINK_HEARTBEAT_TTL", "0")

    config = get_sync_config()

    assert config.deferral_policy is DeferralPolicy.RESOLVE_LATE
    assert config.hydration_policy is HydrationPolicy.EAGER
    assert config.max_deferral_passes == 5
    assert config.heartbeat_ttl == 0


def test_sync_config_rejects_unknown_policies(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNCLINK_HYDRATION_POLICY", "sometimes")

    with pytest.raises(ConfigurationError, match="suppress, lazy, defer, eager"):
        get_sync_config()


def test_sync_config_validation() -> None:
    with pytest.raises(ConfigurationError, match="max_deferral_passes"):
        SyncConfig(max_deferral_passes=0)
    with pytest.raises(ConfigurationError, match="heartbeat_ttl"):
        SyncConfig(heartbeat_ttl=-1)


def test_jsonplaceholder_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JSONPLACEHOLDER_BASE_URL", raising=False)
    assert get_jsonplaceholder_config().base_url == JSONPLACEHOLDER_BASE_URL

    monkeypatch.setenv("JSONPLACEHOLDER_BASE_URL", "http://localhost:3000/")
    monkeypatch.setenv("JSONPLACEHOLDER_CACHE_TTL_SECONDS", "60")
    config = get_jsonplaceholder_config()

    assert config.base_url == "http://localhost:3000"
    assert config.cache_ttl_seconds == 60

    with pytest.raises(ConfigurationError, match="Invalid JSONPlaceholder base URL"):
        JsonPlaceholderConfig(base_url="ftp://example.test")


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_config().uri == "sqlite:///override.db"


def test_database_uri_lives_in_the_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("SYNCLINK_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_config().uri

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()
    assert get_storage_config().resolve_data_dir() == (tmp_path / "data-dir").resolve()
    assert get_http_cache_path().parent == expected_path.parent


def test_missing_configuration_lists_names() -> None:
    error = MissingConfigurationError(["B", "A"])

    assert error.names == ("A", "B")
    assert str(error) == "Missing configuration for: A, B"


def test_http_config_validation() -> None:
    with pytest.raises(ConfigurationError, match="Invalid rate limit"):
        RateLimit(max_calls=0, per_seconds=1)
    with pytest.raises(ConfigurationError, match="api: timeout must be positive"):
        ResilienceConfig(name="api", timeout_seconds=0)
    with pytest.raises(ConfigurationError, match="Retry total"):
        RetryPolicy(total=-1)

    assert "POST" not in RetryPolicy().allowed_methods
