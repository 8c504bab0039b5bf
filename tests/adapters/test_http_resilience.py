from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from synclink.adapters.http_resilience import (
    ResilientClient,
    _build_cache_components,  # type: ignore[reportPrivateUsage]
    _ShouldCacheResponseFilter,  # type: ignore[reportPrivateUsage]
    build_retry,
)
from synclink.config.http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    config: ResilienceConfig | None = None,
) -> ResilientClient:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    client = ResilientClient(config or ResilienceConfig(name="test", cache=None))
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    return client


def _get_json(client: ResilientClient, url: str, **kwargs: bool) -> object | None:
    async def run() -> object | None:
        async with client:
            return await client.get_json(url, **kwargs)

    return asyncio.run(run())


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/users/1":
        return httpx.Response(200, json={"id": 1})
    return httpx.Response(404, json={})


def test_build_retry_copies_the_policy() -> None:
    retry = build_retry(RetryPolicy(total=2, backoff_factor=0.1))

    assert retry.total == 2
    assert retry.backoff_factor == 0.1


def test_get_json_decodes_the_body() -> None:
    assert _get_json(_client(_handler), "https://api.test/users/1") == {"id": 1}


def test_get_json_treats_404_as_missing() -> None:
    assert _get_json(_client(_handler), "https://api.test/users/2") is None

    with pytest.raises(httpx.HTTPStatusError):
        _get_json(_client(_handler), "https://api.test/users/2", missing_ok=False)


def test_rate_limited_client_still_answers() -> None:
    config = ResilienceConfig(
        name="limited", cache=None, ratelimit=RateLimit(max_calls=5, per_seconds=1)
    )

    assert _get_json(_client(_handler, config), "https://api.test/users/1") == {"id": 1}


def test_cache_can_be_disabled() -> None:
    assert _build_cache_components(None) == (None, None)
    assert _build_cache_components(CacheConfig(enabled=False)) == (None, None)
    with pytest.raises(ValueError, match="Unsupported cache backend"):
        _build_cache_components(CacheConfig(backend="redis"))  # type: ignore[arg-type]


def test_should_cache_filter_sees_decoded_json() -> None:
    response_filter = _ShouldCacheResponseFilter(lambda payload: payload != {})
    item = object()

    assert response_filter.needs_body()
    assert response_filter.apply(item, b'{"id": 1}')  # type: ignore[arg-type]
    assert not response_filter.apply(item, b"{}")  # type: ignore[arg-type]
    assert response_filter.apply(item, b"not json")  # type: ignore[arg-type]
    assert response_filter.apply(item, None)  # type: ignore[arg-type]
