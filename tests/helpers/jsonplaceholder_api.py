"""Canned JSONPlaceholder responses served through ``httpx.MockTransport``."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

import httpx

from synclink.adapters.http_resilience import ResilientClient
from synclink.app import build_jsonplaceholder_provider
from synclink.config.http_resilience import ResilienceConfig
from synclink.config.jsonplaceholder import JsonPlaceholderConfig

if TYPE_CHECKING:
    from collections.abc import Callable

    from synclink.adapters.jsonplaceholder import JsonPlaceholderProvider
    from synclink.adapters.sqlalchemy import SqlAlchemySyncStore

BASE_URL = "https://jsonplaceholder.test"

USERS: list[dict[str, object]] = [
    {
        "id": 1,
        "name": "Leanne Graham",
        "username": "Bret",
        "email": "Sincere@april.biz",
        "address": {"street": "Kulas Light", "city": "Gwenborough", "geo": {"lat": "-37.3159"}},
        "phone": "1-770-736-8031 x56442",
        "website": "hildegard.org",
        "company": {"name": "Romaguera-Crona", "catchPhrase": "Multi-layered client-server"},
    },
    {"id": 2, "name": "Ervin Howell", "username": "Antonette", "email": "Shanna@melissa.tv"},
]
POSTS: list[dict[str, object]] = [
    {"userId": 1, "id": 1, "title": "sunt aut facere", "body": "quia et suscipit"},
    {"userId": 2, "id": 2, "title": "qui est esse", "body": "est rerum tempore"},
]
COMMENTS: list[dict[str, object]] = [
    {"postId": 1, "id": 1, "name": "id labore", "email": "Eliseo@gardner.biz", "body": "laudantium"},
]


def _routes() -> dict[str, object]:
    routes: dict[str, object] = {"/users": USERS, "/posts": POSTS, "/comments": COMMENTS}
    for user in USERS:
        routes[f"/users/{user['id']}"] = user
        routes[f"/users/{user['id']}/posts"] = [p for p in POSTS if p["userId"] == user["id"]]
    for post in POSTS:
        routes[f"/posts/{post['id']}"] = post
        routes[f"/posts/{post['id']}/comments"] = [
            c for c in COMMENTS if c["postId"] == post["id"]
        ]
    for comment in COMMENTS:
        routes[f"/comments/{comment['id']}"] = comment
    return routes


class FakeJsonPlaceholderApi:
    """Request handler that records every path it serves."""

    def __init__(self) -> None:
        self.routes = _routes()
        self.hits: Counter[str] = Counter()
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.hits[path] += 1
        self.paths.append(path)
        payload = self.routes.get(path)
        if payload is None:
            return httpx.Response(404, json={})
        return httpx.Response(200, json=payload)


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def make_provider(
    store: SqlAlchemySyncStore,
    handler: Callable[[httpx.Request], httpx.Response],
) -> JsonPlaceholderProvider:
    return build_jsonplaceholder_provider(
        store,
        config=JsonPlaceholderConfig(base_url=BASE_URL),
        resilience=ResilienceConfig(name="jsonplaceholder", cache=None),
        client_factory=make_client_factory(handler),
    )
