"""Sync provider for the JSONPlaceholder REST API."""

from __future__ import annotations

import asyncio
import time
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from synclink.adapters.http_resilience import ResilientClient
from synclink.config.http_resilience import CacheConfig, ResilienceConfig
from synclink.config.jsonplaceholder import get_jsonplaceholder_config
from synclink.domain.exceptions import BackendUnreachableError
from synclink.domain.model.entity import SyncEntity
from synclink.domain.model.enums import ArrayKeyConformity
from synclink.domain.provider import SyncProvider

from .entities import Comment, Post, User
from .schema import CommentPayload, PostPayload, UserPayload
from .translator import translate_comment, translate_post, translate_user

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from synclink.config.jsonplaceholder import JsonPlaceholderConfig
    from synclink.config.sync import SyncConfig
    from synclink.domain.context import SyncContext
    from synclink.domain.model.base import EntityId
    from synclink.domain.ports.store import SyncStore

log = getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10.0


class JsonPlaceholderAPIError(RuntimeError):
    """Raised when JSONPlaceholder returns an unexpected response."""


def _should_cache_payload(payload: object) -> bool:
    # Unknown ids come back as an empty object.
    return payload not in ({}, [])


def _default_resilience_config(config: JsonPlaceholderConfig) -> ResilienceConfig:
    return ResilienceConfig(
        name="jsonplaceholder",
        base_url=config.base_url,
        timeout_seconds=_DEFAULT_TIMEOUT_SECONDS,
        cache=CacheConfig(
            backend="sqlite",
            default_ttl_seconds=config.cache_ttl_seconds,
            should_cache=_should_cache_payload,
        ),
    )


def _filter_id(value: object) -> EntityId:
    if isinstance(value, SyncEntity):
        value = value.id
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, (int, str)):
        return value
    raise ValueError(f"Invalid filter value: {value!r}")


class JsonPlaceholderProvider(SyncProvider):
    """Read-only provider for users, posts and comments.

    ``Post.user`` and ``Comment.post`` are deferred by id; ``User.posts`` and
    ``Post.comments`` are relationships hydrated per the context's policy.
    """

    def __init__(
        self,
        store: SyncStore,
        *,
        config: JsonPlaceholderConfig | None = None,
        sync_config: SyncConfig | None = None,
        resilience: ResilienceConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_config = config or get_jsonplaceholder_config()
        self._resilience = resilience or _default_resilience_config(self.api_config)
        self._client_factory = client_factory or ResilientClient
        super().__init__(store, config=sync_config, clock=clock)

    def backend_identifier(self) -> tuple[str, ...]:
        return (self.api_config.base_url,)

    # --- HTTP ---------------------------------------------------------

    def _get_json(self, path: str) -> object | None:
        return asyncio.run(self._get_json_async(path))

    async def _get_json_async(self, path: str) -> object | None:
        url = f"{self.api_config.base_url}/{path}"
        log.debug("Fetching %s", url)
        async with self._client_factory(self._resilience) as client:
            return await client.get_json(url)

    def _get_object(self, path: str) -> dict[str, object] | None:
        payload = self._get_json(path)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise JsonPlaceholderAPIError(f"Expected an object from /{path}")
        return payload

    def _get_list(self, path: str) -> list[dict[str, object]]:
        payload = self._get_json(path)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise JsonPlaceholderAPIError(f"Expected a list from /{path}")
        return payload

    def _check_backend(self) -> None:
        try:
            payload = self._get_json("users/1")
        except httpx.HTTPError as exc:
            raise BackendUnreachableError(f"{self.describe()} is unreachable: {exc}") from exc
        if payload is None:
            raise BackendUnreachableError(f"{self.describe()} did not return user 1")

    # --- users --------------------------------------------------------

    def _user(self, user: User) -> User:
        user.defer_relationship("posts", Post)
        return user

    def get_user(self, ctx: SyncContext, user_id: EntityId | None) -> User | None:
        payload = self._get_object(f"users/{user_id}")
        if payload is None:
            return None
        data = translate_user(UserPayload.model_validate(payload))
        return self._user(User.provide(data, self, ctx))

    def get_users(self, ctx: SyncContext) -> Iterator[User]:
        self._reject_filters(ctx)
        payloads = self._get_list("users")
        records = (translate_user(UserPayload.model_validate(payload)) for payload in payloads)
        for user in User.provide_list(records, self, ArrayKeyConformity.PARTIAL, ctx):
            yield self._user(user)

    # --- posts --------------------------------------------------------

    def _post(self, post: Post) -> Post:
        if isinstance(post.user, int):
            post.defer("user", User, post.user)
        post.defer_relationship("comments", Comment)
        return post

    def get_post(self, ctx: SyncContext, post_id: EntityId | None) -> Post | None:
        payload = self._get_object(f"posts/{post_id}")
        if payload is None:
            return None
        data = translate_post(PostPayload.model_validate(payload))
        return self._post(Post.provide(data, self, ctx))

    def get_posts(self, ctx: SyncContext) -> Iterator[Post]:
        user = self._reject_filters(ctx, "user").get("user")
        path = f"users/{_filter_id(user)}/posts" if user is not None else "posts"
        payloads = self._get_list(path)
        records = (translate_post(PostPayload.model_validate(payload)) for payload in payloads)
        for post in Post.provide_list(records, self, ArrayKeyConformity.PARTIAL, ctx):
            yield self._post(post)

    # --- comments -----------------------------------------------------

    def _comment(self, comment: Comment) -> Comment:
        if isinstance(comment.post, int):
            comment.defer("post", Post, comment.post)
        return comment

    def get_comment(self, ctx: SyncContext, comment_id: EntityId | None) -> Comment | None:
        payload = self._get_object(f"comments/{comment_id}")
        if payload is None:
            return None
        data = translate_comment(CommentPayload.model_validate(payload))
        return self._comment(Comment.provide(data, self, ctx))

    def get_comments(self, ctx: SyncContext) -> Iterator[Comment]:
        post = self._reject_filters(ctx, "post").get("post")
        path = f"posts/{_filter_id(post)}/comments" if post is not None else "comments"
        payloads = self._get_list(path)
        records = (
            translate_comment(CommentPayload.model_validate(payload)) for payload in payloads
        )
        for comment in Comment.provide_list(records, self, ArrayKeyConformity.PARTIAL, ctx):
            yield self._comment(comment)

    @staticmethod
    def _reject_filters(ctx: SyncContext, *allowed: str) -> dict[str, object]:
        unknown = set(ctx.filter) - set(allowed)
        if unknown:
            raise ValueError(f"Unsupported filter: {', '.join(sorted(unknown))}")
        return dict(ctx.filter)
