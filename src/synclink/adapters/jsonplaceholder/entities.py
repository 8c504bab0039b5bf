"""Entities served by JSONPlaceholder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from synclink.domain.model.entity import SyncEntity

if TYPE_CHECKING:
    from synclink.domain.deferral.deferred import DeferredEntity, DeferredRelationship
    from synclink.domain.serialization.rules import SerializeRules


@dataclass(eq=False, kw_only=True)
class User(SyncEntity):
    name: str | None = None
    username: str | None = None
    email: str | None = None
    address: dict[str, object] | None = None
    phone: str | None = None
    company: dict[str, object] | None = None
    posts: list[Post] | DeferredRelationship[Post] | None = None


@dataclass(eq=False, kw_only=True)
class Post(SyncEntity):
    user: User | DeferredEntity[User] | int | None = None
    title: str | None = None
    body: str | None = None
    comments: list[Comment] | DeferredRelationship[Comment] | None = None


@dataclass(eq=False, kw_only=True)
class Comment(SyncEntity):
    post: Post | DeferredEntity[Post] | int | None = None
    name: str | None = None
    email: str | None = None
    body: str | None = None

    @classmethod
    def build_serialize_rules(cls, rules: SerializeRules) -> SerializeRules:
        return rules.replacing(("post", "post_id"))
