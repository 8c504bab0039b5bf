"""Translate JSONPlaceholder payloads into entity field data."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from synclink.domain.ports.transform import Transform

    from .schema import CommentPayload, JsonPlaceholderBaseModel, PostPayload, UserPayload


def _extras(payload: JsonPlaceholderBaseModel) -> dict[str, object]:
    return dict(payload.model_extra or {})


def translate_user(payload: UserPayload) -> dict[str, object]:
    address = payload.address.model_dump(exclude_none=True) if payload.address else None
    company = (
        payload.company.model_dump(by_alias=True, exclude_none=True) if payload.company else None
    )
    return {
        **_extras(payload),
        "id": payload.id,
        "name": payload.name,
        "username": payload.username,
        "email": payload.email,
        "address": address,
        "phone": payload.phone,
        "website": payload.website,
        "company": company,
    }


def translate_post(payload: PostPayload) -> dict[str, object]:
    """Field data for a post; ``user`` still holds the author's id."""
    return {
        **_extras(payload),
        "id": payload.id,
        "user": payload.user_id,
        "title": payload.title,
        "body": payload.body,
    }


def translate_comment(payload: CommentPayload) -> dict[str, object]:
    return {
        **_extras(payload),
        "id": payload.id,
        "post": payload.post_id,
        "name": payload.name,
        "email": payload.email,
        "body": payload.body,
    }


if TYPE_CHECKING:
    _user_check: Transform[UserPayload, dict[str, object]] = translate_user
    _post_check: Transform[PostPayload, dict[str, object]] = translate_post
    _comment_check: Transform[CommentPayload, dict[str, object]] = translate_comment
