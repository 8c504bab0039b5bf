"""JSONPlaceholder adapter package."""

from __future__ import annotations

from .entities import Comment, Post, User
from .provider import JsonPlaceholderAPIError, JsonPlaceholderProvider
from .schema import CommentPayload, PostPayload, UserPayload
from .translator import translate_comment, translate_post, translate_user

__all__ = [
    "Comment",
    "CommentPayload",
    "JsonPlaceholderAPIError",
    "JsonPlaceholderProvider",
    "Post",
    "PostPayload",
    "User",
    "UserPayload",
    "translate_comment",
    "translate_post",
    "translate_user",
]
