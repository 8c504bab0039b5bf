"""Pydantic models describing JSONPlaceholder payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class JsonPlaceholderBaseModel(BaseModel):
    # Unmodelled keys are kept and end up in the entity's extension data.
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class GeoPayload(JsonPlaceholderBaseModel):
    lat: str | None = None
    lng: str | None = None


class AddressPayload(JsonPlaceholderBaseModel):
    street: str | None = None
    suite: str | None = None
    city: str | None = None
    zipcode: str | None = None
    geo: GeoPayload | None = None


class CompanyPayload(JsonPlaceholderBaseModel):
    name: str
    catch_phrase: str | None = Field(default=None, alias="catchPhrase")
    bs: str | None = None


class UserPayload(JsonPlaceholderBaseModel):
    id: int
    name: str
    username: str
    email: str | None = None
    address: AddressPayload | None = None
    phone: str | None = None
    website: str | None = None
    company: CompanyPayload | None = None

    _normalize_email = field_validator("email", "phone", "website", mode="before")(_blank_to_none)


class PostPayload(JsonPlaceholderBaseModel):
    id: int
    user_id: int | None = Field(default=None, alias="userId")
    title: str
    body: str | None = None


class CommentPayload(JsonPlaceholderBaseModel):
    id: int
    post_id: int | None = Field(default=None, alias="postId")
    name: str
    email: str | None = None
    body: str | None = None
