"""Entity model for records owned by sync providers."""

from __future__ import annotations

from .base import EntityId, Identifiable, ObjectKey, Providable, Serializable
from .dates import DEFAULT_DATE_FORMATTER, DateFormatter
from .entity import SyncEntity, default_type_uri, field_map_for
from .enums import (
    ArrayKeyConformity,
    DeferralPolicy,
    ErrorLevel,
    HydrationPolicy,
    LinkType,
    SyncErrorType,
    SyncOperation,
)
from .errors import SyncErrorCollection, SyncErrorRecord
from .fields import FieldMap, to_snake_case
from .run import RunRecord

__all__ = [
    "DEFAULT_DATE_FORMATTER",
    "ArrayKeyConformity",
    "DateFormatter",
    "DeferralPolicy",
    "EntityId",
    "ErrorLevel",
    "FieldMap",
    "HydrationPolicy",
    "Identifiable",
    "LinkType",
    "ObjectKey",
    "Providable",
    "RunRecord",
    "Serializable",
    "SyncEntity",
    "SyncErrorCollection",
    "SyncErrorRecord",
    "SyncErrorType",
    "SyncOperation",
    "default_type_uri",
    "field_map_for",
    "to_snake_case",
]
