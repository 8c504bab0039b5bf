"""Enumerations shared across the sync domain."""

from __future__ import annotations

import logging
from enum import IntEnum, StrEnum


class SyncOperation(StrEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    CREATE_LIST = "create_list"
    READ_LIST = "read_list"
    UPDATE_LIST = "update_list"
    DELETE_LIST = "delete_list"

    @property
    def is_list(self) -> bool:
        return self.value.endswith("_list")

    @property
    def is_write(self) -> bool:
        return self not in (SyncOperation.READ, SyncOperation.READ_LIST)

    @property
    def verb(self) -> str:
        """Method-name verb, e.g. ``get`` for both read operations."""
        base = self.value.removesuffix("_list")
        return "get" if base == "read" else base

    @property
    def single(self) -> SyncOperation:
        return SyncOperation(self.value.removesuffix("_list"))


class DeferralPolicy(StrEnum):
    """When the dispatcher drains the deferral queue around an operation."""

    DO_NOT_RESOLVE = "do_not_resolve"
    RESOLVE_EARLY = "resolve_early"
    RESOLVE_LATE = "resolve_late"


class HydrationPolicy(StrEnum):
    """How relationship placeholders are created for an entity type.

    ``SUPPRESS`` leaves the relationship empty, ``LAZY`` resolves it when it is
    first iterated, ``DEFER`` enqueues it with the other placeholders and
    ``EAGER`` resolves it as soon as it is created.
    """

    SUPPRESS = "suppress"
    LAZY = "lazy"
    DEFER = "defer"
    EAGER = "eager"


class ArrayKeyConformity(StrEnum):
    NONE = "none"
    PARTIAL = "partial"
    COMPLETE = "complete"


class LinkType(StrEnum):
    DEFAULT = "default"
    INTERNAL = "internal"
    COMPACT = "compact"
    FRIENDLY = "friendly"


class ErrorLevel(IntEnum):
    """Syslog severities, lower is more severe."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    @property
    def is_error(self) -> bool:
        return self <= ErrorLevel.ERROR

    @property
    def is_warning(self) -> bool:
        return self is ErrorLevel.WARNING

    @property
    def logging_level(self) -> int:
        if self <= ErrorLevel.CRITICAL:
            return logging.CRITICAL
        if self is ErrorLevel.ERROR:
            return logging.ERROR
        if self is ErrorLevel.WARNING:
            return logging.WARNING
        if self is ErrorLevel.DEBUG:
            return logging.DEBUG
        return logging.INFO


class SyncErrorType(StrEnum):
    ENTITY_NOT_FOUND = "entity_not_found"
    ENTITY_NOT_UNIQUE = "entity_not_unique"
    ENTITY_INVALID = "entity_invalid"
    ENTITY_INCOMPLETE = "entity_incomplete"
    HYDRATION_FAILED = "hydration_failed"
    OPERATION_FAILED = "operation_failed"
