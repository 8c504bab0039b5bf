from __future__ import annotations

import json
import logging

from synclink.domain.model import (
    ErrorLevel,
    SyncErrorCollection,
    SyncErrorRecord,
    SyncErrorType,
)
from tests.helpers.providers import OWNERS, InMemoryProvider, Owner


def _not_found(entity_id: int, *, level: ErrorLevel = ErrorLevel.ERROR) -> SyncErrorRecord:
    return SyncErrorRecord(
        error_type=SyncErrorType.ENTITY_NOT_FOUND,
        message="%s not found: %s",
        values=("Owner", entity_id),
        level=level,
        entity_type="Owner",
        entity_id=entity_id,
    )


def test_error_levels() -> None:
    assert ErrorLevel.CRITICAL.is_error
    assert ErrorLevel.ERROR.is_error
    assert not ErrorLevel.WARNING.is_error
    assert ErrorLevel.WARNING.is_warning
    assert ErrorLevel.ALERT.logging_level == logging.CRITICAL
    assert ErrorLevel.NOTICE.logging_level == logging.INFO


def test_record_formats_message_and_compares_by_value() -> None:
    record = _not_found(7)

    assert record.formatted_message() == "Owner not found: 7"
    assert str(record) == "ERROR entity_not_found Owner[7]: Owner not found: 7"
    assert record == _not_found(7)
    assert record != _not_found(8)


def test_record_keeps_a_template_that_does_not_fit_its_values() -> None:
    record = SyncErrorRecord(
        error_type=SyncErrorType.ENTITY_INVALID,
        message="%s and %s",
        values=("one",),
    )

    assert record.formatted_message() == "%s and %s ('one',)"
    payload = json.loads(SyncErrorCollection([record]).to_json())
    assert payload[0]["message"] == record.formatted_message()


def test_record_for_entity(provider: InMemoryProvider) -> None:
    owner = Owner.provide(OWNERS[1], provider)

    record = SyncErrorRecord.for_entity(
        SyncErrorType.ENTITY_INCOMPLETE,
        "Missing %s",
        "email",
        entity=owner,
        level=ErrorLevel.WARNING,
    )

    assert record.entity_id == 1
    assert record.entity_name == "Ada Lovelace"
    assert record.provider == "InMemoryProvider"
    assert record.to_dict()["message"] == "Missing email"


def test_collection_counts_and_summarises() -> None:
    errors = SyncErrorCollection()
    errors.add(_not_found(1))
    errors.add(_not_found(2))
    errors.add(_not_found(3, level=ErrorLevel.WARNING))

    assert len(errors) == 3
    assert errors.error_count == 2
    assert errors.warning_count == 1
    assert errors.has(_not_found(2))
    assert errors.summary() == [(SyncErrorType.ENTITY_NOT_FOUND, "%s not found: %s", 3)]
    assert [item["entity_id"] for item in json.loads(errors.to_json())] == [1, 2, 3]


def test_collection_copy_is_independent() -> None:
    errors = SyncErrorCollection()
    errors.add(_not_found(1))

    copied = errors.copy()
    copied.add(_not_found(2))

    assert len(errors) == 1
    assert len(copied) == 2
