"""Tests for create validation and update payloads."""

from datetime import datetime, timezone

import pytest

from tasks_api.domain.errors import InvalidInput
from tasks_api.domain.task_models import (
    Pagination,
    TaskCreateRequest,
    TaskUpdate,
    parse_iso_datetime,
    validate_create,
)


def test_parse_iso_datetime_forms() -> None:
    assert parse_iso_datetime("2024-01-01") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_iso_datetime("2024-01-01T10:15:00Z") == datetime(2024, 1, 1, 10, 15, tzinfo=timezone.utc)
    assert parse_iso_datetime("2024-01-01T10:15:00-03:00") == datetime(2024, 1, 1, 13, 15, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        parse_iso_datetime("01/02/2024")


def test_validate_create_normalises() -> None:
    data = validate_create(TaskCreateRequest(
        title=" A ", author=" B ", priority="Medium", description=" d ", start_date="2024-01-01",
    ))
    assert data.values() == {
        "title": "A",
        "author": "B",
        "priority": "medium",
        "description": "d",
        "start_date": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }


def test_validate_create_equal_dates_allowed() -> None:
    data = validate_create(TaskCreateRequest(
        title="A", author="B", start_date="2024-01-01", due_date="2024-01-01T00:00:00Z",
    ))
    assert data.start_date == data.due_date


def test_validate_create_empty_priority_is_unset() -> None:
    assert validate_create(TaskCreateRequest(title="A", author="B", priority="")).priority is None


def test_validate_create_mixed_offsets_compare_in_utc() -> None:
    # 23:00 at -02:00 is already the next day in UTC
    with pytest.raises(InvalidInput, match="Start date cannot be after due date"):
        validate_create(TaskCreateRequest(
            title="A", author="B", start_date="2024-01-01T23:00:00-02:00", due_date="2024-01-02",
        ))


def test_update_changes_only_sent_fields() -> None:
    patch = TaskUpdate.model_validate({"description": None, "priority": "whatever", "status": "x"})
    assert patch.changes() == {"description": None, "priority": "whatever"}


def test_update_converts_dates() -> None:
    patch = TaskUpdate(due_date="2024-06-01", start_date=None)
    assert patch.changes() == {"due_date": datetime(2024, 6, 1, tzinfo=timezone.utc), "start_date": None}


def test_pagination_serialises_camel_case() -> None:
    p = Pagination(page=1, limit=10, total=3, total_pages=1)
    assert p.model_dump(by_alias=True) == {"page": 1, "limit": 10, "total": 3, "totalPages": 1}
