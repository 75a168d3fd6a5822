"""Tests for query-string parsing."""

from datetime import datetime, timezone

import pytest

from tasks_api.domain.errors import InvalidInput
from tasks_api.domain.task_query import (
    MAX_PAGE,
    SEARCH_SORT_FIELDS,
    SORTABLE_FIELDS,
    DateRange,
    PageWindow,
    leading_int,
    parse_filters,
    parse_page_window,
    parse_text_search,
    resolve_sort,
)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, None), ("", None), ("abc", None), ("12", 12), (" 12abc", 12), ("-4", -4), ("+3", 3), ("1.9", 1)],
)
def test_leading_int(raw, expected) -> None:
    assert leading_int(raw) == expected


def test_page_window_bounds() -> None:
    window = parse_page_window("5", "3", 10)
    assert window == PageWindow(page=3, limit=5)
    assert window.offset == 10
    assert window.end == 14


def test_page_window_defaults_and_clamps() -> None:
    assert parse_page_window(None, None, 20) == PageWindow(page=1, limit=20)
    assert parse_page_window("1000", "0", 20) == PageWindow(page=1, limit=100)
    assert parse_page_window("-1", "-1", 20) == PageWindow(page=1, limit=1)


@pytest.mark.parametrize("total, pages", [(0, 0), (1, 1), (10, 1), (11, 2), (25, 3)])
def test_total_pages(total: int, pages: int) -> None:
    assert PageWindow(page=1, limit=10).total_pages(total) == pages


def test_resolve_sort_search_defaults() -> None:
    spec = resolve_sort(None, None, SEARCH_SORT_FIELDS)
    assert (spec.field, spec.order, spec.nulls_last) == ("created_at", "desc", False)

    spec = resolve_sort("due_date", "asc", SEARCH_SORT_FIELDS)
    assert (spec.field, spec.order, spec.nulls_last) == ("due_date", "asc", True)


def test_resolve_sort_only_exact_asc_is_ascending() -> None:
    assert resolve_sort("title", "ASC", SORTABLE_FIELDS).order == "desc"
    assert resolve_sort("title", "asc", SORTABLE_FIELDS).order == "asc"


def test_resolve_sort_forced_nulls_last() -> None:
    spec = resolve_sort("priority", "desc", SORTABLE_FIELDS, nulls_last=True)
    assert spec.nulls_last is True


def test_resolve_sort_rejects_unlisted_field() -> None:
    assert resolve_sort("id", "asc", SORTABLE_FIELDS).field == "created_at"
    assert resolve_sort("description", "asc", SEARCH_SORT_FIELDS).field == "description"


def test_parse_filters_empty() -> None:
    filters = parse_filters()
    assert filters.priorities == ()
    assert filters.author is None
    assert not filters.start_date.is_set
    assert not filters.due_date.is_set
    assert filters.describe() == {}


def test_parse_filters_normalises() -> None:
    filters = parse_filters(
        priority=" High,,LOW ",
        author="  grace ",
        start_date_to="2024-05-01T10:00:00+02:00",
    )
    assert filters.priorities == ("high", "low")
    assert filters.author == "grace"
    assert filters.start_date == DateRange(lte=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))
    assert filters.describe() == {
        "priority": ["high", "low"],
        "author": "grace",
        "start_date": {"to": "2024-05-01T08:00:00+00:00"},
    }


def test_parse_filters_bad_date() -> None:
    with pytest.raises(InvalidInput) as exc:
        parse_filters(start_date_from="yesterday")
    assert exc.value.error == "Invalid start_date_from format"


def test_parse_text_search_defaults_to_all_fields() -> None:
    search = parse_text_search(" spec ", None)
    assert search.term == "spec"
    assert search.fields == ("title", "description", "author", "priority")
    assert parse_text_search("spec", "").fields == search.fields


def test_parse_text_search_selected_fields() -> None:
    assert parse_text_search("x", "priority, title ,nope,title").fields == ("priority", "title")


@pytest.mark.parametrize("q, fields", [(None, None), ("  ", "title"), ("x", "nope,,")])
def test_parse_text_search_invalid(q, fields) -> None:
    with pytest.raises(InvalidInput):
        parse_text_search(q, fields)


def test_leading_int_saturates_long_numbers() -> None:
    assert leading_int("9" * 5000) == 10**18
    assert leading_int("-" + "9" * 40) == -(10**18)
    assert leading_int("000000000000000000000042") == 42


def test_page_window_keeps_offset_in_64_bits() -> None:
    window = parse_page_window("100", "99999999999999999999", 20)
    assert window.page == MAX_PAGE
    assert 0 < window.offset < 2**63
