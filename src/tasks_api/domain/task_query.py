"""Query-string parsing for the list, search and sort endpoints.

Everything here is pure: raw query text in, normalised values out. Bad
numbers fall back to defaults; only a missing search term, an empty field
selection and unparseable date bounds are rejected.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from tasks_api.domain.errors import InvalidInput
from tasks_api.domain.task_models import parse_iso_datetime

SEARCHABLE_FIELDS = ["title", "description", "author", "priority"]
SEARCH_SORT_FIELDS = SEARCHABLE_FIELDS + ["created_at", "updated_at", "start_date", "due_date"]
SORTABLE_FIELDS = [
    "title", "author", "priority", "created_at",
    "updated_at", "start_date", "due_date", "description",
]
DEFAULT_SORT_FIELD = "created_at"

LIST_DEFAULT_LIMIT = 10
QUERY_DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# keeps (page - 1) * limit inside a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_LIMIT

_LEADING_INT = re.compile(r"\s*([+-]?)(\d+)")
_MAX_DIGITS = 18


def leading_int(raw: Optional[str]) -> Optional[int]:
    """Integer prefix of `raw` ("12abc" -> 12), or None when there is none.

    Prefixes longer than 18 digits saturate at +/-10**18.
    """
    if raw is None:
        return None
    m = _LEADING_INT.match(raw)
    if not m:
        return None
    digits = m.group(2).lstrip("0") or "0"
    value = 10**_MAX_DIGITS if len(digits) > _MAX_DIGITS else int(digits)
    return -value if m.group(1) == "-" else value


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end(self) -> int:
        # inclusive, zero-based
        return self.offset + self.limit - 1

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)


def parse_page_window(limit: Optional[str], page: Optional[str], default_limit: int) -> PageWindow:
    # zero counts as absent, same as a non-number
    n = leading_int(limit) or default_limit
    p = leading_int(page) or 1
    return PageWindow(page=min(max(p, 1), MAX_PAGE), limit=min(max(n, 1), MAX_LIMIT))


@dataclass(frozen=True)
class SortSpec:
    field: str
    ascending: bool
    nulls_last: bool

    @property
    def order(self) -> str:
        return "asc" if self.ascending else "desc"


def resolve_sort(
    raw_field: Optional[str],
    raw_order: Optional[str],
    allowed: List[str],
    nulls_last: Optional[bool] = None,
) -> SortSpec:
    """Unknown fields fall back to created_at; only "asc" sorts ascending.

    With `nulls_last` unset, nulls go last ascending and first descending.
    """
    sort_field = raw_field if raw_field in allowed else DEFAULT_SORT_FIELD
    ascending = raw_order == "asc"
    return SortSpec(
        field=sort_field,
        ascending=ascending,
        nulls_last=ascending if nulls_last is None else nulls_last,
    )


@dataclass(frozen=True)
class DateRange:
    gte: Optional[datetime] = None
    lte: Optional[datetime] = None

    @property
    def is_set(self) -> bool:
        return self.gte is not None or self.lte is not None

    def describe(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        if self.gte is not None:
            out["from"] = self.gte.isoformat()
        if self.lte is not None:
            out["to"] = self.lte.isoformat()
        return out


@dataclass(frozen=True)
class TaskFilters:
    priorities: Tuple[str, ...] = ()
    author: Optional[str] = None
    start_date: DateRange = field(default_factory=DateRange)
    due_date: DateRange = field(default_factory=DateRange)

    def describe(self) -> Dict[str, Any]:
        applied: Dict[str, Any] = {}
        if self.priorities:
            applied["priority"] = list(self.priorities)
        if self.author:
            applied["author"] = self.author
        if self.start_date.is_set:
            applied["start_date"] = self.start_date.describe()
        if self.due_date.is_set:
            applied["due_date"] = self.due_date.describe()
        return applied


def _date_bound(raw: Optional[str], name: str) -> Optional[datetime]:
    if not raw or not raw.strip():
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise InvalidInput(f"Invalid {name} format")


def parse_filters(
    priority: Optional[str] = None,
    author: Optional[str] = None,
    start_date_from: Optional[str] = None,
    start_date_to: Optional[str] = None,
    due_date_from: Optional[str] = None,
    due_date_to: Optional[str] = None,
) -> TaskFilters:
    priorities: Tuple[str, ...] = ()
    if priority:
        priorities = tuple(p.strip().lower() for p in priority.split(",") if p.strip())

    return TaskFilters(
        priorities=priorities,
        author=(author or "").strip() or None,
        start_date=DateRange(
            gte=_date_bound(start_date_from, "start_date_from"),
            lte=_date_bound(start_date_to, "start_date_to"),
        ),
        due_date=DateRange(
            gte=_date_bound(due_date_from, "due_date_from"),
            lte=_date_bound(due_date_to, "due_date_to"),
        ),
    )


@dataclass(frozen=True)
class TextSearch:
    term: str
    fields: Tuple[str, ...]


def parse_text_search(q: Optional[str], fields: Optional[str]) -> TextSearch:
    term = (q or "").strip()
    if not term:
        raise InvalidInput("Query parameter q is required")

    if not fields:
        return TextSearch(term=term, fields=tuple(SEARCHABLE_FIELDS))

    selected: List[str] = []
    for name in (f.strip() for f in fields.split(",")):
        if name in SEARCHABLE_FIELDS and name not in selected:
            selected.append(name)

    if not selected:
        raise InvalidInput(f"Invalid fields. Available: {', '.join(SEARCHABLE_FIELDS)}")

    return TextSearch(term=term, fields=tuple(selected))
