from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import uuid

from tasks_api.domain.errors import InvalidInput


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


PRIORITY_VALUES = [p.value for p in TaskPriority]


def parse_iso_datetime(raw: str) -> datetime:
    """Parse ISO-8601 date or date-time text, normalised to UTC.

    Naive values are taken as UTC. Raises ValueError on bad input.
    """
    value = datetime.fromisoformat(raw.strip())
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskCreateRequest(BaseModel):
    """Create body as the client sent it; checked by `validate_create`."""

    title: Optional[str] = None
    author: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    start_date: Optional[str] = None


class TaskCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    priority: Optional[TaskPriority] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None

    def values(self) -> Dict[str, Any]:
        # unset optionals are left to the store defaults
        return self.model_dump(exclude_none=True)


def validate_create(req: TaskCreateRequest) -> TaskCreate:
    title = (req.title or "").strip()
    if not title:
        raise InvalidInput("Title is required")

    author = (req.author or "").strip()
    if not author:
        raise InvalidInput("Author is required")

    priority = None
    if req.priority:
        if req.priority.lower() not in PRIORITY_VALUES:
            raise InvalidInput(f"Priority must be one of: {', '.join(PRIORITY_VALUES)}")
        priority = TaskPriority(req.priority.lower())

    due_date = _create_date(req.due_date, "due_date")
    start_date = _create_date(req.start_date, "start_date")
    if start_date and due_date and start_date > due_date:
        raise InvalidInput("Start date cannot be after due date")

    description = (req.description or "").strip() or None

    return TaskCreate(
        title=title,
        author=author,
        priority=priority,
        description=description,
        due_date=due_date,
        start_date=start_date,
    )


def _create_date(raw: Optional[str], name: str) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise InvalidInput(f"Invalid {name} format")


class TaskUpdate(BaseModel):
    """Partial update. Values are written as given; only date text is converted."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    author: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    start_date: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        out: Dict[str, Any] = self.model_dump(exclude_unset=True)
        for name in ("due_date", "start_date"):
            raw = out.get(name)
            if raw is None:
                continue
            try:
                out[name] = parse_iso_datetime(raw)
            except ValueError:
                raise InvalidInput(f"Invalid {name} format")
        return out


class Task(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    author: str
    priority: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


def new_task_id() -> str:
    return str(uuid.uuid4())


# --- response envelopes ---

class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")


class Sorting(BaseModel):
    field: str
    order: str


class SearchInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str
    fields: List[str]
    filters: Dict[str, Any]
    results_count: int = Field(alias="resultsCount")


class TaskEnvelope(BaseModel):
    data: Optional[Task] = None


class TaskCreated(TaskEnvelope):
    message: str = "Task created successfully"


class TaskPage(BaseModel):
    data: List[Task]
    pagination: Pagination


class TaskSortPage(TaskPage):
    sorting: Sorting


class TaskSearchPage(TaskSortPage):
    search: SearchInfo


class ErrorBody(BaseModel):
    error: str
    message: Optional[str] = None
