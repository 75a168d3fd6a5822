import logging
from typing import Optional

from tasks_api.domain.errors import Conflict, InvalidInput, NotFound, StoreConflict, StoreError, StoreFailure
from tasks_api.domain.task_models import (
    Pagination,
    SearchInfo,
    Sorting,
    Task,
    TaskCreateRequest,
    TaskPage,
    TaskSearchPage,
    TaskSortPage,
    TaskUpdate,
    validate_create,
)
from tasks_api.domain.task_query import (
    LIST_DEFAULT_LIMIT,
    QUERY_DEFAULT_LIMIT,
    SEARCH_SORT_FIELDS,
    SORTABLE_FIELDS,
    PageWindow,
    parse_filters,
    parse_page_window,
    parse_text_search,
    resolve_sort,
)

logger = logging.getLogger("tasks_api.tasks")


def _require_id(task_id: Optional[str]) -> str:
    if not task_id or not task_id.strip():
        raise InvalidInput("ID is required")
    return task_id


def _pagination(window: PageWindow, total: int) -> Pagination:
    return Pagination(
        page=window.page,
        limit=window.limit,
        total=total,
        total_pages=window.total_pages(total),
    )


class TaskService:
    """Validates requests, runs them against the task repo and shapes the result.

    Store errors come back as StoreFailure carrying the store's own message;
    the `error` text names the operation that failed.
    """

    def __init__(self, repo):
        self.repo = repo

    async def create_task(self, req: TaskCreateRequest) -> Task:
        data = validate_create(req)
        logger.info("task.create", extra={"category": "tasks", "event": "task.create", "title": data.title})
        try:
            return await self.repo.create(data)
        except StoreConflict as e:
            logger.warning("task.create.conflict", extra={"category": "tasks", "event": "task.create.conflict", "detail": e.message})
            raise Conflict()
        except StoreError as e:
            logger.error("task.create.failed", extra={"category": "tasks", "event": "task.create.failed", "detail": e.message})
            raise StoreFailure("Failed to create task", e.message)

    async def get_task(self, task_id: Optional[str]) -> Task:
        task_id = _require_id(task_id)
        try:
            task = await self.repo.get(task_id)
        except StoreError as e:
            raise StoreFailure("Failed to fetch task", e.message)
        if task is None:
            raise NotFound()
        return task

    async def list_tasks(self, limit: Optional[str] = None, page: Optional[str] = None) -> TaskPage:
        window = parse_page_window(limit, page, LIST_DEFAULT_LIMIT)
        try:
            rows, total = await self.repo.page(window.offset, window.limit)
        except StoreError as e:
            logger.error("task.list.failed", extra={"category": "tasks", "event": "task.list.failed", "detail": e.message})
            raise StoreFailure("Failed to fetch tasks", e.message)
        return TaskPage(data=rows, pagination=_pagination(window, total))

    async def search_tasks(
        self,
        q: Optional[str],
        fields: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[str] = None,
        page: Optional[str] = None,
        **filter_params: Optional[str],
    ) -> TaskSearchPage:
        search = parse_text_search(q, fields)
        filters = parse_filters(**filter_params)
        window = parse_page_window(limit, page, QUERY_DEFAULT_LIMIT)
        sort_spec = resolve_sort(sort, order, SEARCH_SORT_FIELDS)

        logger.info(
            "task.search",
            extra={
                "category": "tasks",
                "event": "task.search",
                "q": search.term,
                "fields": list(search.fields),
                "sort": sort_spec.field,
            },
        )
        try:
            rows, total = await self.repo.query(
                filters, sort_spec, window.offset, window.limit, search=search
            )
        except StoreError as e:
            logger.error("task.search.failed", extra={"category": "tasks", "event": "task.search.failed", "detail": e.message})
            raise StoreFailure("Search failed", e.message)

        return TaskSearchPage(
            data=rows,
            search=SearchInfo(
                query=search.term,
                fields=list(search.fields),
                filters=filters.describe(),
                results_count=total,
            ),
            pagination=_pagination(window, total),
            sorting=Sorting(field=sort_spec.field, order=sort_spec.order),
        )

    async def sort_tasks(
        self,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[str] = None,
        page: Optional[str] = None,
        **filter_params: Optional[str],
    ) -> TaskSortPage:
        filters = parse_filters(**filter_params)
        window = parse_page_window(limit, page, QUERY_DEFAULT_LIMIT)
        sort_spec = resolve_sort(sort_by, order, SORTABLE_FIELDS, nulls_last=True)
        try:
            rows, total = await self.repo.query(filters, sort_spec, window.offset, window.limit)
        except StoreError as e:
            logger.error("task.sort.failed", extra={"category": "tasks", "event": "task.sort.failed", "detail": e.message})
            raise StoreFailure("Failed to sort tasks", e.message)

        return TaskSortPage(
            data=rows,
            sorting=Sorting(field=sort_spec.field, order=sort_spec.order),
            pagination=_pagination(window, total),
        )

    async def update_task(self, task_id: Optional[str], patch: TaskUpdate) -> Task:
        task_id = _require_id(task_id)
        changes = patch.changes()
        logger.info(
            "task.update",
            extra={"category": "tasks", "event": "task.update", "task_id": task_id, "fields": sorted(changes)},
        )
        try:
            task = await self.repo.update(task_id, changes)
        except StoreError as e:
            raise StoreFailure("Failed to update task", e.message)
        if task is None:
            raise NotFound()
        return task

    async def delete_task(self, task_id: Optional[str]) -> Task:
        task_id = _require_id(task_id)
        logger.info("task.delete", extra={"category": "tasks", "event": "task.delete", "task_id": task_id})
        try:
            task = await self.repo.delete(task_id)
        except StoreError as e:
            raise StoreFailure("Failed to delete task", e.message)
        if task is None:
            raise NotFound()
        return task
