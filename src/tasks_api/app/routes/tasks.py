from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from tasks_api.domain.task_models import (
    ErrorBody,
    TaskCreated,
    TaskCreateRequest,
    TaskEnvelope,
    TaskPage,
    TaskSearchPage,
    TaskSortPage,
    TaskUpdate,
)
from tasks_api.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])

_ERRORS = {
    400: {"model": ErrorBody},
    404: {"model": ErrorBody},
    500: {"model": ErrorBody},
}


def get_service(request: Request) -> TaskService:
    # Set by create_app
    return request.app.state.task_service


@router.post(
    "",
    response_model=TaskCreated,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 409: {"model": ErrorBody}},
)
async def create_task(
    payload: Optional[TaskCreateRequest] = None,
    svc: TaskService = Depends(get_service),
):
    task = await svc.create_task(payload or TaskCreateRequest())
    return TaskCreated(data=task)


@router.get("", response_model=TaskPage, responses=_ERRORS)
async def list_tasks(
    limit: Optional[str] = None,
    page: Optional[str] = None,
    svc: TaskService = Depends(get_service),
):
    return await svc.list_tasks(limit=limit, page=page)


# /search and /sort must be registered before /{task_id}
@router.get("/search", response_model=TaskSearchPage, responses=_ERRORS)
async def search_tasks(
    q: Optional[str] = None,
    fields: Optional[str] = None,
    limit: Optional[str] = None,
    page: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    priority: Optional[str] = None,
    author: Optional[str] = None,
    start_date_from: Optional[str] = None,
    start_date_to: Optional[str] = None,
    due_date_from: Optional[str] = None,
    due_date_to: Optional[str] = None,
    svc: TaskService = Depends(get_service),
):
    return await svc.search_tasks(
        q,
        fields=fields,
        sort=sort,
        order=order,
        limit=limit,
        page=page,
        priority=priority,
        author=author,
        start_date_from=start_date_from,
        start_date_to=start_date_to,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
    )


@router.get("/sort", response_model=TaskSortPage, responses=_ERRORS)
async def sort_tasks(
    sort_by: Optional[str] = None,
    order: Optional[str] = None,
    limit: Optional[str] = None,
    page: Optional[str] = None,
    priority: Optional[str] = None,
    author: Optional[str] = None,
    start_date_from: Optional[str] = None,
    start_date_to: Optional[str] = None,
    due_date_from: Optional[str] = None,
    due_date_to: Optional[str] = None,
    svc: TaskService = Depends(get_service),
):
    return await svc.sort_tasks(
        sort_by=sort_by,
        order=order,
        limit=limit,
        page=page,
        priority=priority,
        author=author,
        start_date_from=start_date_from,
        start_date_to=start_date_to,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
    )


@router.get("/{task_id}", response_model=TaskEnvelope, responses=_ERRORS)
async def get_task(task_id: str, svc: TaskService = Depends(get_service)):
    return TaskEnvelope(data=await svc.get_task(task_id))


@router.patch("/{task_id}", response_model=TaskEnvelope, responses=_ERRORS)
async def update_task(
    task_id: str,
    patch: Optional[TaskUpdate] = None,
    svc: TaskService = Depends(get_service),
):
    return TaskEnvelope(data=await svc.update_task(task_id, patch or TaskUpdate()))


@router.delete("/{task_id}", response_model=TaskEnvelope, responses=_ERRORS)
async def delete_task(task_id: str, svc: TaskService = Depends(get_service)):
    return TaskEnvelope(data=await svc.delete_task(task_id))
