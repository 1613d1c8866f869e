from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth import Identity, get_current_identity
from ..container import Services, get_services
from ..models import TaskStatus
from ..schemas import MessageResponse, PaginationOut, TaskCreate, TaskListResponse, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)

_UNAUTHORIZED = {401: {"description": "Unauthorized"}}
_NOT_FOUND = {404: {"description": "Task not found"}}


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new pending task owned by the caller.",
    responses={
        201: {"description": "Task successfully created"},
        400: {"description": "Validation error"},
        **_UNAUTHORIZED,
    },
)
def create_task(
    payload: TaskCreate,
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> TaskOut:
    """
    Create a new task.
    """
    created = services.tasks.create(identity.user_id, payload.title, payload.description)
    return TaskOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListResponse,
    summary="List Tasks",
    description=(
        "List the caller's tasks, newest first.\n\n"
        "Query parameters:\n"
        "- status: pending or completed\n"
        "- page: 1-indexed page number (default 1)\n"
        "- limit: page size, 1..100 (default 10)\n\n"
        "Returns the page of tasks and a pagination block."
    ),
    responses={200: {"description": "Tasks retrieved successfully"}, **_UNAUTHORIZED},
)
def list_tasks(
    task_status: Optional[TaskStatus] = Query(None, alias="status", description="Filter tasks by status"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> TaskListResponse:
    """
    List tasks with pagination and an optional status filter.
    """
    items, pagination = services.tasks.list(identity.user_id, task_status, page, limit)
    return TaskListResponse(
        tasks=[TaskOut(**it) for it in items],
        pagination=PaginationOut(**pagination),
    )


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get one of the caller's tasks by ID.",
    responses={200: {"description": "Task retrieved successfully"}, **_NOT_FOUND, **_UNAUTHORIZED},
)
def get_task(
    task_id: int,
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> TaskOut:
    """
    Retrieve a single task by its ID.
    """
    return TaskOut(**services.tasks.find_one(task_id, identity.user_id))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Update title, description and/or status. Omitted fields are left unchanged.",
    responses={
        200: {"description": "Task updated successfully"},
        400: {"description": "Validation error"},
        **_NOT_FOUND,
        **_UNAUTHORIZED,
    },
)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> TaskOut:
    """
    Update a task with patch semantics.
    """
    updated = services.tasks.update(task_id, identity.user_id, payload.to_patch())
    return TaskOut(**updated)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}/complete",
    response_model=TaskOut,
    summary="Complete Task",
    description="Mark a task as completed.",
    responses={200: {"description": "Task marked as completed"}, **_NOT_FOUND, **_UNAUTHORIZED},
)
def complete_task(
    task_id: int,
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> TaskOut:
    """
    Mark a task as completed.
    """
    return TaskOut(**services.tasks.mark_completed(task_id, identity.user_id))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete Task",
    description="Delete one of the caller's tasks.",
    responses={200: {"description": "Task deleted successfully"}, **_NOT_FOUND, **_UNAUTHORIZED},
)
def delete_task(
    task_id: int,
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> MessageResponse:
    """
    Delete a task. Returns a confirmation message, 404 if not found.
    """
    return MessageResponse(**services.tasks.remove(task_id, identity.user_id))
