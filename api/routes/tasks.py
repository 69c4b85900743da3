"""
api/routes/tasks.py -- Task CRUD routes for the TaskDesk REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  POST   /tasks                    -- create task
  GET    /tasks                    -- list tasks (status, title, from, to, page, pageSize)
  GET    /tasks/grouped/status     -- first page of tasks split by status
  GET    /tasks/{task_id}          -- task detail
  PUT    /tasks/{task_id}          -- partial update
  DELETE /tasks/{task_id}          -- delete
  PUT    /tasks/{task_id}/status   -- set status

Every route requires a bearer token. The caller's user id is passed to
TaskService, which owns the 404-before-403 ownership rule; handlers here only
translate between transport models and domain objects.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    GroupedTasksResponse,
    MessageResponse,
    TaskCreate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from auth.dependencies import get_current_identity
from auth.models import Identity
from tasks.models import TaskFilters
from tasks.service import TaskService

router = APIRouter(prefix="/tasks")


def _service(request: Request) -> TaskService:
    return request.app.state.task_service


# ---------------------------------------------------------------------------
# POST /tasks -- create
# ---------------------------------------------------------------------------


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Create a task owned by the caller. status defaults to TODO."""
    task = _service(request).create(body.model_dump(exclude_unset=True), identity.user_id)
    return TaskResponse.from_task(task)


# ---------------------------------------------------------------------------
# GET /tasks -- filtered, paginated list
# ---------------------------------------------------------------------------


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    status: Optional[str] = Query(default=None, description="TODO, IN_PROGRESS or DONE"),
    title: Optional[str] = Query(default=None, description="Case-insensitive title search"),
    due_from: Optional[str] = Query(default=None, alias="from", description="Earliest dueDate (ISO 8601)"),
    due_to: Optional[str] = Query(default=None, alias="to", description="Latest dueDate (ISO 8601)"),
    page: Optional[int] = Query(default=None, description="1-indexed page number"),
    page_size: Optional[int] = Query(default=None, alias="pageSize", description="Tasks per page (default 100)"),
) -> list[TaskResponse]:
    """Return the caller's tasks matching every supplied filter."""
    filters = TaskFilters(
        status=status,
        title=title,
        due_from=due_from,
        due_to=due_to,
        page=page,
        page_size=page_size,
    )
    tasks = _service(request).find_all(identity.user_id, filters)
    return [TaskResponse.from_task(t) for t in tasks]


# ---------------------------------------------------------------------------
# GET /tasks/grouped/status -- must be before /tasks/{task_id}
# ---------------------------------------------------------------------------


@router.get("/grouped/status", response_model=GroupedTasksResponse)
def grouped_tasks(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> GroupedTasksResponse:
    """Return the caller's tasks grouped into TODO, IN_PROGRESS and DONE."""
    groups = _service(request).get_tasks_grouped_by_status(identity.user_id)
    return GroupedTasksResponse(
        **{status: [TaskResponse.from_task(t) for t in tasks] for status, tasks in groups.items()}
    )


# ---------------------------------------------------------------------------
# /tasks/{task_id}
# ---------------------------------------------------------------------------


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    request: Request,
    task_id: str,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Return one task. 404 if it does not exist, 403 if it belongs to someone else."""
    return TaskResponse.from_task(_service(request).find_one(task_id, identity.user_id))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: str,
    body: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Apply the fields present in the body. An omitted dueDate keeps the stored one."""
    task = _service(request).update(task_id, body.model_dump(exclude_unset=True), identity.user_id)
    return TaskResponse.from_task(task)


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    request: Request,
    task_id: str,
    identity: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Delete one task."""
    _service(request).remove(task_id, identity.user_id)
    return MessageResponse(message="Task deleted.")


@router.put("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    request: Request,
    task_id: str,
    body: TaskStatusUpdate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Set a task's status. An unknown status is 400 and leaves the task unchanged."""
    task = _service(request).update_status(task_id, body.status, identity.user_id)
    return TaskResponse.from_task(task)
