"""
API request and response models for TaskDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in tasks/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire names are camelCase (dueDate, accessToken, createdAt). Each such field
declares its alias explicitly; populate_by_name lets Python code construct
models with the snake_case attribute names.
"""

from datetime import datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasks.models import Task, TaskStatus

# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    The email is checked for syntax but stored exactly as submitted. EmailStr
    would hand back the normalized form (lowercased domain), and login matches
    the stored value byte for byte.
    """

    email: str = Field(max_length=255)
    # bcrypt only looks at the first 72 bytes; refuse longer input outright.
    password: str = Field(min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def email_syntax(cls, value: str) -> str:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(str(exc)) from exc
        return value


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    No format rules beyond presence: a malformed email is simply an unknown
    one and must produce the same invalid_credentials answer.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Response body for signup and login."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(alias="accessToken")


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Tasks -- request models
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /tasks.

    dueDate is kept as a string here so an unparseable value reaches
    TaskService, which reports it as invalid_input.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    status: Optional[TaskStatus] = None


class TaskUpdate(BaseModel):
    """Request body for PUT /tasks/{task_id}. Every field is optional.

    Only fields present in the body are applied (model_dump(exclude_unset=True)).
    status is a plain string for the same reason as in TaskStatusUpdate: an
    unknown task id must be 404 whatever status value accompanies it.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    status: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    """Request body for PUT /tasks/{task_id}/status.

    status is a plain string, not TaskStatus, so TaskService validates it
    after the existence and ownership checks.
    """

    status: str


# ---------------------------------------------------------------------------
# Tasks -- response models
# ---------------------------------------------------------------------------


class TaskResponse(BaseModel):
    """One task as returned by every task endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    description: Optional[str]
    due_date: Optional[datetime] = Field(alias="dueDate")
    status: TaskStatus
    user: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Build a TaskResponse from a domain Task."""
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            status=task.status,
            user=task.user_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class GroupedTasksResponse(BaseModel):
    """Response for GET /tasks/grouped/status."""

    model_config = ConfigDict(frozen=True)

    TODO: list[TaskResponse]
    IN_PROGRESS: list[TaskResponse]
    DONE: list[TaskResponse]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
