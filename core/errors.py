"""
core/errors.py -- Domain error taxonomy shared by the auth and task services.

Services raise these; api/main.py renders every one of them as the standard
ErrorResponse envelope using the status_code and code carried by the class.
Nothing here knows about FastAPI -- the mapping to HTTP is data, not behaviour.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations


class TaskDeskError(Exception):
    """Base class for every error surfaced directly to an API caller."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class DuplicateEmail(TaskDeskError):
    status_code = 400
    code = "duplicate_email"
    default_message = "Email already in use."


class InvalidCredentials(TaskDeskError):
    """Unknown email and wrong password share this one error on purpose."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials."


class Unauthorized(TaskDeskError):
    """Missing, malformed, wrongly-signed or expired bearer token."""

    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required."


class NotFound(TaskDeskError):
    status_code = 404
    code = "not_found"
    default_message = "Task not found."


class Forbidden(TaskDeskError):
    status_code = 403
    code = "forbidden"
    default_message = "Access denied."


class InvalidInput(TaskDeskError):
    status_code = 400
    code = "invalid_input"
    default_message = "Invalid input data."
