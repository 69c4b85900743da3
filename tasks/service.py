"""
tasks/service.py -- Owner-scoped task operations.

Every public method takes the caller's owner id explicitly. There are two
ways a caller reaches a task:

  by id      -- always through find_one(), which checks existence first
                (NotFound) and ownership second (Forbidden). update(),
                remove() and update_status() all go through it.
  by filter  -- through TaskStore.find_tasks(), whose owner_id argument is
                mandatory, so no filter combination can widen the scope.

Concurrency: there is no locking. find_one() followed by save/delete is a
read-then-write; concurrent updates are last-write-wins and an update racing
a delete is logged and otherwise ignored.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from core.errors import Forbidden, InvalidInput, NotFound
from tasks.models import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Task, TaskFilters, TaskStatus
from tasks.store import TaskStore

logger = logging.getLogger("taskdesk.tasks")

# Largest OFFSET the database accepts (signed 64-bit).
_MAX_OFFSET = 2**63 - 1


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any, field: str = "dueDate") -> datetime:
    """Parse an ISO 8601 date or datetime string into an aware UTC datetime.

    Accepts "2024-02-01", "2024-02-01T09:30:00", "2024-02-01T09:30:00Z" and
    explicit offsets. Values without an offset are taken as UTC.
    Raises InvalidInput for anything else.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInput(f"{field} must be an ISO 8601 date string.")
        raw = value.strip()
        if raw[-1] in "Zz":
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise InvalidInput(f"{field} is not a valid date: {value!r}") from exc
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError as exc:
        raise InvalidInput(f"{field} is outside the supported date range: {value!r}") from exc


def parse_status(value: Any) -> TaskStatus:
    """Return the TaskStatus for value, or raise InvalidInput."""
    try:
        return TaskStatus(value)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise InvalidInput(f"Invalid status value. Expected one of: {allowed}.") from exc


def _parse_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("title must be a non-empty string.")
    return value


def _page_window(page: int | None, page_size: int | None) -> tuple[int, int]:
    """Return (offset, limit) for a 1-indexed page, applying the defaults."""
    page = page if page and page > 0 else 1
    page_size = page_size if page_size and page_size > 0 else DEFAULT_PAGE_SIZE
    if page_size > MAX_PAGE_SIZE:
        raise InvalidInput(f"pageSize must be at most {MAX_PAGE_SIZE}.")
    offset = (page - 1) * page_size
    if offset > _MAX_OFFSET:
        raise InvalidInput("page is out of range.")
    return offset, page_size


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TaskService:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def create(self, fields: Mapping[str, Any], owner_id: str) -> Task:
        """Create a task owned by owner_id.

        Recognized fields: title (required), description, due_date, status.
        Any owner supplied in fields is ignored.
        """
        if "title" not in fields:
            raise InvalidInput("title is required.")
        due_date = fields.get("due_date")
        status = fields.get("status")
        task = Task(
            title=_parse_title(fields["title"]),
            description=fields.get("description"),
            due_date=parse_timestamp(due_date) if due_date else None,
            status=parse_status(status) if status is not None else TaskStatus.TODO,
            user_id=owner_id,
        )
        task_id = self._store.create_task(task)
        logger.info("Task created (task_id=%s owner=%s)", task_id, owner_id)
        created = self._store.get_task(task_id)
        if created is None:
            # Deleted between insert and re-read; return what was written.
            task.id = task_id
            return task
        return created

    def find_all(self, owner_id: str, filters: TaskFilters | None = None) -> list[Task]:
        """Return one page of the owner's tasks matching every supplied filter."""
        filters = filters or TaskFilters()
        status = parse_status(filters.status).value if filters.status else None
        due_from = parse_timestamp(filters.due_from, "from") if filters.due_from else None
        due_to = parse_timestamp(filters.due_to, "to") if filters.due_to else None
        offset, limit = _page_window(filters.page, filters.page_size)
        return self._store.find_tasks(
            owner_id,
            status=status,
            title=filters.title or None,
            due_from=due_from,
            due_to=due_to,
            offset=offset,
            limit=limit,
        )

    def find_one(self, task_id: str, owner_id: str) -> Task:
        """Return the task if it exists and belongs to owner_id.

        Existence is checked before ownership: an unknown id is NotFound even
        for a caller who could never have owned it.
        """
        task = self._store.get_task(task_id)
        if task is None:
            raise NotFound()
        if task.user_id != owner_id:
            raise Forbidden()
        return task

    def update(self, task_id: str, fields: Mapping[str, Any], owner_id: str) -> Task:
        """Merge the supplied fields onto the owner's task and save it.

        A missing or empty due_date keeps the stored one. Unknown keys and any
        attempt to change the owner are ignored.
        """
        task = self.find_one(task_id, owner_id)
        if "title" in fields:
            task.title = _parse_title(fields["title"])
        if "description" in fields:
            task.description = fields["description"]
        if fields.get("due_date"):
            task.due_date = parse_timestamp(fields["due_date"])
        if fields.get("status") is not None:
            task.status = parse_status(fields["status"])
        self._save(task)
        return task

    def remove(self, task_id: str, owner_id: str) -> None:
        """Delete the owner's task. A concurrent delete that got there first is not an error."""
        self.find_one(task_id, owner_id)
        if not self._store.delete_task(task_id):
            logger.debug("Task %s already gone at delete time", task_id)
            return
        logger.info("Task deleted (task_id=%s owner=%s)", task_id, owner_id)

    def update_status(self, task_id: str, status: Any, owner_id: str) -> Task:
        """Set the status of the owner's task.

        The status is validated after the ownership check and before any
        write, so a bad value leaves the record untouched.
        """
        task = self.find_one(task_id, owner_id)
        task.status = parse_status(status)
        self._save(task)
        return task

    def get_tasks_grouped_by_status(
        self, owner_id: str, page_size: int = DEFAULT_PAGE_SIZE
    ) -> dict[str, list[Task]]:
        """Partition the first page of the owner's tasks by status.

        Only one page is fetched; an owner with more than page_size tasks
        gets a truncated view, not a global one.
        """
        tasks = self.find_all(owner_id, TaskFilters(page=1, page_size=page_size))
        groups: dict[str, list[Task]] = {s.value: [] for s in TaskStatus}
        for task in tasks:
            groups[TaskStatus(task.status).value].append(task)
        return groups

    # ------------------------------------------------------------------
    # Unpaged convenience queries
    # ------------------------------------------------------------------

    def find_by_status(self, status: Any, owner_id: str) -> list[Task]:
        return self._store.find_tasks(owner_id, status=parse_status(status).value)

    def search_tasks(self, query: str, owner_id: str) -> list[Task]:
        return self._store.find_tasks(owner_id, title=query or None)

    def find_tasks_by_date_range(self, start: Any, end: Any, owner_id: str) -> list[Task]:
        return self._store.find_tasks(
            owner_id,
            due_from=parse_timestamp(start, "start"),
            due_to=parse_timestamp(end, "end"),
        )

    def _save(self, task: Task) -> None:
        if not self._store.save_task(task):
            # Deleted between find_one() and the write. The caller still gets
            # the merged record.
            logger.warning("Task %s vanished before save; update not persisted", task.id)
