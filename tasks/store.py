"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclasses in tasks/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. The service layer never touches SQL directly.

The store does not enforce ownership on get/save/delete by id -- that is
TaskService.find_one()'s job, because the service must tell "no such task"
(404) apart from "someone else's task" (403). find_tasks() is the exception:
owner_id is a required argument and always part of the WHERE clause.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///:memory:")
    task_id = store.create_task(Task(title="Write report", user_id=owner))
    tasks = store.find_tasks(owner, status="TODO", limit=20)
    store.close()
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table, Text, create_engine, event, func
from sqlalchemy.engine import Engine

from core.config import get_settings
from tasks.models import Task, TaskStatus

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex
    Column("user_id", String(32), nullable=False),
    Column("title", String(500), nullable=False),
    Column("description", Text),
    Column("due_date", DateTime),  # naive UTC
    Column("status", String(20), nullable=False, server_default=TaskStatus.TODO.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_tasks_user_created", "user_id", "created_at"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _to_db(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC for the DateTime column.

    SQLite has no timezone type. Storing everything as naive UTC keeps range
    comparisons in SQL correct regardless of the offset the client sent.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _from_db(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc)


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


def _on_sqlite_connect(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and register the casefold() SQL function.

    SQLite's own lower() and LIKE fold ASCII only, so title search compares
    Python-casefolded text instead.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Route handlers run in FastAPI's thread pool, so one pooled
            # connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        self._sqlite = db_url.startswith("sqlite")
        if self._sqlite:
            event.listen(self.engine, "connect", _on_sqlite_connect)
        metadata.create_all(self.engine)

    def create_task(self, task: Task) -> str:
        """Insert a new task and return its assigned id."""
        task_id = uuid.uuid4().hex
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _tasks.insert().values(
                    id=task_id,
                    user_id=task.user_id,
                    title=task.title,
                    description=task.description,
                    due_date=_to_db(task.due_date),
                    status=TaskStatus(task.status).value,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return task_id

    def get_task(self, task_id: str) -> Optional[Task]:
        """Fetch a single task by id regardless of owner. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def find_tasks(
        self,
        owner_id: str,
        status: Optional[str] = None,
        title: Optional[str] = None,
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Task]:
        """Return the owner's tasks matching every supplied filter, oldest first.

        title is a case-insensitive substring match (Unicode casefolding on
        SQLite); % and _ in the term are escaped so they match literally.
        due_from / due_to are inclusive and exclude tasks with no due date. Ordering is (created_at, id) so that
        offset/limit pages are disjoint and stable.
        """
        stmt = _tasks.select().where(_tasks.c.user_id == owner_id)
        if status is not None:
            stmt = stmt.where(_tasks.c.status == status)
        if title and self._sqlite:
            stmt = stmt.where(func.casefold(_tasks.c.title).contains(title.casefold(), autoescape=True))
        elif title:
            stmt = stmt.where(_tasks.c.title.icontains(title, autoescape=True))
        if due_from is not None:
            stmt = stmt.where(_tasks.c.due_date >= _to_db(due_from))
        if due_to is not None:
            stmt = stmt.where(_tasks.c.due_date <= _to_db(due_to))
        stmt = stmt.order_by(_tasks.c.created_at, _tasks.c.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_task(r) for r in rows]

    def save_task(self, task: Task) -> bool:
        """Write the task's mutable fields back and refresh updated_at.

        user_id is deliberately absent from the SET clause -- ownership is
        immutable. Returns False if the row no longer exists.
        """
        task.updated_at = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update()
                .where(_tasks.c.id == task.id)
                .values(
                    title=task.title,
                    description=task.description,
                    due_date=_to_db(task.due_date),
                    status=TaskStatus(task.status).value,
                    updated_at=task.updated_at,
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete_task(self, task_id: str) -> bool:
        """Delete a task by id. Returns True if a row was removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        due_date=_from_db(row.due_date),
        status=TaskStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
