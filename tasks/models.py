"""
tasks/models.py -- Domain dataclasses for the task store.

These are pure data containers with zero logic. Ownership checks, date
parsing and filter defaults live in tasks/service.py.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


@dataclass
class Task:
    """A unit of work belonging to exactly one user.

    user_id is set from the authenticated caller at creation and never
    changes. due_date is a timezone-aware UTC datetime or None.

    id is None before the record is written to the database.
    """

    title: str
    user_id: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: TaskStatus = TaskStatus.TODO
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed on every save


@dataclass
class TaskFilters:
    """Options accepted by TaskService.find_all().

    Every field is optional; unset fields do not constrain the result.
    due_from / due_to are raw date strings -- the service parses them.
    page and page_size fall back to 1 and DEFAULT_PAGE_SIZE when None or <= 0.
    page_size above MAX_PAGE_SIZE, or a page past the end of the addressable
    range, is rejected by the service.
    """

    status: Optional[str] = None
    title: Optional[str] = None
    due_from: Optional[str] = None
    due_to: Optional[str] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
