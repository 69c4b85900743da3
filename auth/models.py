"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors tasks/models.py
-- dataclasses own domain shape; stores and services do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    email is stored exactly as submitted; lookups are case-sensitive.
    hashed_password is the bcrypt digest -- the plaintext is never kept.
    id is None before the record is written to the database.
    """

    email: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The caller behind a verified bearer token.

    Built from token claims alone (sub, email). No store lookup happens at
    request time, so an Identity exists for as long as its token is valid.
    """

    user_id: str
    email: str
