"""
tests/conftest.py -- Shared test fixtures for TaskDesk.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + tasks
  - _patch_lifespan(): wires test stores and services into app.state
  - api_client: TestClient against the real app with isolated stores
  - user_store / task_store / auth_service / task_service: unit-test fixtures

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient fixtures because route handlers run in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Unit-test fixtures call the services from the test
thread only, so plain :memory: is fine there.

Environment must be set before any app import: DEBUG lets get_settings()
auto-generate SECRET_KEY, BCRYPT_ROUNDS=4 keeps hashing fast, and the
signup/login rate limit is switched off so many tests can log in.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import -- get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import UserStore
from tasks.service import TaskService
from tasks.store import TaskStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, TaskStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_taskdesk_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), TaskStore(db_url=url)


def _patch_lifespan(user_store: UserStore, task_store: TaskStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.task_store = task_store
        app.state.auth_service = AuthService(user_store)
        app.state.task_service = TaskService(task_store)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient for API integration tests.

    One client (and one pair of in-memory stores) per test module. Tests
    create their own accounts via the signup_headers fixture.
    """
    user_store, task_store = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(user_store, task_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    task_store.close()
    user_store.close()


@pytest.fixture
def signup_headers(api_client: TestClient):
    """Return a factory that signs up a fresh account and yields its Authorization header."""

    def _signup(email: str | None = None, password: str = "secret123") -> dict[str, str]:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        resp = api_client.post("/auth/signup", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['accessToken']}"}

    return _signup


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def task_store() -> Generator[TaskStore, None, None]:
    store = TaskStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def auth_service(user_store: UserStore) -> AuthService:
    return AuthService(user_store)


@pytest.fixture
def task_service(task_store: TaskStore) -> TaskService:
    return TaskService(task_store)
