"""
tests/conftest.py -- Shared test fixtures for the Judgment Notes API.

This module provides:
  - engine / user_store / judgment_store: a migrated in-memory SQLite DB per test
  - _make_test_engine(): isolated named shared-memory DB with migrations applied
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient with an admin JWT for API integration tests
  - make_user(): helper that creates an account and returns (user, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixtures because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

The real migrations/ directory is applied to every test DB, so the tests
exercise the same DDL production runs.

DEBUG and RATE_LIMIT_ENABLED must be set before any app import: get_settings()
auto-generates SECRET_KEY in dev mode rather than raising, and the limiter
reads its enabled flag at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.config import get_settings
from core.database import make_engine
from core.migrate import run_migrations
from judgments.store import JudgmentStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_engine(db_suffix: str) -> Engine:
    """Create a named shared-memory SQLite engine and apply all migrations.

    Args:
        db_suffix: Unique string appended to the DB name so tests don't share
                   state.
    """
    url = f"sqlite:///file:test_judgmentnotes_{db_suffix}?mode=memory&cache=shared&uri=true"
    engine = make_engine(url)
    run_migrations(engine, get_settings().migrations_dir)
    return engine


def _patch_lifespan(engine: Engine, user_store: UserStore, judgment_store: JudgmentStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see the
    isolated test DB rather than DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.user_store = user_store
        app.state.judgment_store = judgment_store
        yield

    return test_lifespan


def make_user(
    store: UserStore,
    email: str,
    password: str = "secret1",
    role: Role = Role.user,
    name: str = "Test User",
) -> tuple[User, str]:
    """Insert an account directly through the store and mint a token for it."""
    user = store.create_user(User(email=email, name=name, role=role, hashed_password=hash_password(password)))
    return user, create_access_token(user)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Unit-test fixtures -- fresh DB per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = _make_test_engine(uuid.uuid4().hex)
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def judgment_store(engine: Engine) -> JudgmentStore:
    return JudgmentStore(engine)


# ---------------------------------------------------------------------------
# Integration fixture -- real app, isolated DB
# ---------------------------------------------------------------------------


@pytest.fixture
def api_client(engine: Engine, user_store: UserStore, judgment_store: JudgmentStore):
    """Yield (client, admin_token, admin_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, middleware and exception handlers against an
    isolated in-memory DB. An admin account (admin@example.com / adminpass1)
    exists before the client starts. user_store and judgment_store fixtures
    point at the same DB, so tests can inspect state directly.
    """
    admin, token = make_user(user_store, "admin@example.com", "adminpass1", Role.admin, "Admin")

    app.router.lifespan_context = _patch_lifespan(engine, user_store, judgment_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, admin.id
