"""
tests/conftest.py -- Shared test fixtures for Rolegate unit and integration tests.

This module provides:
  - _make_test_engine(): bounded engine over an isolated in-memory SQLite DB
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus an administrator token for API integration tests
  - engine / user_store / rbac / token_service: per-test unit fixtures

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers (and the gate) in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
pooled connection. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
A uuid suffix keeps every engine's database private.

JWT_SECRET must be set before any api/ import: api/main.py reads settings at
import time for the CORS middleware, and a missing secret is a hard failure.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set the environment before any api/auth/core import.
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.bootstrap import ensure_admin
from auth.models import User
from auth.rbac import RBACRepository
from auth.store import UserStore
from auth.tokens import TokenService, hash_password
from core.config import get_settings
from core.database import create_db_engine
from items.store import ItemStore

# Fixed "now" for unit tests that need exact expiry boundaries.
FIXED_NOW = 1_700_000_000

ADMIN_USERNAME = "testadmin"
ADMIN_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_engine(db_suffix: str, pool_size: int = 5, pool_timeout: float = 5.0) -> Engine:
    """Create an engine over a private named shared-memory SQLite database.

    Args:
        db_suffix: Label for the DB name (e.g. 'api', 'unit'). A uuid is
                   appended so no two engines ever share state.
    """
    url = f"sqlite:///file:test_rolegate_{db_suffix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    return create_db_engine(url, pool_size=pool_size, pool_timeout=pool_timeout)


def _patch_lifespan(engine: Engine, user_store: UserStore, rbac: RBACRepository, items: ItemStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see the
    isolated test DB rather than DATABASE_URL.
    """
    settings = get_settings()

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.engine = engine
        app.state.token_service = TokenService(settings.secret_key, settings.token_expire_seconds)
        app.state.user_store = user_store
        app.state.rbac = rbac
        app.state.items = items
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, the real gate and the real error handlers, but an
    isolated in-memory store. The user is provisioned with ensure_admin(), so
    the token holds the admin permission (and nothing else).
    """
    settings = get_settings()
    engine = _make_test_engine("api")
    user_store = UserStore(engine)
    rbac = RBACRepository(engine)
    items = ItemStore(engine)

    uid = ensure_admin(
        user_store,
        rbac,
        ADMIN_USERNAME,
        ADMIN_PASSWORD,
        settings.admin_permission,
        settings.bcrypt_rounds,
    )
    token = TokenService(settings.secret_key).issue(uid, ttl=3600)

    app.router.lifespan_context = _patch_lifespan(engine, user_store, rbac, items)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    engine.dispose()


# ---------------------------------------------------------------------------
# Unit fixtures -- fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = _make_test_engine("unit")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def rbac(engine: Engine, user_store: UserStore) -> RBACRepository:
    return RBACRepository(engine)


@pytest.fixture
def make_user(user_store: UserStore) -> Callable[..., int]:
    """Factory: make_user("alice") inserts a user and returns its id."""

    def _make(username: str, password: str = "pw-123456") -> int:
        return user_store.create_user(User(username=username, hashed_password=hash_password(password, rounds=4)))

    return _make


@pytest.fixture
def token_service() -> TokenService:
    """TokenService with a frozen clock at FIXED_NOW."""
    return TokenService(get_settings().secret_key, default_ttl_seconds=3600, clock=lambda: FIXED_NOW)
