"""
tests/conftest.py -- Shared test fixtures for TaskGuard.

This module provides:
  - anyio_backend: runs @pytest.mark.anyio tests on asyncio only
  - db_url: a fresh named shared-memory SQLite URL per test
  - account_service / task_service: use-case objects over isolated stores
  - _patch_lifespan(): wires test services into app.state, bypassing real startup
  - api_client: TestClient plus an admin token and a member token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because use cases run store calls in worker threads (core/scope.py) and
TestClient runs the app in its own thread. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG must be set before any core/auth import so get_settings() auto-generates
SECRET_KEY. ALLOWED_HOSTS must include "testserver" (TestClient's Host header)
before api.main is imported, because TrustedHostMiddleware is configured at
import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/auth/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import anyio
import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.accounts import AccountService
from auth.passwords import PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import get_settings
from tasks.service import TaskService
from tasks.store import TaskStore

# bcrypt's minimum cost keeps the suite fast.
TEST_BCRYPT_ROUNDS = 4
TEST_TIMEOUT = 10.0

ADMIN_USERNAME = "testadmin"
ADMIN_PASSWORD = "testpass123"
MEMBER_USERNAME = "testmember"
MEMBER_PASSWORD = "memberpass123"


def _memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def db_url() -> str:
    """A database URL no other test shares."""
    return _memory_url("test")


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture(scope="session")
def token_service() -> TokenService:
    return TokenService(get_settings().secret_key)


@pytest.fixture
def account_store(db_url: str) -> Generator[AccountStore, None, None]:
    store = AccountStore(db_url)
    yield store
    store.close()


@pytest.fixture
def account_service(
    account_store: AccountStore, hasher: PasswordHasher, token_service: TokenService
) -> AccountService:
    return AccountService(account_store, hasher, token_service, timeout=TEST_TIMEOUT)


@pytest.fixture
def task_service() -> Generator[TaskService, None, None]:
    store = TaskStore(_memory_url("test_tasks"))
    yield TaskService(store, timeout=TEST_TIMEOUT)
    store.close()


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------


def _patch_lifespan(
    account_store: AccountStore,
    task_store: TaskStore,
    accounts: AccountService,
    tasks: TaskService,
    tokens: TokenService,
):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test services into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.account_store = account_store
        app.state.task_store = task_store
        app.state.token_service = tokens
        app.state.accounts = accounts
        app.state.tasks = tasks
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(hasher: PasswordHasher, token_service: TokenService) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, member_token) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, middleware and exception handlers over isolated
    in-memory stores. The admin is the first account created, so the
    bootstrap rule makes it administrator; the second account is a member.
    """
    account_store = AccountStore(_memory_url("test_api_auth"))
    task_store = TaskStore(_memory_url("test_api_tasks"))
    accounts = AccountService(account_store, hasher, token_service, timeout=TEST_TIMEOUT)
    tasks = TaskService(task_store, timeout=TEST_TIMEOUT)

    admin = anyio.run(accounts.create_account, ADMIN_USERNAME, ADMIN_PASSWORD)
    member = anyio.run(accounts.create_account, MEMBER_USERNAME, MEMBER_PASSWORD)
    admin_token = token_service.issue(admin)
    member_token = token_service.issue(member)

    app.router.lifespan_context = _patch_lifespan(account_store, task_store, accounts, tasks, token_service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, admin_token, member_token

    account_store.close()
    task_store.close()
