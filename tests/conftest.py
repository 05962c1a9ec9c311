"""
tests/conftest.py -- Shared fixtures for the back-office test suite.

This module provides:
  - FakeClock / clock: a controllable UTC clock injected into the token
    issuer and the session, so expiry and idle-timeout tests never sleep
  - user_store / ops_store: fresh in-memory SQLite stores per test
  - auth: an AuthService over user_store with the default roles and the
    demo accounts (password "password123") already registered

Design: plain "sqlite:///:memory:" is safe here because
core.database.create_store_engine pins in-memory databases to one
connection (StaticPool), so worker threads started by asyncio.to_thread
see the same schema.
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest

from auth.service import AuthService
from auth.session import SessionState
from auth.store import UserStore
from auth.tokens import TokenIssuer
from console.seed import seed_demo_users
from operations.store import OperationsStore

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars-long"
MEMORY_URL = "sqlite:///:memory:"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def jwt_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def issuer(clock: FakeClock) -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, expiration_ms=86_400_000, clock=clock)


@pytest.fixture
def session(clock: FakeClock) -> SessionState:
    return SessionState(timeout_ms=1_800_000, clock=clock)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(MEMORY_URL)
    yield store
    store.close()


@pytest.fixture
def ops_store() -> Generator[OperationsStore, None, None]:
    store = OperationsStore(MEMORY_URL)
    yield store
    store.close()


@pytest.fixture
def auth(user_store: UserStore, issuer: TokenIssuer, session: SessionState) -> AuthService:
    """AuthService with roles admin/manager/staff/kitchen and users admin, manager1, staff1, kitchen1."""
    service = AuthService(user_store, issuer, session)
    seed_demo_users(service)
    return service
