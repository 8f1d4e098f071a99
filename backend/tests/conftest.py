"""Shared test fixtures."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Ensure mock auth is on and nothing reaches a real database
os.environ.setdefault("AUTH_MOCK", "true")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import cherrycap.models  # noqa: E402,F401
from cherrycap.core.dependencies import get_rate_limiter, get_session_factory  # noqa: E402
from cherrycap.core.security import create_mock_access_token  # noqa: E402
from cherrycap.db.base import Base  # noqa: E402
from cherrycap.main import app  # noqa: E402
from cherrycap.services.rate_limit import DEFAULT_RATE_LIMITS, RateLimiter  # noqa: E402
from tests.helpers import FakeClock  # noqa: E402

# 2023-11-14T22:13:20Z, a Tuesday
CLOCK_START_MS = 1_700_000_000_000


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database file per test, schema created from the models."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Controllable epoch-ms clock wired into the tracking and analytics services."""
    fake = FakeClock(CLOCK_START_MS)
    monkeypatch.setattr("cherrycap.services.tracking.now_ms", fake)
    monkeypatch.setattr("cherrycap.services.analytics.now_ms", fake)
    return fake


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(DEFAULT_RATE_LIMITS, clock=clock)


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    rate_limiter: RateLimiter,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client for the FastAPI app, bound to the per-test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


def make_token(sub: str = "test-sub", email: str = "test@example.com") -> str:
    """Generate a mock JWT for testing."""
    return create_mock_access_token(sub=sub, email=email)


def auth_headers(sub: str = "test-sub", email: str = "test@example.com") -> dict:
    """Return Authorization headers with a mock JWT."""
    token = make_token(sub=sub, email=email)
    return {"Authorization": f"Bearer {token}"}
