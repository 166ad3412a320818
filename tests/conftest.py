"""Shared test fixtures."""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["JWT_SECRET"] = "voltline-test-secret-with-enough-entropy"
os.environ["API_RETRIES"] = "0"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import voltline.models  # noqa: E402,F401
from voltline.db.base import Base  # noqa: E402
from voltline.db.session import get_db  # noqa: E402
from voltline.schemas.notification import NotificationOut  # noqa: E402
from voltline.services.auth import create_access_token  # noqa: E402

BASE_TIME = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(session_factory):
    from voltline.main import app as _app

    async def _get_db():
        async with session_factory() as session:
            yield session

    _app.dependency_overrides[get_db] = _get_db
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def admin_token() -> str:
    return create_access_token("admin-1", roles=["admin"], email="ops@voltline.test", name="Ops Desk")


@pytest.fixture
async def client(app, admin_token):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {admin_token}"},
    ) as ac:
        yield ac


@pytest.fixture
def make_notification():
    def _make(
        notification_id: str,
        *,
        minutes: float = 0,
        priority: str = "medium",
        is_read: bool = False,
        notification_type: str = "form_submission",
        action_url: str | None = None,
        timestamp: datetime | None = None,
    ) -> NotificationOut:
        return NotificationOut(
            id=notification_id,
            type=notification_type,
            title=f"Notification {notification_id}",
            message=f"Body of {notification_id}",
            priority=priority,
            is_read=is_read,
            timestamp=timestamp or BASE_TIME + timedelta(minutes=minutes),
            action_url=action_url,
        )

    return _make
