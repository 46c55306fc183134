from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from auralog.db.database import Base, get_db
from auralog.main import app
from auralog.models import StaticQuote

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def session_factory():
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def test_health():
    async with _client() as ac:
        resp = await ac.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_list_quotes_in_rotation_order(session_factory):
    async with session_factory() as session:
        session.add_all(
            [
                StaticQuote(text="Sent last week", last_sent_date=datetime(2026, 3, 3, 9, 0)),
                StaticQuote(text="Never sent", author="Unknown"),
                StaticQuote(text="Sent long ago", last_sent_date=datetime(2026, 1, 1, 9, 0)),
            ]
        )
        await session.commit()

    async with _client() as ac:
        resp = await ac.get("/api/quotes")

    assert resp.status_code == 200
    assert [q["text"] for q in resp.json()] == ["Never sent", "Sent long ago", "Sent last week"]
    assert resp.json()[0]["author"] == "Unknown"
    assert resp.json()[0]["last_sent_date"] is None


@patch("auralog.api.admin.run_daily_reminders")
async def test_send_now_runs_test_mode_tick(mock_run):
    mock_run.return_value = 3

    async with _client() as ac:
        resp = await ac.post("/api/admin/send-now")

    assert resp.status_code == 200
    assert resp.json() == {"attempted": 3}
    mock_run.assert_called_once_with(test_mode=True)


async def test_admin_status_without_scheduler():
    async with _client() as ac:
        resp = await ac.get("/api/admin/status")

    assert resp.status_code == 200
    assert resp.json()["scheduler_running"] is False
    assert resp.json()["jobs"] == []
    assert resp.json()["interval_minutes"] == 15
    assert {"push_configured", "ai_quotes_configured"} <= resp.json().keys()


@patch("auralog.api.admin.get_settings")
async def test_admin_requires_key_in_production(mock_settings):
    mock_settings.return_value = MagicMock(is_production=True, admin_api_key="secret")

    async with _client() as ac:
        missing = await ac.post("/api/admin/send-now")
        wrong = await ac.get("/api/admin/status", headers={"X-Admin-Key": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


@patch("auralog.api.admin.get_settings")
async def test_admin_unconfigured_in_production(mock_settings):
    mock_settings.return_value = MagicMock(is_production=True, admin_api_key="")

    async with _client() as ac:
        resp = await ac.get("/api/quotes")

    assert resp.status_code == 503


@patch("auralog.api.admin.run_daily_reminders")
@patch("auralog.api.admin.get_settings")
async def test_admin_accepts_valid_key(mock_settings, mock_run):
    mock_settings.return_value = MagicMock(is_production=True, admin_api_key="secret")
    mock_run.return_value = 0

    async with _client() as ac:
        resp = await ac.post("/api/admin/send-now", headers={"X-Admin-Key": "secret"})

    assert resp.status_code == 200
