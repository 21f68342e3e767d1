from __future__ import annotations

import os

# Settings are read once and cached; these must exist before mcn_admin is imported.
os.environ.setdefault("MCN_ADMIN_APP_SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("MCN_ADMIN_DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MCN_ADMIN_DASHBOARD_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("MCN_ADMIN_APP_DEBUG", "false")

import pytest_asyncio  # noqa: E402

import mcn_admin.models  # noqa: E402,F401
from mcn_admin.core.database import Database  # noqa: E402


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite://")
    db.connect()
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as db_session:
        yield db_session
