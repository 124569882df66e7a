"""Pytest configuration and fixtures for PLH Command Center tests.

Provides a throwaway SQLite database per test plus repository helpers.
"""

from __future__ import annotations

import os

# Config is read lazily by parser / importer / export code
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./plhcc-test.db")

from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from plhcc.config import reset_config
from plhcc.core.change_log import ChangeLogger
from plhcc.db.models import Base
from plhcc.db.repository import Repository

TEST_USER = "user-1"
OTHER_USER = "user-2"


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture(autouse=True)
def fresh_config():
    """Re-read the environment for every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


@pytest_asyncio.fixture()
async def session_factory(tmp_path: Path) -> async_sessionmaker[AsyncSession]:
    """File-backed SQLite so concurrent sessions see the same data."""
    engine = create_async_engine(sqlite_url(tmp_path / "plhcc.db"), poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def repository(session_factory) -> Repository:
    return Repository(session_factory, TEST_USER)


@pytest.fixture
def change_logger(session_factory) -> ChangeLogger:
    return ChangeLogger(session_factory)
