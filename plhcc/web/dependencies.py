"""Shared dependencies for PLH Command Center web routes.

Every data route is scoped to the caller's user id, taken from the
``X-User-Id`` header. Requests without it are rejected with 401 before any
query runs.

Usage:
    from fastapi import Depends
    from plhcc.web.dependencies import get_repository

    @router.get("/things")
    async def things(repository: Repository = Depends(get_repository)):
        ...
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from plhcc.core.change_log import ChangeLogger
from plhcc.db import connection
from plhcc.db.repository import Repository


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return connection.get_session_factory()


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return x_user_id.strip()


def get_repository(
    user_id: str = Depends(get_current_user_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> Repository:
    return Repository(session_factory, user_id)


def get_change_logger(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ChangeLogger:
    return ChangeLogger(session_factory)
