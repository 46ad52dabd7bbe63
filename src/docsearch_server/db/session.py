"""
Database Session Management

Async SQLAlchemy engine and session factory for PostgreSQL.

- ``get_async_session``: one session per HTTP request (FastAPI dependency)
- ``session_scope``: one session per unit of work outside a request (scripts)
- ``create_schema``: create tables, the full-text index table included
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)

from ..config import settings

logger = logging.getLogger("docsearch.db")


async_engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Commits when the endpoint returns normally and
    rolls back if it raises, so a failed upload or rebuild leaves nothing
    half-written.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Session for work outside a request. Same commit/rollback contract as
    ``get_async_session``.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.error("Rolling back database session after error")
            await session.rollback()
            raise


async def create_schema() -> None:
    """
    Create all tables if they do not exist yet.
    """
    from .models import Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
