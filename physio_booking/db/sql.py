# physio_booking/db/sql.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from physio_booking.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """
    Build the async engine on first use so importing the app never needs a
    reachable database (or an installed driver).
    """
    kwargs = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if not settings.SQL_DSN.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return create_async_engine(settings.SQL_DSN, **kwargs)


@lru_cache(maxsize=1)
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=get_engine(),
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commit on success, rollback on any error (the error is re-raised).
    """
    action = f"{request.method} {request.url.path}"

    async with get_sessionmaker()() as session:
        try:
            yield session
            await session.commit()
            logger.debug("%s COMMIT", action)
        except Exception as exc:
            await session.rollback()
            logger.warning("%s ROLLBACK: %s", action, exc)
            raise


async def ping_db() -> str | None:
    """
    SELECT 1 and return the server version (None for engines without SHOW).
    """
    async with get_sessionmaker()() as session:
        await session.execute(text("SELECT 1"))
        if session.bind.dialect.name != "postgresql":
            return None
        result = await session.execute(text("SHOW server_version"))
        return result.scalar_one_or_none()


async def init_db(drop: bool = False) -> None:
    """
    Create (optionally recreate) all tables registered on Base.metadata.
    """
    from physio_booking.db.base import Base
    # Import all models here so they get registered
    from physio_booking import models  # noqa: F401

    async with get_engine().begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
