# backend/propertysales/db/db_connection.py
from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker

from propertysales.core.settings import Settings

logger = logging.getLogger(__name__)


def _engine_kwargs(settings: Settings, url: URL) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() != "postgresql":
        return kwargs

    # bounded pool: acquisition waits at most pool_timeout seconds
    kwargs.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )
    if settings.DB_SSL:
        if url.get_driver_name() == "asyncpg":
            kwargs["connect_args"] = {"ssl": "require"}
        else:
            kwargs["connect_args"] = {"sslmode": "require"}
    return kwargs


class Database:
    """Async engine + session factory for the web app.

    Built once in the application lifespan and disposed on shutdown.
    """

    def __init__(self, settings: Settings) -> None:
        url = settings.database_url(async_=True)
        self.engine: AsyncEngine = create_async_engine(url, **_engine_kwargs(settings, url))
        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(
            "database engine ready backend=%s host=%s db=%s",
            url.get_backend_name(), url.host, url.database,
        )

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


# ---- sync engine (import script / alembic) ----
def create_sync_engine(settings: Settings) -> Engine:
    url = settings.database_url(async_=False)
    return create_engine(url, **_engine_kwargs(settings, url))


def sync_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
