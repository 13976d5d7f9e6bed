# backend/propertysales/api/deps.py
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, TypeVar

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from propertysales.core.errors import QueryTimeoutError
from propertysales.core.settings import Settings
from propertysales.db.db_connection import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DISCONNECT_POLL_SECONDS = 0.25


class ClientDisconnected(Exception):
    """The caller went away before the query finished."""


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """One session per request; closed (connection back to the pool) on every exit path."""
    db: Database = request.app.state.db
    async with db.sessionmaker() as session:
        yield session


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(_DISCONNECT_POLL_SECONDS)


async def run_bounded(request: Request, work: Awaitable[T], *, timeout: float) -> T:
    """Await ``work`` within ``timeout`` seconds.

    Timeout -> QueryTimeoutError, client disconnect -> ClientDisconnected.
    Either way the work is cancelled and awaited before returning, so the
    caller's session can be closed safely.
    """
    work_task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        done, _ = await asyncio.wait(
            {work_task, watcher}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        pending = [t for t in (work_task, watcher) if not t.done()]
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    if work_task in done:
        return work_task.result()
    if watcher in done:
        logger.info("client disconnected: %s %s", request.method, request.url.path)
        raise ClientDisconnected()
    raise QueryTimeoutError(f"Request exceeded {timeout:g}s")
