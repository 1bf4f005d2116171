"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tidings.events import ActivityEvent, encode_event, to_transport
from tidings.notifications import (
    NotificationRecord,
    dispose_store_connections,
    init_notification_storage,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


class FetchRecordsFn(typ.Protocol):
    """Callable fixture returning stored notification records."""

    def __call__(
        self, delivery_id: str | None = None
    ) -> cabc.Awaitable[list[NotificationRecord]]:
        """Load records, optionally filtered by delivery id."""
        ...


@pytest.fixture(autouse=True)
def _reset_store_cache() -> typ.Iterator[None]:
    """Dispose cached store engines after every test."""
    yield
    asyncio.run(dispose_store_connections())


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tidings_test.db'}")
    try:
        await init_notification_storage(engine)
    except Exception:
        await engine.dispose()
        raise

    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """Return a sqlite URL for a store that does not exist yet."""
    return f"sqlite+aiosqlite:///{tmp_path / 'tidings_store.db'}"


@pytest.fixture
def unreachable_database_url(tmp_path: Path) -> str:
    """Return a sqlite URL whose parent directory does not exist."""
    return f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nested' / 'store.db'}"


@pytest.fixture
def fetch_records(database_url: str) -> FetchRecordsFn:
    """Return a loader for records stored at ``database_url``."""

    async def _fetch(delivery_id: str | None = None) -> list[NotificationRecord]:
        engine = create_async_engine(database_url)
        try:
            await init_notification_storage(engine)
            async with async_sessionmaker(engine)() as session:
                stmt = select(NotificationRecord)
                if delivery_id is not None:
                    stmt = stmt.where(NotificationRecord.delivery_id == delivery_id)
                return list((await session.scalars(stmt)).all())
        finally:
            await engine.dispose()

    return _fetch


@pytest.fixture
def activity_event() -> ActivityEvent:
    """Return the canonical click event used across tests."""
    return ActivityEvent(
        user_id="user_123",
        event_type="click",
        payload={"page": "home"},
    )


@pytest.fixture
def encoded_event(activity_event: ActivityEvent) -> str:
    """Return ``activity_event`` as the transport text a publisher sends."""
    return to_transport(encode_event(activity_event))
