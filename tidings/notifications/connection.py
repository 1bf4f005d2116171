"""Process-wide cache of notification store connections.

Engines are expensive and hold the connection pool, so the consumer keeps one
per database URL for the whole process and reuses it across deliveries. The
first delivery that uses a URL also verifies connectivity and creates the
notification table; if that fails the engine is evicted again so the next
delivery starts from scratch.

Both steps are single-flight. Exactly one caller builds the engine and
exactly one caller verifies it; concurrent first users on other worker
threads wait for that verification and share its result.

Usage
-----
Resolve a session factory inside a delivery::

    session_factory = await connect_store(database_url, timeout=10.0)

Tear everything down on shutdown::

    await dispose_store_connections()

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tidings.config import DEFAULT_STORE_TIMEOUT_SECONDS
from tidings.logging import get_logger, log_error, log_info
from tidings.notifications.errors import StoreConnectionError
from tidings.notifications.storage import init_notification_storage

type SessionFactory = async_sessionmaker[AsyncSession]

__all__ = [
    "SessionFactory",
    "connect_store",
    "dispose_store_connections",
    "mask_database_url",
]

logger = get_logger(__name__)

_ENGINE_CACHE: dict[str, AsyncEngine] = {}
_SESSION_FACTORY_CACHE: dict[str, SessionFactory] = {}
_VERIFIED_URLS: set[str] = set()
_PENDING_VERIFICATIONS: dict[str, threading.Event] = {}
_CACHE_LOCK = threading.Lock()


class _Claim(typ.NamedTuple):
    """What a caller must do next for one URL."""

    session_factory: SessionFactory
    engine: AsyncEngine | None
    pending: threading.Event | None


def mask_database_url(database_url: str) -> str:
    """Return *database_url* with any password hidden."""
    try:
        return make_url(database_url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable database url>"


def _ensure_session_factory_locked(database_url: str) -> SessionFactory:
    """Return the cached session factory, creating engine and factory if absent.

    Precondition: the caller **must** hold ``_CACHE_LOCK``.
    """
    if database_url not in _SESSION_FACTORY_CACHE:
        engine = create_async_engine(database_url)
        _ENGINE_CACHE[database_url] = engine
        _SESSION_FACTORY_CACHE[database_url] = async_sessionmaker(
            engine, expire_on_commit=False
        )
    return _SESSION_FACTORY_CACHE[database_url]


def _claim(database_url: str) -> _Claim:
    """Single-flight lookup for *database_url*.

    Returns one of three claims:

    - ``engine`` and ``pending`` both ``None``: already verified, use the
      factory.
    - ``engine`` set: this caller owns verification and must call
      :func:`_release` with ``pending`` when done.
    - only ``pending`` set: another caller is verifying; wait on it.
    """
    with _CACHE_LOCK:
        session_factory = _ensure_session_factory_locked(database_url)
        if database_url in _VERIFIED_URLS:
            return _Claim(session_factory, None, None)

        pending = _PENDING_VERIFICATIONS.get(database_url)
        if pending is not None:
            return _Claim(session_factory, None, pending)

        pending = threading.Event()
        _PENDING_VERIFICATIONS[database_url] = pending
        return _Claim(session_factory, _ENGINE_CACHE[database_url], pending)


def _release(database_url: str, pending: threading.Event) -> None:
    with _CACHE_LOCK:
        if _PENDING_VERIFICATIONS.get(database_url) is pending:
            del _PENDING_VERIFICATIONS[database_url]
    pending.set()


def _evict(database_url: str, engine: AsyncEngine) -> AsyncEngine | None:
    """Forget *engine* unless a newer one has replaced it in the cache."""
    with _CACHE_LOCK:
        if _ENGINE_CACHE.get(database_url) is not engine:
            return None
        _VERIFIED_URLS.discard(database_url)
        _SESSION_FACTORY_CACHE.pop(database_url, None)
        return _ENGINE_CACHE.pop(database_url)


async def _verify(engine: AsyncEngine, timeout: float) -> None:
    async with asyncio.timeout(timeout):
        await init_notification_storage(engine)


async def _verify_owned(
    database_url: str, engine: AsyncEngine, pending: threading.Event, timeout: float
) -> None:
    masked = mask_database_url(database_url)
    try:
        await _verify(engine, timeout)
    except (OSError, SQLAlchemyError, TimeoutError) as exc:
        log_error(logger, "Notification store %s unreachable: %s", masked, exc)
        stale = _evict(database_url, engine)
        if stale is not None:
            await stale.dispose()
        raise StoreConnectionError(masked) from exc
    else:
        with _CACHE_LOCK:
            if _ENGINE_CACHE.get(database_url) is engine:
                _VERIFIED_URLS.add(database_url)
        log_info(logger, "Connected to notification store %s", masked)
    finally:
        _release(database_url, pending)


async def _await_verification(
    database_url: str, pending: threading.Event, timeout: float
) -> SessionFactory:
    masked = mask_database_url(database_url)
    finished = await asyncio.to_thread(pending.wait, timeout)
    if not finished:
        log_error(logger, "Timed out waiting for store %s verification", masked)
        raise StoreConnectionError(masked) from TimeoutError()

    with _CACHE_LOCK:
        verified = database_url in _VERIFIED_URLS
        session_factory = _SESSION_FACTORY_CACHE.get(database_url)
    if not verified or session_factory is None:
        raise StoreConnectionError(masked)
    return session_factory


async def connect_store(
    database_url: str,
    *,
    timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
) -> SessionFactory:
    """Return the shared session factory for *database_url*.

    Parameters
    ----------
    database_url
        SQLAlchemy async URL of the notification store.
    timeout
        Seconds allowed for the first-use connectivity check, or for waiting
        on another caller's check.

    Returns
    -------
    SessionFactory
        Session factory bound to the cached engine.

    Raises
    ------
    StoreConnectionError
        If the engine cannot be built, the store cannot be reached, or the
        check does not finish within *timeout*. Callers waiting on a check
        that fails get the same error.

    """
    try:
        claim = _claim(database_url)
    except (SQLAlchemyError, ImportError) as exc:
        masked = mask_database_url(database_url)
        log_error(logger, "Cannot build engine for %s: %s", masked, exc)
        raise StoreConnectionError(masked) from exc

    if claim.pending is None:
        return claim.session_factory
    if claim.engine is None:
        return await _await_verification(database_url, claim.pending, timeout)

    await _verify_owned(database_url, claim.engine, claim.pending, timeout)
    return claim.session_factory


async def dispose_store_connections() -> None:
    """Dispose every cached engine and forget all session factories."""
    with _CACHE_LOCK:
        engines = list(_ENGINE_CACHE.values())
        _ENGINE_CACHE.clear()
        _SESSION_FACTORY_CACHE.clear()
        _VERIFIED_URLS.clear()

    for engine in engines:
        await engine.dispose()
