"""Query/transaction gateway around the relational store.

A :class:`Database` owns one async engine and its connection pool. It is built
once at startup, handed to whoever needs the store, and disposed explicitly at
shutdown. Store-native failures never leave this module raw: they are passed
through :func:`classify_store_error` and re-raised as typed ``DaybookError``
subclasses.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Result
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from daybook.config import Settings, get_settings
from daybook.errors import (
    DaybookError,
    DuplicateVersionError,
    ResourceExhaustedError,
    StoreError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _sqlstate(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def is_unique_violation(exc: BaseException) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    if _sqlstate(exc) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    # Drivers without SQLSTATE (sqlite) only report it in the message.
    return "unique" in str(exc.orig).lower()


def classify_store_error(exc: BaseException) -> DaybookError:
    """Translate a store-native exception into the typed error taxonomy."""
    if isinstance(exc, DaybookError):
        return exc
    if isinstance(exc, PoolTimeoutError):
        return ResourceExhaustedError(detail=str(exc))
    if is_unique_violation(exc):
        return DuplicateVersionError(detail=str(getattr(exc, "orig", exc)))
    if isinstance(exc, (OperationalError, InterfaceError, ConnectionError, OSError)):
        return StoreUnavailableError(detail=str(exc))
    return StoreError(detail=str(exc))


@contextmanager
def translate_store_errors() -> Iterator[None]:
    try:
        yield
    except DaybookError:
        raise
    except (SQLAlchemyError, OSError) as exc:
        error = classify_store_error(exc)
        logger.warning("Store error classified as %s: %s", type(error).__name__, exc)
        raise error from exc


class Database:
    """Owned engine plus the two primitives the version lifecycle needs."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Database:
        settings = settings or get_settings()
        engine = create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
            pool_recycle=settings.db_pool_recycle_seconds,
            pool_pre_ping=True,
        )
        return cls(engine)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def execute(self, statement: Any) -> Result:
        """Run one statement in its own short transaction and return a buffered result."""
        started = time.perf_counter()
        with translate_store_errors():
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(statement)
        logger.debug("Query executed in %.1fms", (time.perf_counter() - started) * 1000)
        return result

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Run a block on one connection; commit on success, roll back on any failure."""
        started = time.perf_counter()
        with translate_store_errors():
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        logger.debug("Transaction committed in %.1fms", (time.perf_counter() - started) * 1000)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session for read paths; nothing is committed."""
        with translate_store_errors():
            async with self._session_factory() as session:
                yield session

    async def applied_revisions(self) -> set[str]:
        """Revisions recorded in the alembic_version table."""
        result = await self.execute(text("SELECT version_num FROM alembic_version"))
        return {str(row[0]) for row in result.fetchall() if row[0]}

    async def ping(self) -> None:
        await self.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self._engine.dispose()
        logger.info("Database pool closed")
