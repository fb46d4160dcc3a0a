"""
Database Configuration.

SQLAlchemy async engine, session management and the scoped transaction.

A write transaction is a unit of work: every statement inside the
`async with database.transaction()` block commits together or not at all.
Only after a successful commit are the touched tables reported to the
change notifier, so live queries never observe a partial transaction.

Write transactions are serialized through an asyncio lock; SQLite allows a
single writer and this keeps concurrent callers from seeing "database is
locked" errors. Single-query reads use their own short-lived sessions and
never wait on the lock; snapshot() takes it to keep a multi-query read
consistent.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from jotter.core.logging import get_logger
from jotter.events.notifier import ChangeNotifier
from jotter.models.base import Base

logger = get_logger(__name__)

_CHANGED_TABLES = "changed_tables"


def mark_changed(session: AsyncSession, *tables: str) -> None:
    """Record that the current transaction wrote to the given tables."""
    session.info.setdefault(_CHANGED_TABLES, set()).update(tables)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the engine, the session factory and the change notifier.

    Usage:
        database = Database("sqlite+aiosqlite:///notes.db")
        await database.create_all()

        async with database.transaction() as session:
            session.add(note)
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self.url = url
        self.notifier = notifier or ChangeNotifier()
        self._engine: AsyncEngine = create_async_engine(url, echo=echo)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._write_lock = asyncio.Lock()
        logger.debug("Database engine created", extra={"dialect": self._engine.dialect.name})

    @classmethod
    def from_config(cls) -> "Database":
        """Create a database from database.yaml and JOTTER_DATABASE_URL."""
        from jotter.core.config import get_app_config, get_database_url

        url = get_database_url()
        if url.startswith("sqlite+aiosqlite:///") and ":memory:" not in url:
            from pathlib import Path

            Path(url.removeprefix("sqlite+aiosqlite:///")).parent.mkdir(parents=True, exist_ok=True)
        return cls(url, echo=get_app_config().database.echo)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_all(self) -> None:
        """Create any missing tables."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Scoped write transaction.

        Commits on normal exit, rolls back if the block raises, and
        publishes the touched tables to the notifier after the commit.
        """
        async with self._write_lock:
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
                changed: Iterable[str] = session.info.pop(_CHANGED_TABLES, set())

        if changed:
            await self.notifier.publish(frozenset(changed))

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[AsyncSession]:
        """
        Read session for point-in-time, multi-query reads.

        Holds the write lock for the duration of the block, so a full backup
        export sees one consistent state even while other writes are queued.
        Must not be nested inside transaction().
        """
        async with self._write_lock:
            async with self._session_factory() as session:
                yield session

    @asynccontextmanager
    async def read(self) -> AsyncIterator[AsyncSession]:
        """Short-lived read session for a single query."""
        async with self._session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self._engine.dispose()
        logger.debug("Database engine disposed")
