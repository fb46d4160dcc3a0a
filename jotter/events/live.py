"""
Live Queries.

A LiveQuery is a reusable handle on a query whose result is pushed to
subscribers whenever a committed transaction touches one of the tables
it reads. Readers never poll.

Usage:
    query = store.live_notes_in(Folder.NOTES)

    notes = await query.get()          # current result, fetched on first use

    async for notes in query.observe():  # current result, then every change
        render(notes)
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from jotter.core.logging import get_logger

if TYPE_CHECKING:
    from jotter.core.database import Database

logger = get_logger(__name__)

T = TypeVar("T")

Fetch = Callable[[AsyncSession], Awaitable[list[T]]]


class LiveQuery(Generic[T]):
    """Observable query result kept current by the change notifier."""

    def __init__(
        self,
        database: "Database",
        fetch: Fetch,
        tables: Iterable[str],
        name: str,
    ) -> None:
        self.name = name
        self.tables = frozenset(tables)
        self._database = database
        self._fetch = fetch
        self._value: list[T] | None = None
        self._subscribers: list[asyncio.Queue[list[T]]] = []
        self._refresh_lock = asyncio.Lock()
        database.notifier.register(self)

    @property
    def value(self) -> list[T] | None:
        """Last delivered result, or None before the first fetch."""
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def get(self) -> list[T]:
        """Return the current result, fetching it on first use."""
        if self._value is None:
            return await self.refresh()
        return self._value

    async def refresh(self) -> list[T]:
        """Re-run the query and deliver the result to every subscriber."""
        async with self._refresh_lock:
            async with self._database.read() as session:
                value = await self._fetch(session)
            self._value = value
            for queue in self._subscribers:
                queue.put_nowait(value)
        logger.debug(
            "Live query refreshed",
            extra={"query": self.name, "rows": len(value), "subscribers": len(self._subscribers)},
        )
        return value

    async def observe(self) -> AsyncIterator[list[T]]:
        """Yield the current result, then each re-delivered result."""
        queue: asyncio.Queue[list[T]] = asyncio.Queue()
        current = await self.get()
        self._subscribers.append(queue)
        try:
            yield current
            while True:
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    def __repr__(self) -> str:
        return f"<LiveQuery(name={self.name!r}, tables={sorted(self.tables)})>"
