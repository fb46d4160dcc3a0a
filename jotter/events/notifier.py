"""
Change Notifier.

In-process fan-out of committed changes. The database reports the set of
tables a transaction wrote to after it commits; every live query that
reads from one of those tables is re-evaluated and pushes the new result
to its subscribers.

Queries are held through weak references. A query nobody holds any more
(no cache entry, no subscriber) drops out on its own.

Usage:
    notifier = ChangeNotifier()
    notifier.register(query)
    await notifier.publish(frozenset({"notes"}))
"""

import weakref
from typing import TYPE_CHECKING

from jotter.core.logging import get_logger

if TYPE_CHECKING:
    from jotter.events.live import LiveQuery

logger = get_logger(__name__)


class ChangeNotifier:
    """Dispatches committed table changes to registered live queries."""

    def __init__(self) -> None:
        self._queries: weakref.WeakSet["LiveQuery"] = weakref.WeakSet()

    def register(self, query: "LiveQuery") -> None:
        self._queries.add(query)

    @property
    def query_count(self) -> int:
        return len(self._queries)

    async def publish(self, tables: frozenset[str]) -> None:
        """
        Refresh every live query that depends on one of the given tables.

        The writing transaction has already committed when this runs, so a
        failing refresh is logged against its query and does not fail the
        write.
        """
        affected = [query for query in list(self._queries) if query.tables & tables]
        logger.debug(
            "Change published",
            extra={"tables": sorted(tables), "queries": len(affected)},
        )
        for query in affected:
            try:
                await query.refresh()
            except Exception as e:
                logger.error(
                    "Live query refresh failed",
                    extra={"query": query.name, "error": str(e)},
                )
