"""
CLI Module.

Command-line interface built with Typer and Rich. Commands open a
NotebookSession against the configured database, run one operation and
close the session again.

Architecture:
- CLI is a thin presentation layer
- All business logic lives in jotter.services
- Failed operations are reported from their OperationResult

Usage:
    python cli.py --help
    python cli.py notes list --folder DELETED
    python cli.py backup export notes-backup.json
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from jotter.core.concurrency import shutdown_pools
from jotter.services.session import NotebookSession

T = TypeVar("T")


def run_with_session(
    work: Callable[[NotebookSession], Awaitable[T]],
    migrate: bool = True,
) -> T:
    """Open the notebook, run `work` against it and close it again."""

    async def _main() -> T:
        session = await NotebookSession.open(migrate=migrate)
        try:
            return await work(session)
        finally:
            await session.close()
            await shutdown_pools()

    return asyncio.run(_main())
