"""
Notebook Session.

The owning control flow for one open notebook: it holds the store, the
live folder and label queries, the label query cache, the backup service
and the exporter, and runs the legacy migration when it starts.

Operations started through the session return an OperationResult instead
of raising, so a failure in background work always reaches the caller
that started it. Store writes are shielded from cancellation: if the
caller goes away mid-write, the write still completes, and close() waits
for it. Completion callbacks attached to an operation are skipped once
the session is closed.

Usage:
    session = await NotebookSession.open()
    result = await session.move_to_deleted(note_id)
    if not result.success:
        show_error(result.error)

    task = session.launch(session.backups.export_backup(path), on_done=notify)
    ...
    await session.close()
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from jotter.core.database import Database
from jotter.core.logging import get_logger, log_with_source
from jotter.events.live import LiveQuery
from jotter.schemas.backup import Backup
from jotter.schemas.note import Folder, NoteData
from jotter.services.backup import BackupService, ImportResult
from jotter.services.export import NoteExporter, PdfGenerator
from jotter.services.label_cache import LabelQueryCache
from jotter.services.legacy import LegacyStore
from jotter.services.migration import LegacyMigration, MigrationReport
from jotter.services.store import NoteStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of an operation started through the session."""

    success: bool
    value: T | None = None
    error: Exception | None = None


class NotebookSession:
    """One open notebook and everything scoped to its lifetime."""

    def __init__(
        self,
        database: Database,
        exporter: NoteExporter,
        legacy: LegacyStore | None = None,
        drain_seconds: float = 10,
    ) -> None:
        self.database = database
        self.store = NoteStore(database)
        self.backups = BackupService(self.store)
        self.exporter = exporter
        self.label_cache = LabelQueryCache(self.store)
        self._legacy = legacy
        self._drain_seconds = drain_seconds

        self.labels: LiveQuery[str] = self.store.live_labels()
        self.base_notes: LiveQuery[NoteData] = self.store.live_notes_in(Folder.NOTES)
        self.deleted_notes: LiveQuery[NoteData] = self.store.live_notes_in(Folder.DELETED)
        self.archived_notes: LiveQuery[NoteData] = self.store.live_notes_in(Folder.ARCHIVED)

        self._pending: set[asyncio.Future[Any]] = set()
        self._closed = False

    @classmethod
    async def open(
        cls,
        pdf_generator: PdfGenerator | None = None,
        migrate: bool = True,
    ) -> "NotebookSession":
        """Open the configured notebook, creating tables and migrating legacy data."""
        from jotter.core.config import get_app_config

        database = Database.from_config()
        await database.create_all()
        session = cls(
            database,
            NoteExporter.from_config(pdf_generator),
            legacy=LegacyStore.from_config(),
            drain_seconds=get_app_config().concurrency.shutdown.drain_seconds,
        )
        if migrate:
            await session.start()
        return session

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> OperationResult[MigrationReport | None]:
        """Run the one-time legacy migration, if a legacy store is configured."""
        if self._legacy is None:
            return OperationResult(success=True, value=None)
        return await self.launch(LegacyMigration(self.store, self._legacy).run())

    # -------------------------------------------------------------------------
    # Running operations
    # -------------------------------------------------------------------------

    async def _shielded(self, operation: Awaitable[T]) -> T:
        inner = asyncio.ensure_future(operation)
        self._pending.add(inner)
        inner.add_done_callback(self._pending.discard)
        return await asyncio.shield(inner)

    def launch(
        self,
        operation: Awaitable[T],
        on_done: Callable[[OperationResult[T]], None] | None = None,
    ) -> "asyncio.Task[OperationResult[T]]":
        """
        Start an operation in the background.

        The returned task resolves to an OperationResult; it does not raise
        for failures of the operation itself. on_done, if given, runs with
        the same result unless the session has been closed by then.

        Raises:
            RuntimeError: If the session is closed
        """
        if self._closed:
            if inspect.iscoroutine(operation):
                operation.close()
            raise RuntimeError("Notebook session is closed")

        async def _run() -> OperationResult[T]:
            try:
                value = await self._shielded(operation)
            except Exception as e:
                log_with_source(
                    logger, "session", "warning", "Operation failed",
                    error=str(e), error_type=type(e).__name__,
                )
                result: OperationResult[T] = OperationResult(success=False, error=e)
            else:
                result = OperationResult(success=True, value=value)

            if on_done is not None and not self._closed:
                on_done(result)
            return result

        return asyncio.create_task(_run())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def notes_by_label(self, label: str) -> LiveQuery[NoteData]:
        return self.label_cache.get_by_label(label)

    async def search(self, keyword: str) -> list[NoteData]:
        return await self.store.search(keyword)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def move_to_deleted(self, note_id: int) -> OperationResult[bool]:
        return await self.launch(self.store.move_to_deleted(note_id))

    async def move_to_archive(self, note_id: int) -> OperationResult[bool]:
        return await self.launch(self.store.move_to_archive(note_id))

    async def restore(self, note_id: int) -> OperationResult[bool]:
        return await self.launch(self.store.restore(note_id))

    async def delete_forever(self, note_id: int) -> OperationResult[bool]:
        return await self.launch(self.store.delete_forever(note_id))

    async def update_labels(self, labels: Iterable[str], note_id: int) -> OperationResult[bool]:
        return await self.launch(self.store.update_labels(set(labels), note_id))

    async def insert_label(self, label: str) -> OperationResult[bool]:
        return await self.launch(self.store.insert_label(label))

    async def rename_label(self, old: str, new: str) -> OperationResult[bool]:
        return await self.launch(self.store.rename_label(old, new))

    async def delete_label(self, label: str) -> OperationResult[bool]:
        return await self.launch(self.store.delete_label(label))

    # -------------------------------------------------------------------------
    # Backup and export
    # -------------------------------------------------------------------------

    async def export_backup(self, path: Path) -> OperationResult[Backup]:
        return await self.launch(self.backups.export_backup(path))

    async def import_backup(self, path: Path) -> OperationResult[ImportResult]:
        return await self.launch(self.backups.import_backup(path))

    async def html_file(self, note: NoteData) -> OperationResult[Path]:
        return await self.launch(self.exporter.write_html(note))

    async def plain_text_file(self, note: NoteData) -> OperationResult[Path]:
        return await self.launch(self.exporter.write_plain_text(note))

    async def pdf_file(self, note: NoteData) -> OperationResult[Path]:
        return await self.launch(self.exporter.write_pdf(note))

    async def save_file_to(self, source: Path, destination: Path) -> OperationResult[None]:
        return await self.launch(self.exporter.copy_to(source, destination))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Stop accepting work, let in-flight writes finish, release the engine."""
        if self._closed:
            return
        self._closed = True

        pending = set(self._pending)
        if pending:
            _, still_running = await asyncio.wait(pending, timeout=self._drain_seconds)
            if still_running:
                logger.warning(
                    "Closing with operations still running",
                    extra={"running": len(still_running)},
                )
        await self.database.dispose()
        log_with_source(logger, "session", "debug", "Notebook session closed")
