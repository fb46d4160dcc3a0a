"""
Legacy Migration.

Moves data from the legacy per-file store into the database, once.

The step is safe to run on every start: after a successful run the legacy
folders and the label preference are empty, and an empty legacy store is
a no-op. Inside the transaction the migrated files are moved to a staging
directory and the label preference is cleared. If anything fails before
the commit completes, the inserts roll back and the staged files and
preferences are put back for the next attempt; the staged copies are
deleted only after the commit has been recorded. Files left staged by an
interrupted run are restored before scanning, or dropped if that run got
as far as recording its commit.
"""

from dataclasses import dataclass, field
from pathlib import Path

from jotter.core.concurrency import run_blocking
from jotter.core.logging import log_with_source
from jotter.schemas.note import validate_label
from jotter.services.base import BaseService
from jotter.services.legacy import LegacyScan, LegacyStore
from jotter.services.store import NoteStore


@dataclass(frozen=True)
class MigrationReport:
    """Outcome of one migration run."""

    notes: int = 0
    labels: int = 0
    skipped: list[Path] = field(default_factory=list)

    @property
    def migrated(self) -> bool:
        return bool(self.notes or self.labels)


class LegacyMigration(BaseService):
    """Imports the legacy store into the note store and purges it."""

    def __init__(self, store: NoteStore, legacy: LegacyStore) -> None:
        super().__init__(store.database)
        self._store = store
        self._legacy = legacy

    async def run(self) -> MigrationReport:
        restored = await run_blocking(self._legacy.recover_staged)
        if restored:
            log_with_source(
                self._logger, "migration", "warning",
                "Restored files staged by an interrupted migration", files=restored,
            )

        scan: LegacyScan = await run_blocking(self._legacy.scan)

        if scan.is_empty():
            self._log_debug("No legacy data to migrate", skipped=len(scan.skipped))
            return MigrationReport(skipped=scan.skipped)

        labels = {validate_label(label) for label in scan.labels}
        note_labels = {label for entry in scan.notes for label in entry.note.labels}

        async def _migrate() -> MigrationReport:
            async with self._store.transaction() as uow:
                await uow.labels.insert_ignore(labels | note_labels)
                await uow.notes.upsert_many(entry.note for entry in scan.notes)
                await run_blocking(
                    self._legacy.stage,
                    [entry.path for entry in scan.notes],
                    bool(scan.labels),
                )
            return MigrationReport(
                notes=len(scan.notes),
                labels=len(labels),
                skipped=scan.skipped,
            )

        try:
            report = await self._execute_db_operation("legacy_migration", _migrate())
        except BaseException:
            await run_blocking(self._legacy.unstage)
            raise

        await run_blocking(self._legacy.mark_committed)
        try:
            await run_blocking(self._legacy.discard_staged)
        except OSError as e:
            log_with_source(
                self._logger, "migration", "warning",
                "Could not remove staged legacy files, retrying on next start",
                path=str(self._legacy.staging_dir), error=str(e),
            )

        log_with_source(
            self._logger, "migration", "info", "Legacy data migrated",
            notes=report.notes, labels=report.labels, skipped=len(report.skipped),
        )
        return report
