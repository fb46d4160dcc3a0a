"""
Backup Service.

Serializes the whole corpus (active, deleted and archived notes plus the
label set) into one JSON backup file and reads it back.

Export reads every collection inside one snapshot so a concurrent write
cannot produce a backup that mixes two states. Import validates the whole
file before touching the database, then inserts labels and notes in a
single transaction: a corrupt file changes nothing.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from jotter.core.concurrency import run_blocking
from jotter.core.exceptions import BackupFormatError
from jotter.core.logging import log_with_source
from jotter.repositories.label import LabelRepository
from jotter.repositories.note import NoteRepository
from jotter.schemas.backup import BACKUP_VERSION, Backup
from jotter.schemas.note import Folder
from jotter.services.base import BaseService
from jotter.services.store import NoteStore


class BackupCodec:
    """Reads and writes backup streams."""

    @staticmethod
    def encode(backup: Backup, stream: BinaryIO) -> None:
        """
        Write a backup, replacing anything the stream already holds.

        Seekable streams are rewound and truncated first, so a shorter
        backup never leaves the tail of a previous one behind.
        """
        if stream.seekable():
            stream.seek(0)
            stream.truncate(0)
        stream.write(backup.model_dump_json(by_alias=True, indent=2).encode("utf-8"))
        stream.flush()

    @staticmethod
    def decode(stream: BinaryIO) -> Backup:
        """
        Read a backup stream.

        Raises:
            BackupFormatError: If the stream is not a readable backup
        """
        raw = stream.read()
        try:
            backup = Backup.model_validate_json(raw)
        except ValueError as e:
            raise BackupFormatError(f"Backup file is corrupt: {e}") from e

        if backup.version != BACKUP_VERSION:
            raise BackupFormatError(f"Unsupported backup version: {backup.version}")
        return backup

    def write_file(self, path: Path, backup: Backup) -> None:
        with open(path, "wb") as stream:
            self.encode(backup, stream)

    def read_file(self, path: Path) -> Backup:
        with open(path, "rb") as stream:
            return self.decode(stream)


@dataclass(frozen=True)
class ImportResult:
    """What an import added to the store."""

    notes: int
    labels: int


class BackupService(BaseService):
    """Export and import of full-corpus backup files."""

    def __init__(self, store: NoteStore, codec: BackupCodec | None = None) -> None:
        super().__init__(store.database)
        self._store = store
        self._codec = codec or BackupCodec()

    async def snapshot(self) -> Backup:
        """Read the whole corpus at one point in time."""

        async def _read() -> Backup:
            async with self._database.snapshot() as session:
                notes = NoteRepository(session)
                by_folder = {
                    folder: [row.to_entity() for row in await notes.get_in_folder(folder)]
                    for folder in Folder
                }
                labels = await LabelRepository(session).get_names()
            return Backup(
                notes=by_folder[Folder.NOTES],
                deleted_notes=by_folder[Folder.DELETED],
                archived_notes=by_folder[Folder.ARCHIVED],
                labels=frozenset(labels),
            )

        return await self._execute_db_operation("backup_snapshot", _read())

    async def export_backup(self, path: Path) -> Backup:
        """
        Write the corpus to a backup file, replacing its previous content.

        Raises:
            OSError: If the file cannot be written
        """
        backup = await self.snapshot()
        await run_blocking(self._codec.write_file, Path(path), backup)
        log_with_source(
            self._logger, "backup", "info", "Backup exported",
            path=str(path), notes=len(backup.all_notes()), labels=len(backup.labels),
        )
        return backup

    async def import_backup(self, path: Path) -> ImportResult:
        """
        Add every note and label of a backup file to the store.

        Imported notes get fresh ids; each keeps the folder of the section
        it was read from.

        Raises:
            BackupFormatError: If the file is corrupt; nothing is imported
            OSError: If the file cannot be read
        """
        backup = await run_blocking(self._codec.read_file, Path(path))
        return await self.restore(backup)

    async def restore(self, backup: Backup) -> ImportResult:
        """Insert a decoded backup in one transaction."""
        notes = [note.model_copy(update={"id": None}) for note in backup.all_notes()]
        if not notes and not backup.labels:
            self._log_debug("Empty backup, nothing to import")
            return ImportResult(notes=0, labels=0)

        async def _insert() -> ImportResult:
            async with self._store.transaction() as uow:
                added_labels = await uow.labels.insert_ignore(
                    set(backup.labels) | {label for note in notes for label in note.labels}
                )
                await uow.notes.upsert_many(notes)
            return ImportResult(notes=len(notes), labels=added_labels)

        result = await self._execute_db_operation("import_backup", _insert())
        log_with_source(
            self._logger, "backup", "info", "Backup imported",
            notes=result.notes, labels=result.labels,
        )
        return result
