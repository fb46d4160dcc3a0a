"""
Note Store.

Durable, transactional storage for notes and labels. Every public mutation
runs in its own scoped transaction; callers that need several writes to
commit together (legacy migration, backup import) open one with
transaction() and use the repositories on the yielded unit of work.

Mutations that target a missing id are no-ops that return False, so a
write racing a concurrent permanent delete never fails.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from jotter.core.exceptions import ConflictError, NotFoundError, ValidationError
from jotter.events.live import LiveQuery
from jotter.repositories.label import LabelRepository
from jotter.repositories.note import NoteRepository
from jotter.schemas.note import Folder, NoteCreate, NoteData, NoteUpdate, validate_label
from jotter.services.base import BaseService


@dataclass
class UnitOfWork:
    """Repositories bound to one open transaction."""

    session: AsyncSession
    notes: NoteRepository
    labels: LabelRepository


class NoteStore(BaseService):
    """
    Service for note and label persistence.

    Snapshot queries return detached NoteData lists; live queries return a
    LiveQuery that re-delivers its result after every relevant commit.
    """

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        """Open a scoped transaction; all writes inside commit together."""
        async with self._database.transaction() as session:
            yield UnitOfWork(
                session=session,
                notes=NoteRepository(session),
                labels=LabelRepository(session),
            )

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    async def insert_notes(self, notes: Iterable[NoteData]) -> list[NoteData]:
        """
        Bulk insert notes in one transaction.

        Notes carrying an id replace the stored note with that id; notes
        without one are assigned a fresh id. Their labels join the label set.

        Returns:
            The stored notes, with their ids
        """
        notes = list(notes)

        async def _insert() -> list[NoteData]:
            async with self.transaction() as uow:
                await uow.labels.insert_ignore(label for note in notes for label in note.labels)
                rows = await uow.notes.upsert_many(notes)
                return [row.to_entity() for row in rows]

        stored = await self._execute_db_operation("insert_notes", _insert())
        self._log_operation("Notes inserted", count=len(stored))
        return stored

    async def create_note(self, data: NoteCreate) -> NoteData:
        """Create a note in the active folder."""
        try:
            entity = data.to_entity()
        except PydanticValidationError as e:
            raise ValidationError("Invalid note", details={"errors": e.errors()}) from e

        self._log_operation("Creating note", type=entity.type.value)
        (note,) = await self.insert_notes([entity])
        return note

    async def update_note(self, note_id: int, data: NoteUpdate) -> NoteData | None:
        """
        Edit title, body, spans or items of a note.

        The note keeps its id, type, folder and labels.

        Returns:
            The updated note, or None if no note has that id
        """
        changes = data.model_dump(exclude_unset=True)

        async def _update() -> NoteData | None:
            async with self.transaction() as uow:
                row = await uow.notes.get_by_id_or_none(note_id)
                if row is None:
                    return None
                try:
                    updated = NoteData.model_validate({**row.to_entity().model_dump(), **changes})
                except PydanticValidationError as e:
                    raise ValidationError("Invalid note", details={"errors": e.errors()}) from e
                row = await uow.notes.upsert(updated)
                return row.to_entity()

        if not changes:
            return await self.get_note_or_none(note_id)

        self._log_operation("Updating note", note_id=note_id, fields=sorted(changes))
        return await self._execute_db_operation("update_note", _update())

    async def move_to_folder(self, note_id: int, folder: Folder) -> bool:
        """
        Move a note to a folder.

        Returns:
            False if no note has that id
        """

        async def _move() -> bool:
            async with self.transaction() as uow:
                return await uow.notes.set_folder(note_id, folder)

        moved = await self._execute_db_operation("move_to_folder", _move())
        if moved:
            self._log_operation("Note moved", note_id=note_id, folder=folder.value)
        else:
            self._log_debug("Move skipped, note missing", note_id=note_id)
        return moved

    async def move_to_deleted(self, note_id: int) -> bool:
        return await self.move_to_folder(note_id, Folder.DELETED)

    async def move_to_archive(self, note_id: int) -> bool:
        return await self.move_to_folder(note_id, Folder.ARCHIVED)

    async def restore(self, note_id: int) -> bool:
        return await self.move_to_folder(note_id, Folder.NOTES)

    async def delete_forever(self, note_id: int) -> bool:
        """
        Permanently remove a note from the deleted folder.

        Returns:
            False if no note has that id

        Raises:
            ConflictError: If the note is not in the deleted folder
        """

        async def _delete() -> bool:
            async with self.transaction() as uow:
                row = await uow.notes.get_by_id_or_none(note_id)
                if row is None:
                    return False
                if row.folder is not Folder.DELETED:
                    raise ConflictError("Only notes in the deleted folder can be removed permanently")
                await uow.notes.delete_instance(row)
                return True

        removed = await self._execute_db_operation("delete_forever", _delete())
        if removed:
            self._log_operation("Note deleted forever", note_id=note_id)
        return removed

    async def update_labels(self, labels: Iterable[str], note_id: int) -> bool:
        """
        Replace the full label set of a note, adding new names to the label set.

        Returns:
            False if no note has that id
        """
        names = {validate_label(label) for label in labels}

        async def _update() -> bool:
            async with self.transaction() as uow:
                if not await uow.notes.exists(note_id):
                    return False
                await uow.labels.insert_ignore(names)
                return await uow.notes.replace_labels(note_id, names)

        return await self._execute_db_operation("update_labels", _update())

    # -------------------------------------------------------------------------
    # Labels
    # -------------------------------------------------------------------------

    async def insert_labels(self, labels: Iterable[str]) -> int:
        """
        Bulk insert labels, ignoring names that already exist.

        Returns:
            Number of new labels

        Raises:
            ValidationError: If any name is blank
        """
        names = [validate_label(label) for label in labels]

        async def _insert() -> int:
            async with self.transaction() as uow:
                return await uow.labels.insert_ignore(names)

        return await self._execute_db_operation("insert_labels", _insert())

    async def insert_label(self, label: str) -> bool:
        """
        Insert one label.

        Returns:
            False if the label already exists
        """
        name = validate_label(label)

        async def _insert() -> bool:
            async with self.transaction() as uow:
                return await uow.labels.insert(name)

        return await self._execute_db_operation("insert_label", _insert())

    async def delete_label(self, label: str) -> bool:
        """
        Delete a label and remove it from every note, in one transaction.

        Returns:
            False if the label did not exist; notes are left untouched
        """

        async def _delete() -> bool:
            async with self.transaction() as uow:
                if not await uow.labels.delete(label):
                    return False
                await uow.notes.strip_label(label)
                return True

        deleted = await self._execute_db_operation("delete_label", _delete())
        if deleted:
            self._log_operation("Label deleted", label=label)
        return deleted

    async def rename_label(self, old: str, new: str) -> bool:
        """
        Rename a label and every reference to it, in one transaction.

        Returns:
            False if `old` does not exist or `new` is already taken
        """
        self._validate_required({"old": old, "new": new}, ["old", "new"])
        new = validate_label(new)
        if old == new:
            return False

        async def _rename() -> bool:
            async with self.transaction() as uow:
                if await uow.labels.exists(new):
                    return False
                if not await uow.labels.rename(old, new):
                    return False
                await uow.notes.rename_label(old, new)
                return True

        renamed = await self._execute_db_operation("rename_label", _rename())
        if renamed:
            self._log_operation("Label renamed", old=old, new=new)
        return renamed

    # -------------------------------------------------------------------------
    # Snapshot queries
    # -------------------------------------------------------------------------

    async def get_note(self, note_id: int) -> NoteData:
        """
        Raises:
            NotFoundError: If no note has that id
        """
        note = await self.get_note_or_none(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def get_note_or_none(self, note_id: int) -> NoteData | None:
        async with self._database.read() as session:
            row = await NoteRepository(session).get_by_id_or_none(note_id)
            return row.to_entity() if row is not None else None

    async def notes_in(self, folder: Folder) -> list[NoteData]:
        async with self._database.read() as session:
            return await _fetch_folder(session, folder)

    async def notes_by_label(self, label: str) -> list[NoteData]:
        async with self._database.read() as session:
            return await _fetch_label(session, label)

    async def all_labels(self) -> list[str]:
        async with self._database.read() as session:
            return await LabelRepository(session).get_names()

    async def search(self, keyword: str) -> list[NoteData]:
        """Active notes whose title, body or checklist text contains keyword."""
        if not keyword:
            return []
        async with self._database.read() as session:
            rows = await NoteRepository(session).search(keyword)
            return [row.to_entity() for row in rows]

    # -------------------------------------------------------------------------
    # Live queries
    # -------------------------------------------------------------------------

    def live_notes_in(self, folder: Folder) -> LiveQuery[NoteData]:
        async def fetch(session: AsyncSession) -> list[NoteData]:
            return await _fetch_folder(session, folder)

        return LiveQuery(
            self._database,
            fetch,
            tables=NoteRepository.tables,
            name=f"folder:{folder.value}",
        )

    def live_notes_by_label(self, label: str) -> LiveQuery[NoteData]:
        async def fetch(session: AsyncSession) -> list[NoteData]:
            return await _fetch_label(session, label)

        return LiveQuery(
            self._database,
            fetch,
            tables=NoteRepository.tables,
            name=f"label:{label}",
        )

    def live_labels(self) -> LiveQuery[str]:
        async def fetch(session: AsyncSession) -> list[str]:
            return await LabelRepository(session).get_names()

        return LiveQuery(self._database, fetch, tables=LabelRepository.tables, name="labels")


async def _fetch_folder(session: AsyncSession, folder: Folder) -> list[NoteData]:
    rows = await NoteRepository(session).get_in_folder(folder)
    return [row.to_entity() for row in rows]


async def _fetch_label(session: AsyncSession, label: str) -> list[NoteData]:
    rows = await NoteRepository(session).get_by_label(label)
    return [row.to_entity() for row in rows]
