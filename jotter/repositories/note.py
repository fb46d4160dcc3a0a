"""
Note Repository.

Data access layer for notes. Handles all database operations for the
Note model, its checklist items and its label links.
"""

from collections.abc import Iterable

from sqlalchemy import delete, or_, select, update

from jotter.models.note import ChecklistItemRow, Note, NoteLabel
from jotter.repositories.base import BaseRepository
from jotter.schemas.note import Folder, NoteData


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Folder changes go through set_folder only; nothing here rewrites the
    type of an existing note except a full replace by upsert().
    """

    model = Note
    tables = ("notes", "note_labels")

    async def get_in_folder(self, folder: Folder) -> list[Note]:
        """
        Get all notes in a folder, newest first.

        Args:
            folder: Folder to list

        Returns:
            List of notes in that folder
        """
        result = await self.session.execute(
            select(Note)
            .where(Note.folder == folder)
            .order_by(Note.timestamp.desc(), Note.id.desc())
        )
        return list(result.scalars().all())

    async def get_by_label(self, label: str, folder: Folder = Folder.NOTES) -> list[Note]:
        """
        Get notes in a folder that carry a label, newest first.

        Args:
            label: Exact label name
            folder: Folder to restrict to (active notes by default)
        """
        result = await self.session.execute(
            select(Note)
            .join(NoteLabel, NoteLabel.note_id == Note.id)
            .where(NoteLabel.label == label)
            .where(Note.folder == folder)
            .order_by(Note.timestamp.desc(), Note.id.desc())
        )
        return list(result.scalars().all())

    async def search(self, keyword: str, folder: Folder = Folder.NOTES) -> list[Note]:
        """
        Search notes by title, body or checklist text (case-insensitive).

        The keyword matches literally; `%` and `_` are not wildcards.

        Args:
            keyword: Text to look for
            folder: Folder to search (active notes by default)
        """
        escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        result = await self.session.execute(
            select(Note)
            .where(Note.folder == folder)
            .where(
                or_(
                    Note.title.ilike(pattern, escape="\\"),
                    Note.body.ilike(pattern, escape="\\"),
                    Note.items.any(ChecklistItemRow.body.ilike(pattern, escape="\\")),
                )
            )
            .order_by(Note.timestamp.desc(), Note.id.desc())
        )
        return list(result.scalars().all())

    async def upsert(self, data: NoteData) -> Note:
        """
        Insert a note, or replace the stored note with the same id.

        Entities without an id get a fresh, monotonically assigned one.
        """
        instance = None
        if data.id is not None:
            instance = await self.get_by_id_or_none(data.id)

        if instance is None:
            instance = Note(id=data.id, type=data.type, folder=data.folder)
            self.session.add(instance)
        else:
            instance.type = data.type
            instance.folder = data.folder

        instance.set_content(data)
        instance.set_labels(data.labels)
        await self.session.flush()
        self._touch()
        return instance

    async def upsert_many(self, notes: Iterable[NoteData]) -> list[Note]:
        return [await self.upsert(data) for data in notes]

    async def set_folder(self, id: int, folder: Folder) -> bool:
        """
        Move a note to a folder.

        Returns:
            False if no note has that id
        """
        result = await self.session.execute(
            update(Note)
            .where(Note.id == id)
            .values(folder=folder)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self._touch()
        return bool(result.rowcount)

    async def replace_labels(self, id: int, labels: Iterable[str]) -> bool:
        """
        Replace the full label set of a note.

        Returns:
            False if no note has that id
        """
        instance = await self.get_by_id_or_none(id)
        if instance is None:
            return False
        instance.set_labels(set(labels))
        await self.session.flush()
        self._touch()
        return True

    async def delete_instance(self, instance: Note) -> None:
        await self.session.delete(instance)
        await self.session.flush()
        self._touch()

    async def strip_label(self, label: str) -> int:
        """Remove a label from every note. Returns the number of notes touched."""
        result = await self.session.execute(
            delete(NoteLabel)
            .where(NoteLabel.label == label)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self._touch()
        return result.rowcount

    async def rename_label(self, old: str, new: str) -> int:
        """
        Rename a label on every note that carries it.

        Notes that already carry `new` simply lose `old`, so each note
        keeps a duplicate-free label set.

        Returns:
            Number of notes touched
        """
        already_tagged = select(NoteLabel.note_id).where(NoteLabel.label == new)
        dropped = await self.session.execute(
            delete(NoteLabel)
            .where(NoteLabel.label == old)
            .where(NoteLabel.note_id.in_(already_tagged))
            .execution_options(synchronize_session=False)
        )
        renamed = await self.session.execute(
            update(NoteLabel)
            .where(NoteLabel.label == old)
            .values(label=new)
            .execution_options(synchronize_session=False)
        )
        touched = dropped.rowcount + renamed.rowcount
        if touched:
            self._touch()
        return touched
