"""
Backup Schemas.

Wire format of a full-corpus backup file:

    {
      "version": 1,
      "notes": [ ...NoteData... ],
      "deletedNotes": [ ... ],
      "archivedNotes": [ ... ],
      "labels": [ "home", "work" ]
    }

The section a note appears in decides its folder when the file is read
back; the folder value stored on each note is informational only.
"""

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from jotter.schemas.note import Folder, LabelName, NoteData

BACKUP_VERSION = 1


class Backup(BaseModel):
    """Transient full-corpus snapshot used for one export or import pass."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = BACKUP_VERSION
    notes: list[NoteData] = Field(default_factory=list)
    deleted_notes: list[NoteData] = Field(default_factory=list, alias="deletedNotes")
    archived_notes: list[NoteData] = Field(default_factory=list, alias="archivedNotes")
    labels: frozenset[LabelName] = Field(default_factory=frozenset)

    @model_validator(mode="after")
    def _retag_sections(self) -> "Backup":
        sections = (
            ("notes", Folder.NOTES),
            ("deleted_notes", Folder.DELETED),
            ("archived_notes", Folder.ARCHIVED),
        )
        for field, folder in sections:
            tagged = [
                note if note.folder is folder else note.model_copy(update={"folder": folder})
                for note in getattr(self, field)
            ]
            setattr(self, field, tagged)
        return self

    @field_serializer("labels")
    def _serialize_labels(self, labels: frozenset[str]) -> list[str]:
        return sorted(labels)

    def all_notes(self) -> list[NoteData]:
        """Every note in one list, active first, each tagged with its folder."""
        return [*self.notes, *self.deleted_notes, *self.archived_notes]

    def is_empty(self) -> bool:
        return not self.labels and not self.all_notes()
