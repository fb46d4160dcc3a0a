# Pydantic schemas package
from jotter.schemas.backup import BACKUP_VERSION, Backup
from jotter.schemas.note import (
    ChecklistItem,
    Folder,
    NoteCreate,
    NoteData,
    NoteType,
    NoteUpdate,
    SpanRepresentation,
)

__all__ = [
    "BACKUP_VERSION",
    "Backup",
    "ChecklistItem",
    "Folder",
    "NoteCreate",
    "NoteData",
    "NoteType",
    "NoteUpdate",
    "SpanRepresentation",
]
