# SQLAlchemy models package
from jotter.models.base import Base
from jotter.models.label import Label
from jotter.models.note import ChecklistItemRow, Note, NoteLabel

__all__ = [
    "Base",
    "ChecklistItemRow",
    "Label",
    "Note",
    "NoteLabel",
]
