"""
Note Schemas.

Pydantic entities for notes, checklist items, formatting spans and labels.
These are the detached values handed out by the store, written to backups
and produced by the legacy reader. They perform no I/O.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    field_serializer,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from jotter.core.exceptions import ValidationError
from jotter.core.utils import utc_now


class NoteType(str, Enum):
    """Which body field of a note is authoritative."""

    NOTE = "NOTE"
    LIST = "LIST"


class Folder(str, Enum):
    """The bucket a note lives in. Exactly one at any time."""

    NOTES = "NOTES"
    DELETED = "DELETED"
    ARCHIVED = "ARCHIVED"


LabelName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_label_adapter = TypeAdapter(LabelName)


def validate_label(name: str) -> str:
    """
    Normalize a label name.

    Raises:
        ValidationError: If the name is empty or only whitespace
    """
    try:
        return _label_adapter.validate_python(name)
    except PydanticValidationError as e:
        raise ValidationError(
            "Label name must not be empty",
            details={"label": name},
        ) from e


class SpanRepresentation(BaseModel):
    """Formatting applied to body[start:end] of a plain-text note."""

    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    link: bool = False
    monospace: bool = False
    strikethrough: bool = False
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "SpanRepresentation":
        if self.end < self.start:
            raise ValueError("span end must not precede its start")
        return self


class ChecklistItem(BaseModel):
    """One line of a checklist note."""

    model_config = ConfigDict(frozen=True)

    body: str
    checked: bool = False


class NoteData(BaseModel):
    """
    A note as seen outside the database.

    Instances are immutable snapshots. Changing a stored note goes through
    NoteStore operations (move_to_deleted, update_labels, ...); the type
    of a note never changes after creation.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    type: NoteType = NoteType.NOTE
    folder: Folder = Folder.NOTES
    title: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    body: str = ""
    spans: list[SpanRepresentation] = Field(default_factory=list)
    items: list[ChecklistItem] = Field(default_factory=list)
    labels: frozenset[LabelName] = Field(default_factory=frozenset)

    @model_validator(mode="after")
    def _check_type_fields(self) -> "NoteData":
        if self.type is NoteType.NOTE and self.items:
            raise ValueError("plain-text notes cannot carry checklist items")
        if self.type is NoteType.LIST and (self.body or self.spans):
            raise ValueError("checklist notes keep their content in items")
        return self

    @field_serializer("labels")
    def _serialize_labels(self, labels: frozenset[str]) -> list[str]:
        return sorted(labels)

    def plain_body(self) -> str:
        """Body text regardless of type; checklist items one per line."""
        if self.type is NoteType.LIST:
            return "\n".join(item.body for item in self.items)
        return self.body

    def content_equals(self, other: "NoteData") -> bool:
        """Compare everything except the storage-assigned id."""
        return self.model_dump(exclude={"id"}) == other.model_dump(exclude={"id"})


class NoteCreate(BaseModel):
    """Schema for creating a new note in the active folder."""

    type: NoteType = NoteType.NOTE
    title: str = Field(default="", max_length=10000)
    body: str = ""
    spans: list[SpanRepresentation] = Field(default_factory=list)
    items: list[ChecklistItem] = Field(default_factory=list)
    labels: frozenset[LabelName] = Field(default_factory=frozenset)

    def to_entity(self) -> NoteData:
        return NoteData(**self.model_dump())


class NoteUpdate(BaseModel):
    """Schema for editing a note. Type and folder are not editable here."""

    title: str | None = Field(default=None, max_length=10000)
    body: str | None = None
    spans: list[SpanRepresentation] | None = None
    items: list[ChecklistItem] | None = None
