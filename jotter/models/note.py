"""
Note Models.

Database rows for notes, their checklist items and their label links.
Rows convert to and from the detached NoteData entity; nothing outside
the repositories handles them directly.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jotter.core.utils import utc_now
from jotter.models.base import Base
from jotter.schemas.note import ChecklistItem, Folder, NoteData, NoteType, SpanRepresentation


class Note(Base):
    """
    Note database model.

    The id is an SQLite AUTOINCREMENT key, so ids are monotonic and never
    reused after a note is deleted forever.
    """

    __tablename__ = "notes"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[NoteType] = mapped_column(
        Enum(NoteType, native_enum=False, length=16),
        nullable=False,
    )
    folder: Mapped[Folder] = mapped_column(
        Enum(Folder, native_enum=False, length=16),
        nullable=False,
        default=Folder.NOTES,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    spans: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utc_now,
        index=True,
    )

    items: Mapped[list["ChecklistItemRow"]] = relationship(
        back_populates="note",
        order_by="ChecklistItemRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    label_links: Mapped[list["NoteLabel"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def label_names(self) -> frozenset[str]:
        return frozenset(link.label for link in self.label_links)

    def set_content(self, data: NoteData) -> None:
        """Copy title, body, spans, items and timestamp from an entity."""
        self.title = data.title
        self.body = data.body
        self.spans = [span.model_dump() for span in data.spans]
        self.timestamp = data.timestamp
        self.set_items(data.items)

    def set_items(self, items: list[ChecklistItem]) -> None:
        self.items = [
            ChecklistItemRow(position=position, body=item.body, checked=item.checked)
            for position, item in enumerate(items)
        ]

    def set_labels(self, labels: frozenset[str] | set[str]) -> None:
        """Replace the label links, keeping rows whose label survives."""
        wanted = set(labels)
        self.label_links = [link for link in self.label_links if link.label in wanted]
        for label in sorted(wanted - self.label_names):
            self.label_links.append(NoteLabel(label=label))

    def to_entity(self) -> NoteData:
        return NoteData(
            id=self.id,
            type=self.type,
            folder=self.folder,
            title=self.title,
            timestamp=self.timestamp,
            body=self.body,
            spans=[SpanRepresentation(**span) for span in self.spans],
            items=[ChecklistItem(body=row.body, checked=row.checked) for row in self.items],
            labels=self.label_names,
        )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, type={self.type.value}, folder={self.folder.value})>"


class ChecklistItemRow(Base):
    """One checklist line, ordered by its position within the note."""

    __tablename__ = "checklist_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    note: Mapped[Note] = relationship(back_populates="items")


class NoteLabel(Base):
    """Link between a note and a label name; indexed for label lookups."""

    __tablename__ = "note_labels"

    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    label: Mapped[str] = mapped_column(String(255), primary_key=True, index=True)

    note: Mapped[Note] = relationship(back_populates="label_links")
