"""
Unit Tests for Note Schemas.

Tests the detached note entities: type rules, label normalization and
the helpers used by export and backup.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from jotter.core.exceptions import ValidationError
from jotter.schemas.note import (
    ChecklistItem,
    Folder,
    NoteCreate,
    NoteData,
    NoteType,
    SpanRepresentation,
    validate_label,
)


class TestNoteDataTypeRules:
    """Tests for the NOTE / LIST field rules."""

    def test_defaults_to_active_text_note(self):
        """Should create an active plain-text note without an id."""
        note = NoteData(title="Hello")

        assert note.id is None
        assert note.type is NoteType.NOTE
        assert note.folder is Folder.NOTES
        assert note.labels == frozenset()

    def test_text_note_rejects_items(self):
        """Should refuse checklist items on a plain-text note."""
        with pytest.raises(PydanticValidationError):
            NoteData(type=NoteType.NOTE, items=[ChecklistItem(body="Milk")])

    def test_checklist_rejects_body(self):
        """Should refuse body text on a checklist."""
        with pytest.raises(PydanticValidationError):
            NoteData(type=NoteType.LIST, body="free text")

    def test_checklist_rejects_spans(self):
        """Should refuse formatting spans on a checklist."""
        with pytest.raises(PydanticValidationError):
            NoteData(type=NoteType.LIST, spans=[SpanRepresentation(start=0, end=1)])

    def test_entities_are_immutable(self, text_note):
        """Should not allow mutating a snapshot in place."""
        with pytest.raises(PydanticValidationError):
            text_note.title = "changed"


class TestSpanRepresentation:
    """Tests for span range validation."""

    def test_empty_span_is_allowed(self):
        span = SpanRepresentation(italic=True, start=3, end=3)
        assert span.start == span.end == 3

    def test_end_before_start_rejected(self):
        with pytest.raises(PydanticValidationError):
            SpanRepresentation(start=5, end=2)

    def test_negative_offset_rejected(self):
        with pytest.raises(PydanticValidationError):
            SpanRepresentation(start=-1, end=2)


class TestLabels:
    """Tests for label name normalization."""

    def test_strips_whitespace(self):
        assert validate_label("  work ") == "work"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_raises(self, name):
        """Should raise the application ValidationError for blank names."""
        with pytest.raises(ValidationError) as exc_info:
            validate_label(name)

        assert exc_info.value.code == "VAL_VALIDATION_ERROR"

    def test_note_labels_are_a_set(self):
        """Should collapse duplicate labels on a note."""
        note = NoteData(labels=["home", "home", " work"])
        assert note.labels == frozenset({"home", "work"})

    def test_labels_serialize_sorted(self):
        note = NoteData(labels=frozenset({"zeta", "alpha"}))
        assert note.model_dump()["labels"] == ["alpha", "zeta"]


class TestPlainBody:
    """Tests for type-independent body text."""

    def test_text_note_returns_body(self, text_note):
        assert text_note.plain_body() == "Agenda for monday"

    def test_checklist_joins_items_by_line(self, checklist_note):
        assert checklist_note.plain_body() == "Milk\nEggs"

    def test_empty_checklist(self):
        assert NoteData(type=NoteType.LIST).plain_body() == ""


class TestContentEquals:
    """Tests for id-insensitive comparison."""

    def test_ignores_id(self, text_note):
        stored = text_note.model_copy(update={"id": 42})
        assert stored.content_equals(text_note)

    def test_detects_folder_change(self, text_note):
        moved = text_note.model_copy(update={"folder": Folder.ARCHIVED})
        assert not moved.content_equals(text_note)


class TestNoteCreate:
    """Tests for the create schema."""

    def test_to_entity_has_no_id(self):
        """Should produce an active note without an id."""
        entity = NoteCreate(title="New", body="text", labels=frozenset({"a"})).to_entity()

        assert entity.id is None
        assert entity.folder is Folder.NOTES
        assert entity.labels == frozenset({"a"})

    def test_to_entity_validates_type_rules(self):
        data = NoteCreate(type=NoteType.LIST, body="not allowed")
        with pytest.raises(PydanticValidationError):
            data.to_entity()
