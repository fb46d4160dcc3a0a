"""
Unit Tests for the Backup Codec.

Tests the JSON backup wire format against in-memory streams. No database.
"""

import io
import json

import pytest

from jotter.core.exceptions import BackupFormatError
from jotter.schemas.backup import BACKUP_VERSION, Backup
from jotter.schemas.note import Folder
from jotter.services.backup import BackupCodec


@pytest.fixture
def codec() -> BackupCodec:
    return BackupCodec()


@pytest.fixture
def backup(text_note, checklist_note, make_note) -> Backup:
    return Backup(
        notes=[text_note],
        deleted_notes=[checklist_note.model_copy(update={"folder": Folder.DELETED})],
        archived_notes=[make_note("Old", folder=Folder.ARCHIVED, body="kept")],
        labels=frozenset({"work", "planning", "home"}),
    )


class TestEncode:
    """Tests for writing backups."""

    def test_uses_section_keys(self, codec, backup):
        """Should write the camelCase section names and the version."""
        stream = io.BytesIO()

        codec.encode(backup, stream)

        document = json.loads(stream.getvalue())
        assert document["version"] == BACKUP_VERSION
        assert set(document) == {"version", "notes", "deletedNotes", "archivedNotes", "labels"}
        assert document["labels"] == ["home", "planning", "work"]

    def test_truncates_previous_content(self, codec):
        """Should not leave the tail of a longer earlier backup in the stream."""
        stream = io.BytesIO(b"x" * 10_000)

        codec.encode(Backup(), stream)

        decoded = codec.decode(io.BytesIO(stream.getvalue()))
        assert decoded.is_empty()
        assert len(stream.getvalue()) < 10_000


class TestDecode:
    """Tests for reading backups."""

    def test_round_trip_preserves_content(self, codec, backup):
        """Should decode every note in its folder with identical content."""
        stream = io.BytesIO()
        codec.encode(backup, stream)
        stream.seek(0)

        decoded = codec.decode(stream)

        assert decoded.labels == backup.labels
        assert len(decoded.all_notes()) == 3
        for original, restored in zip(backup.all_notes(), decoded.all_notes()):
            assert restored.content_equals(original)

    def test_section_decides_folder(self, codec, make_note):
        """Should tag each note with the folder of the section it was read from."""
        note = make_note("Misfiled").model_dump(mode="json")
        raw = json.dumps({"version": 1, "archivedNotes": [note]}).encode()

        decoded = codec.decode(io.BytesIO(raw))

        assert decoded.archived_notes[0].folder is Folder.ARCHIVED

    def test_missing_sections_default_to_empty(self, codec):
        decoded = codec.decode(io.BytesIO(b'{"version": 1}'))
        assert decoded.is_empty()

    @pytest.mark.parametrize(
        "raw",
        [
            b"",
            b"not json at all",
            b'{"version": 1, "notes": [',
            b'{"version": 1, "notes": [{"type": "LIST", "body": "x"}]}',
            b'{"version": 1, "labels": [""]}',
        ],
    )
    def test_corrupt_stream_raises(self, codec, raw):
        """Should raise BackupFormatError for unreadable content."""
        with pytest.raises(BackupFormatError):
            codec.decode(io.BytesIO(raw))

    def test_unknown_version_raises(self, codec):
        with pytest.raises(BackupFormatError, match="Unsupported backup version"):
            codec.decode(io.BytesIO(b'{"version": 99}'))


class TestFiles:
    """Tests for the file helpers."""

    def test_write_then_read_file(self, codec, backup, tmp_path):
        path = tmp_path / "backup.json"

        codec.write_file(path, backup)
        restored = codec.read_file(path)

        assert restored.labels == backup.labels
        assert [n.title for n in restored.all_notes()] == [n.title for n in backup.all_notes()]

    def test_overwrites_existing_file(self, codec, backup, tmp_path):
        path = tmp_path / "backup.json"
        codec.write_file(path, backup)

        codec.write_file(path, Backup())

        assert codec.read_file(path).is_empty()
