"""
Integration Tests for CLI Commands.

Runs the Typer app against a per-test SQLite file selected through
JOTTER_DATABASE_URL, with the legacy data directory pointed at tmp_path.
"""

import json

import pytest
from typer.testing import CliRunner

from jotter.cli.app import app
from jotter.core.config import get_app_config, get_settings

pytestmark = pytest.mark.integration

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_environment(tmp_path, monkeypatch):
    """Point the CLI at an empty database and legacy directory."""
    monkeypatch.setenv("JOTTER_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("JOTTER_DATA_DIR", str(tmp_path / "legacy"))
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


class TestMainApp:
    """Tests for main app options."""

    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "notes" in result.stdout
        assert "backup" in result.stdout

    def test_debug_flag(self) -> None:
        result = runner.invoke(app, ["--debug", "labels", "list"])
        assert result.exit_code == 0
        assert "Debug mode enabled" in result.stdout


class TestNoteCommands:
    """Tests for note commands."""

    def test_add_and_list(self) -> None:
        result = runner.invoke(app, ["notes", "add", "-t", "Groceries", "-i", "Milk", "-l", "home"])
        assert result.exit_code == 0
        assert "Created note 1" in result.stdout

        listed = runner.invoke(app, ["notes", "list"])
        assert listed.exit_code == 0
        assert "Groceries" in listed.stdout

        by_label = runner.invoke(app, ["notes", "list", "--label", "home"])
        assert "Groceries" in by_label.stdout

    def test_trash_then_purge(self) -> None:
        runner.invoke(app, ["notes", "add", "-t", "Scratch", "-b", "temp"])

        refused = runner.invoke(app, ["notes", "purge", "1"])
        assert refused.exit_code == 1

        assert runner.invoke(app, ["notes", "trash", "1"]).exit_code == 0
        deleted = runner.invoke(app, ["notes", "list", "--folder", "DELETED"])
        assert "Scratch" in deleted.stdout

        assert runner.invoke(app, ["notes", "purge", "1"]).exit_code == 0
        assert "Scratch" not in runner.invoke(app, ["notes", "list", "-f", "DELETED"]).stdout

    def test_missing_note(self) -> None:
        result = runner.invoke(app, ["notes", "show", "42"])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestLabelCommands:
    """Tests for label commands."""

    def test_add_rename_delete(self) -> None:
        assert runner.invoke(app, ["labels", "add", "work"]).exit_code == 0
        assert runner.invoke(app, ["labels", "add", "work"]).exit_code == 1
        assert runner.invoke(app, ["labels", "rename", "work", "office"]).exit_code == 0

        listed = runner.invoke(app, ["labels", "list"])
        assert "office" in listed.stdout

        assert runner.invoke(app, ["labels", "delete", "office", "--yes"]).exit_code == 0

    def test_labels_set_on_note_can_be_renamed(self) -> None:
        runner.invoke(app, ["notes", "add", "-t", "Report"])
        assert runner.invoke(app, ["notes", "set-labels", "1", "-l", "work"]).exit_code == 0

        assert "work" in runner.invoke(app, ["labels", "list"]).stdout
        assert runner.invoke(app, ["labels", "rename", "work", "job"]).exit_code == 0
        assert "Report" in runner.invoke(app, ["notes", "list", "--label", "job"]).stdout


class TestBackupCommands:
    """Tests for backup commands."""

    def test_export_writes_json(self, tmp_path) -> None:
        runner.invoke(app, ["notes", "add", "-t", "Keep me"])
        path = tmp_path / "backup.json"

        result = runner.invoke(app, ["backup", "export", str(path)])

        assert result.exit_code == 0
        document = json.loads(path.read_text(encoding="utf-8"))
        assert [n["title"] for n in document["notes"]] == ["Keep me"]

    def test_import_corrupt_file_fails(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        result = runner.invoke(app, ["backup", "import", str(path)])

        assert result.exit_code == 1
        assert "corrupt" in result.stdout

    def test_migrate_without_legacy_data(self) -> None:
        result = runner.invoke(app, ["backup", "migrate"])
        assert result.exit_code == 0
        assert "No legacy data" in result.stdout


class TestExportCommands:
    """Tests for note export commands."""

    def test_pdf_format_not_offered(self) -> None:
        result = runner.invoke(app, ["export", "note", "1", "--format", "pdf"])
        assert result.exit_code == 2
