"""
Integration Tests for the Notebook Session.

Tests operation results, completion callbacks, startup migration and
shutdown against a real database.
"""

import asyncio

import pytest

from jotter.core.exceptions import ConflictError
from jotter.schemas.note import Folder
from jotter.services.export import DisplaySettings, NoteExporter
from jotter.services.legacy import LegacyStore
from jotter.services.session import NotebookSession, OperationResult

pytestmark = pytest.mark.integration


@pytest.fixture
def exporter(tmp_path) -> NoteExporter:
    return NoteExporter(tmp_path / "exported", settings=DisplaySettings(show_date_created=False))


@pytest.fixture
async def session(database, exporter):
    notebook = NotebookSession(database, exporter, drain_seconds=2)
    yield notebook
    await notebook.close()


class TestOperationResults:
    """Tests for operations reporting success and failure as values."""

    @pytest.mark.asyncio
    async def test_success_carries_value(self, session, make_note):
        (note,) = await session.store.insert_notes([make_note("n")])

        result = await session.move_to_archive(note.id)

        assert result == OperationResult(success=True, value=True)
        assert [n.id for n in await session.archived_notes.get()] == [note.id]

    @pytest.mark.asyncio
    async def test_missing_note_is_success_false_value(self, session):
        result = await session.move_to_deleted(999)

        assert result.success is True
        assert result.value is False

    @pytest.mark.asyncio
    async def test_failure_carries_error(self, session, make_note):
        """Should report a refused permanent delete instead of raising."""
        (note,) = await session.store.insert_notes([make_note("active")])

        result = await session.delete_forever(note.id)

        assert result.success is False
        assert isinstance(result.error, ConflictError)

    @pytest.mark.asyncio
    async def test_label_operations(self, session):
        assert (await session.insert_label("home")).value is True
        assert (await session.rename_label("home", "house")).value is True
        assert await session.labels.get() == ["house"]
        assert (await session.delete_label("house")).value is True
        assert session.labels.value == []

    @pytest.mark.asyncio
    async def test_update_labels_reaches_cached_query(self, session, make_note):
        (note,) = await session.store.insert_notes([make_note("n")])
        query = session.notes_by_label("home")
        assert await query.get() == []

        await session.update_labels(["home"], note.id)

        assert [n.id for n in query.value] == [note.id]
        assert session.notes_by_label("home") is query
        assert await session.labels.get() == ["home"]

    @pytest.mark.asyncio
    async def test_search_returns_matching_notes(self, session, make_note):
        await session.store.insert_notes([make_note("Trip plans"), make_note("other")])

        assert [n.title for n in await session.search("trip")] == ["Trip plans"]


class TestLaunch:
    """Tests for background operations and completion callbacks."""

    @pytest.mark.asyncio
    async def test_on_done_receives_result(self, session):
        received = []

        task = session.launch(session.store.insert_label("x"), on_done=received.append)
        result = await task

        assert received == [result]
        assert result.value is True

    @pytest.mark.asyncio
    async def test_on_done_skipped_after_close(self, database, exporter):
        """Should finish the write but not call back into a closed session."""
        notebook = NotebookSession(database, exporter, drain_seconds=2)
        gate = asyncio.Event()
        received = []

        async def slow_write():
            await gate.wait()
            return await notebook.store.insert_label("late")

        task = notebook.launch(slow_write(), on_done=received.append)
        await asyncio.sleep(0)
        closing = asyncio.create_task(notebook.close())
        await asyncio.sleep(0)
        gate.set()
        await closing
        result = await task

        assert result.success is True
        assert received == []
        assert notebook.closed

    @pytest.mark.asyncio
    async def test_launch_after_close_raises(self, database, exporter):
        notebook = NotebookSession(database, exporter)
        await notebook.close()

        with pytest.raises(RuntimeError, match="closed"):
            notebook.launch(asyncio.sleep(0))

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_write(self, session):
        """Should complete a shielded write even when its caller is cancelled."""
        gate = asyncio.Event()

        async def write():
            await gate.wait()
            return await session.store.insert_label("kept")

        task = session.launch(write())
        await asyncio.sleep(0)
        task.cancel()
        gate.set()
        with pytest.raises(asyncio.CancelledError):
            await task

        for _ in range(50):
            if await session.store.all_labels() == ["kept"]:
                break
            await asyncio.sleep(0.01)
        assert await session.store.all_labels() == ["kept"]


class TestStartup:
    """Tests for the startup migration."""

    @pytest.mark.asyncio
    async def test_start_migrates_legacy_data(self, database, exporter, tmp_path):
        notes_dir = tmp_path / "legacy" / "notes"
        notes_dir.mkdir(parents=True)
        (notes_dir / "1700000000000.xml").write_text("<note><title>Old</title></note>")
        notebook = NotebookSession(database, exporter, legacy=LegacyStore(tmp_path / "legacy"))

        result = await notebook.start()

        assert result.success is True
        assert result.value.notes == 1
        assert [n.title for n in await notebook.base_notes.get()] == ["Old"]
        await notebook.close()

    @pytest.mark.asyncio
    async def test_start_without_legacy_store(self, session):
        result = await session.start()
        assert result == OperationResult(success=True, value=None)


class TestExportOperations:
    """Tests for export wrappers."""

    @pytest.mark.asyncio
    async def test_plain_text_then_save(self, session, checklist_note, tmp_path):
        result = await session.plain_text_file(checklist_note)
        assert result.success is True

        destination = tmp_path / "mine.txt"
        saved = await session.save_file_to(result.value, destination)

        assert saved.success is True
        assert destination.read_text(encoding="utf-8") == "Groceries\n\nMilk\nEggs"

    @pytest.mark.asyncio
    async def test_pdf_without_generator_fails_softly(self, session, text_note):
        result = await session.pdf_file(text_note)

        assert result.success is False
        assert "PDF" in str(result.error)

    @pytest.mark.asyncio
    async def test_backup_round_trip(self, session, make_note, tmp_path):
        await session.store.insert_notes([make_note("keep", folder=Folder.ARCHIVED)])
        path = tmp_path / "b.json"

        exported = await session.export_backup(path)
        imported = await session.import_backup(path)

        assert exported.success and imported.success
        assert imported.value.notes == 1
        assert len(await session.archived_notes.get()) == 2
