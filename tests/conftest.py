"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Database Configuration:
    Every test gets a fresh file-backed SQLite database under tmp_path.
    A file rather than :memory: is used because the store opens several
    connections (write transaction, snapshot reads, live query refreshes)
    and they must all see the same data.
"""

from collections.abc import AsyncGenerator
from datetime import datetime
from pathlib import Path

import pytest

from jotter.core.database import Database
from jotter.schemas.note import ChecklistItem, Folder, NoteData, NoteType, SpanRepresentation
from jotter.services.store import NoteStore


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of an empty per-test SQLite file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'jotter-test.db'}"


@pytest.fixture
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """
    Provide a database with all tables created.

    Usage:
        async def test_commit(database: Database):
            async with database.transaction() as session:
                ...
    """
    db = Database(database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def store(database: Database) -> NoteStore:
    """NoteStore bound to the per-test database."""
    return NoteStore(database)


# =============================================================================
# Entity Fixtures
# =============================================================================


@pytest.fixture
def text_note() -> NoteData:
    """A plain-text note with one bold span and two labels."""
    return NoteData(
        type=NoteType.NOTE,
        title="Meeting",
        timestamp=datetime(2024, 3, 5, 9, 30),
        body="Agenda for monday",
        spans=[SpanRepresentation(bold=True, start=0, end=6)],
        labels=frozenset({"work", "planning"}),
    )


@pytest.fixture
def checklist_note() -> NoteData:
    """A checklist with one checked item."""
    return NoteData(
        type=NoteType.LIST,
        title="Groceries",
        timestamp=datetime(2024, 3, 6, 18, 0),
        items=[
            ChecklistItem(body="Milk", checked=True),
            ChecklistItem(body="Eggs"),
        ],
        labels=frozenset({"home"}),
    )


@pytest.fixture
def make_note():
    """
    Factory for plain-text notes with sensible defaults.

    Usage:
        def test_something(make_note):
            note = make_note("Title", folder=Folder.ARCHIVED, body="text")
    """

    def _make(title: str, folder: Folder = Folder.NOTES, **fields) -> NoteData:
        fields.setdefault("timestamp", datetime(2024, 1, 1, 12, 0))
        return NoteData(title=title, folder=folder, **fields)

    return _make
