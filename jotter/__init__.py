"""
Jotter.

Data layer of a personal notebook: notes (plain text or checklists),
labels, deleted/archived folders, full-corpus backups, migration from the
legacy per-file store, and rendering notes for sharing.

- core/: Configuration, logging, database, concurrency, exceptions
- models/: SQLAlchemy rows
- schemas/: Pydantic entities and the backup wire format
- repositories/: Data access
- services/: Store, backup, legacy migration, export, session
- events/: Change notification and live queries
- cli/: Command-line interface (Typer + Rich)
"""

__version__ = "0.1.0"
