"""
CLI Commands.

Organized by domain/feature area.
"""

from jotter.cli.commands.backup import app as backup_app
from jotter.cli.commands.export import app as export_app
from jotter.cli.commands.labels import app as labels_app
from jotter.cli.commands.notes import app as notes_app

__all__ = [
    "backup_app",
    "export_app",
    "labels_app",
    "notes_app",
]
