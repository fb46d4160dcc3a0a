"""
Jotter CLI.

Usage:
    jotter --help

    # Notes
    jotter notes list                          # Active notes
    jotter notes list --folder ARCHIVED        # Archived notes
    jotter notes add -t "Groceries" -i Milk    # New checklist
    jotter notes trash 12                      # Move to deleted
    jotter notes purge 12                      # Remove permanently

    # Labels
    jotter labels list
    jotter labels rename work office

    # Backups and legacy data
    jotter backup export notes-backup.json
    jotter backup import notes-backup.json
    jotter backup migrate

    # Sharing
    jotter export note 12 --format txt -o ~/note.txt

Options:
    --verbose, -v     Enable verbose output
    --debug           Enable debug mode (detailed logging)
    --help            Show help message
"""

import typer
from rich.console import Console

from jotter.cli.commands import backup_app, export_app, labels_app, notes_app
from jotter.core.config import find_project_root

app = typer.Typer(
    name="jotter",
    help="Jotter - notes, checklists, labels and backups from the command line.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(notes_app, name="notes")
app.add_typer(labels_app, name="labels")
app.add_typer(backup_app, name="backup")
app.add_typer(export_app, name="export")


def _validate_project_root() -> None:
    try:
        find_project_root()
    except RuntimeError:
        console.print("[red]Error: .project_root not found. Run from project root.[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    Jotter CLI.

    Every command opens the configured notebook, migrates any legacy note
    files on first use, runs and closes the notebook again.
    """
    _validate_project_root()

    from jotter.core.logging import setup_logging

    if debug:
        setup_logging(level="DEBUG", format_type="console")
        console.print("[dim]Debug mode enabled[/dim]")
    elif verbose:
        setup_logging(level="INFO", format_type="console")
    else:
        setup_logging()


if __name__ == "__main__":
    app()
