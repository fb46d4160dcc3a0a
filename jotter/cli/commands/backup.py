"""
Backup Commands.

Full-corpus backup export and import, and the one-time legacy migration.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from jotter.cli import run_with_session

app = typer.Typer(help="Backup and migration commands")
console = Console()


@app.command("export")
def export_backup(
    path: Path = typer.Argument(..., help="Backup file to write (replaced if it exists)"),
) -> None:
    """
    Write every note and label to a JSON backup file.

    Examples:
        cli.py backup export notes-backup.json
    """
    result = run_with_session(lambda session: session.export_backup(path))
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)

    backup = result.value
    console.print(Panel(
        f"[bold]Notes:[/bold] {len(backup.notes)}\n"
        f"[bold]Deleted:[/bold] {len(backup.deleted_notes)}\n"
        f"[bold]Archived:[/bold] {len(backup.archived_notes)}\n"
        f"[bold]Labels:[/bold] {len(backup.labels)}",
        title=f"Backup written to {path}",
        border_style="green",
    ))


@app.command("import")
def import_backup(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Backup file to read"),
) -> None:
    """
    Add the notes and labels of a backup file to the notebook.

    Imported notes get new ids; existing notes are left untouched.
    """
    result = run_with_session(lambda session: session.import_backup(path))
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(
        f"[green]Imported {result.value.notes} notes and "
        f"{result.value.labels} new labels[/green]"
    )


@app.command()
def migrate() -> None:
    """Import the legacy note files, if any are left."""
    result = run_with_session(lambda session: session.start(), migrate=False)
    if not result.success:
        console.print(f"[red]Migration failed: {result.error}[/red]")
        raise typer.Exit(1)

    report = result.value
    if report is None or not report.migrated:
        console.print("[dim]No legacy data to migrate[/dim]")
    else:
        console.print(f"[green]Migrated {report.notes} notes and {report.labels} labels[/green]")
    for path in report.skipped if report else []:
        console.print(f"[yellow]Skipped unreadable file: {path}[/yellow]")
