"""
Note Commands.

Commands for listing, creating and moving notes between folders.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from jotter.cli import run_with_session
from jotter.schemas.note import ChecklistItem, Folder, NoteCreate, NoteData, NoteType
from jotter.services.session import NotebookSession, OperationResult

app = typer.Typer(help="Note commands")
console = Console()


def _notes_table(title: str, notes: list[NoteData]) -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Labels", style="magenta")
    table.add_column("Created", style="dim")
    for note in notes:
        table.add_row(
            str(note.id),
            note.type.value.lower(),
            note.title or "[dim](untitled)[/dim]",
            ", ".join(sorted(note.labels)),
            note.timestamp.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def _report(result: OperationResult[bool], done: str, missing: str) -> None:
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)
    if result.value:
        console.print(f"[green]{done}[/green]")
    else:
        console.print(f"[yellow]{missing}[/yellow]")


@app.command("list")
def list_notes(
    folder: Folder = typer.Option(Folder.NOTES, "--folder", "-f", help="Folder to list"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Only active notes with this label"),
) -> None:
    """
    List notes in a folder, newest first.

    Examples:
        cli.py notes list
        cli.py notes list --folder DELETED
        cli.py notes list --label work
    """

    async def _work(session: NotebookSession) -> list[NoteData]:
        if label:
            return await session.notes_by_label(label).get()
        return await session.store.notes_in(folder)

    notes = run_with_session(_work)
    title = f"Label: {label}" if label else f"Folder: {folder.value}"
    console.print(_notes_table(title, notes))


@app.command()
def search(keyword: str = typer.Argument(..., help="Text to look for")) -> None:
    """Search active notes by title, body or checklist text."""
    notes = run_with_session(lambda session: session.search(keyword))
    console.print(_notes_table(f"Search: {keyword}", notes))


@app.command()
def show(note_id: int = typer.Argument(..., help="Note ID")) -> None:
    """Show one note as plain text."""

    async def _work(session: NotebookSession) -> str | None:
        note = await session.store.get_note_or_none(note_id)
        return session.exporter.plain_text(note) if note is not None else None

    text = run_with_session(_work)
    if text is None:
        console.print(f"[red]Note {note_id} not found[/red]")
        raise typer.Exit(1)
    console.print(Panel(text, title=f"Note {note_id}"))


@app.command()
def add(
    title: str = typer.Option("", "--title", "-t", help="Note title"),
    body: str = typer.Option("", "--body", "-b", help="Body of a plain-text note"),
    items: list[str] = typer.Option([], "--item", "-i", help="Checklist line (makes a checklist)"),
    labels: list[str] = typer.Option([], "--label", "-l", help="Label to attach"),
) -> None:
    """
    Create a note in the active folder.

    Examples:
        cli.py notes add -t "Groceries" -i Milk -i Eggs -l home
        cli.py notes add -b "Call the dentist"
    """
    data = NoteCreate(
        type=NoteType.LIST if items else NoteType.NOTE,
        title=title,
        body="" if items else body,
        items=[ChecklistItem(body=item) for item in items],
        labels=frozenset(labels),
    )

    note = run_with_session(lambda session: session.store.create_note(data))
    console.print(f"[green]Created note {note.id}[/green]")


@app.command()
def trash(note_id: int = typer.Argument(..., help="Note ID")) -> None:
    """Move a note to the deleted folder."""
    result = run_with_session(lambda session: session.move_to_deleted(note_id))
    _report(result, f"Note {note_id} moved to deleted", f"Note {note_id} not found")


@app.command()
def archive(note_id: int = typer.Argument(..., help="Note ID")) -> None:
    """Move a note to the archive."""
    result = run_with_session(lambda session: session.move_to_archive(note_id))
    _report(result, f"Note {note_id} archived", f"Note {note_id} not found")


@app.command()
def restore(note_id: int = typer.Argument(..., help="Note ID")) -> None:
    """Move a note back to the active folder."""
    result = run_with_session(lambda session: session.restore(note_id))
    _report(result, f"Note {note_id} restored", f"Note {note_id} not found")


@app.command()
def purge(note_id: int = typer.Argument(..., help="Note ID")) -> None:
    """Permanently remove a note from the deleted folder."""
    result = run_with_session(lambda session: session.delete_forever(note_id))
    _report(result, f"Note {note_id} deleted forever", f"Note {note_id} not found")


@app.command("set-labels")
def set_labels(
    note_id: int = typer.Argument(..., help="Note ID"),
    labels: list[str] = typer.Option([], "--label", "-l", help="Label (repeat; none clears all)"),
) -> None:
    """Replace the labels of a note."""
    result = run_with_session(lambda session: session.update_labels(labels, note_id))
    _report(result, f"Labels of note {note_id} updated", f"Note {note_id} not found")
