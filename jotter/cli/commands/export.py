"""
Export Commands.

Render a single note as HTML or plain text and optionally copy the result
to a chosen destination.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from jotter.cli import run_with_session
from jotter.services.session import NotebookSession, OperationResult

app = typer.Typer(help="Note export commands")
console = Console()


class ExportFormat(str, Enum):
    HTML = "html"
    TXT = "txt"


@app.command("note")
def export_note(
    note_id: int = typer.Argument(..., help="Note ID"),
    fmt: ExportFormat = typer.Option(ExportFormat.HTML, "--format", "-f", help="Output format"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Copy the file here"),
) -> None:
    """
    Render a note to the export folder.

    Examples:
        cli.py export note 12
        cli.py export note 12 --format txt -o ~/shopping.txt
    """

    async def _work(session: NotebookSession) -> OperationResult[Path] | None:
        note = await session.store.get_note_or_none(note_id)
        if note is None:
            return None
        if fmt is ExportFormat.TXT:
            rendered = await session.plain_text_file(note)
        else:
            rendered = await session.html_file(note)

        if rendered.success and output is not None:
            copied = await session.save_file_to(rendered.value, output)
            if not copied.success:
                return OperationResult(success=False, error=copied.error)
            return OperationResult(success=True, value=output)
        return rendered

    result = run_with_session(_work)
    if result is None:
        console.print(f"[red]Note {note_id} not found[/red]")
        raise typer.Exit(1)
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Written {result.value}[/green]")
