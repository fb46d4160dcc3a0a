"""
Label Commands.
"""

import typer
from rich.console import Console
from rich.table import Table

from jotter.cli import run_with_session
from jotter.services.session import NotebookSession, OperationResult

app = typer.Typer(help="Label commands")
console = Console()


def _report(result: OperationResult[bool], done: str, refused: str) -> None:
    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(1)
    if not result.value:
        console.print(f"[yellow]{refused}[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]{done}[/green]")


@app.command("list")
def list_labels() -> None:
    """List every label with the number of active notes using it."""

    async def _work(session: NotebookSession) -> list[tuple[str, int]]:
        names = await session.labels.get()
        return [(name, len(await session.notes_by_label(name).get())) for name in names]

    rows = run_with_session(_work)

    table = Table(title="Labels")
    table.add_column("Label", style="magenta")
    table.add_column("Notes", justify="right")
    for name, count in rows:
        table.add_row(name, str(count))
    console.print(table)


@app.command()
def add(name: str = typer.Argument(..., help="Label name")) -> None:
    """Create a label."""
    result = run_with_session(lambda session: session.insert_label(name))
    _report(result, f"Label '{name}' created", f"Label '{name}' already exists")


@app.command()
def rename(
    old: str = typer.Argument(..., help="Current name"),
    new: str = typer.Argument(..., help="New name"),
) -> None:
    """
    Rename a label on every note that carries it.

    Examples:
        cli.py labels rename work office
    """
    result = run_with_session(lambda session: session.rename_label(old, new))
    _report(
        result,
        f"Label '{old}' renamed to '{new}'",
        f"Cannot rename: '{old}' does not exist or '{new}' is taken",
    )


@app.command()
def delete(
    name: str = typer.Argument(..., help="Label name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a label and remove it from every note."""
    if not yes:
        typer.confirm(f"Delete label '{name}' from all notes?", abort=True)
    result = run_with_session(lambda session: session.delete_label(name))
    _report(result, f"Label '{name}' deleted", f"Label '{name}' not found")
