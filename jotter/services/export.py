"""
Note Exporter.

Renders a single note for sharing, as HTML, plain text or PDF, into a
scratch export folder. The folder is emptied before every render so it
only ever holds the file just produced.

File names come from the note title (or the first two words of the body)
and have path separators removed, so a title such as "../../etc/passwd"
can never place a file outside the export folder.

PDF rendering is delegated to a PdfGenerator collaborator that turns the
HTML rendering into a PDF file.
"""

import shutil
from dataclasses import dataclass
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Protocol

from babel.dates import format_date

from jotter.core.concurrency import run_blocking
from jotter.core.exceptions import ExportError
from jotter.core.logging import get_logger, log_with_source
from jotter.schemas.note import NoteData, NoteType, SpanRepresentation

logger = get_logger(__name__)

MAX_FILE_NAME_LENGTH = 64
_UNSAFE_FILE_NAME_CHARACTERS = ("/", "\\", "\x00")

# Outermost first; every segment opens and closes tags in this order.
_SPAN_TAGS = (
    ("bold", "b"),
    ("italic", "i"),
    ("monospace", "tt"),
    ("strikethrough", "strike"),
)


class PdfGenerator(Protocol):
    """Turns an HTML document into a PDF file."""

    async def generate(self, html: str, destination: Path) -> bool:
        """Write the PDF to destination. Returns False on failure."""
        ...


@dataclass(frozen=True)
class DisplaySettings:
    """User display preferences that affect rendered exports."""

    show_date_created: bool = True
    date_format: str = "EEE d MMM yyyy"

    @classmethod
    def from_config(cls) -> "DisplaySettings":
        from jotter.core.config import get_app_config

        display = get_app_config().application.display
        return cls(show_date_created=display.show_date_created, date_format=display.date_format)


def file_name(note: NoteData) -> str:
    """
    Human-readable file name (without extension) for a note.

    Uses the title, or when it is empty the first two words of the body,
    each followed by a space. Truncated to 64 characters, then stripped
    of path separators.
    """
    if note.title:
        name = note.title
    else:
        words = note.plain_body().split(" ")[:2]
        name = "".join(f"{word} " for word in words)

    name = name[:MAX_FILE_NAME_LENGTH]
    for character in _UNSAFE_FILE_NAME_CHARACTERS:
        name = name.replace(character, "")
    return name


def spans_to_html(body: str, spans: list[SpanRepresentation]) -> str:
    """
    Escape body text and apply formatting spans as inline tags.

    The body is cut at every span boundary; each piece is wrapped in the
    tags of the spans covering it, so overlapping spans still produce
    properly nested markup.
    """
    length = len(body)
    ranges = [(min(s.start, length), min(s.end, length), s) for s in spans]
    cuts = sorted({0, length, *(r[0] for r in ranges), *(r[1] for r in ranges)})

    pieces = []
    for start, end in zip(cuts, cuts[1:]):
        text = escape(body[start:end]).replace("\n", "<br>")
        covering = [s for (s_start, s_end, s) in ranges if s_start <= start and end <= s_end]

        for flag, tag in reversed(_SPAN_TAGS):
            if any(getattr(s, flag) for s in covering):
                text = f"<{tag}>{text}</{tag}>"

        links = [s for s in covering if s.link]
        if links:
            href = escape(body[links[0].start:links[0].end], quote=True)
            text = f'<a href="{href}">{text}</a>'
        pieces.append(text)
    return "".join(pieces)


class NoteExporter:
    """Renders notes to shareable files."""

    def __init__(
        self,
        export_dir: Path,
        settings: DisplaySettings | None = None,
        locale: str = "en_US",
        pdf_generator: PdfGenerator | None = None,
    ) -> None:
        self.export_dir = Path(export_dir)
        self.settings = settings or DisplaySettings()
        self.locale = locale
        self._pdf_generator = pdf_generator

    @classmethod
    def from_config(cls, pdf_generator: PdfGenerator | None = None) -> "NoteExporter":
        from jotter.core.config import get_app_config, get_export_dir

        return cls(
            get_export_dir(),
            settings=DisplaySettings.from_config(),
            locale=get_app_config().application.display.locale,
            pdf_generator=pdf_generator,
        )

    def format_date(self, timestamp: datetime) -> str:
        return format_date(timestamp, format=self.settings.date_format, locale=self.locale)

    def html(self, note: NoteData) -> str:
        parts = [
            '<html><head><meta charset="UTF-8" /></head><body>',
            f"<h2>{escape(note.title)}</h2>",
        ]
        if self.settings.show_date_created:
            parts.append(f"<p>{escape(self.format_date(note.timestamp))}</p>")

        if note.type is NoteType.LIST:
            parts.append("<ol>")
            parts.extend(f"<li>{escape(item.body)}</li>" for item in note.items)
            parts.append("</ol>")
        else:
            parts.append(f"<p>{spans_to_html(note.body, note.spans)}</p>")

        parts.append("</body></html>")
        return "".join(parts)

    def plain_text(self, note: NoteData) -> str:
        parts = []
        if note.title:
            parts.append(f"{note.title}\n\n")
        if self.settings.show_date_created:
            parts.append(f"{self.format_date(note.timestamp)}\n\n")
        parts.append(note.plain_body())
        return "".join(parts)

    def _prepare_export_dir(self) -> Path:
        """Create the export folder if needed and remove everything in it."""
        self.export_dir.mkdir(parents=True, exist_ok=True)
        for entry in self.export_dir.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        return self.export_dir

    def _write_text(self, name: str, content: str) -> Path:
        path = self._prepare_export_dir() / name
        path.write_text(content, encoding="utf-8")
        return path

    async def write_html(self, note: NoteData) -> Path:
        path = await run_blocking(self._write_text, f"{file_name(note)}.html", self.html(note))
        log_with_source(logger, "export", "debug", "HTML export written", path=str(path))
        return path

    async def write_plain_text(self, note: NoteData) -> Path:
        path = await run_blocking(self._write_text, f"{file_name(note)}.txt", self.plain_text(note))
        log_with_source(logger, "export", "debug", "Text export written", path=str(path))
        return path

    async def write_pdf(self, note: NoteData) -> Path:
        """
        Raises:
            ExportError: If no PDF generator is configured or generation fails
        """
        if self._pdf_generator is None:
            raise ExportError("PDF export is not available: no PDF generator configured")

        directory = await run_blocking(self._prepare_export_dir)
        path = directory / f"{file_name(note)}.pdf"
        if not await self._pdf_generator.generate(self.html(note), path):
            raise ExportError(f"PDF generation failed for {path.name}")
        log_with_source(logger, "export", "debug", "PDF export written", path=str(path))
        return path

    async def copy_to(self, source: Path, destination: Path) -> None:
        """Write a rendered file to a caller-chosen destination, replacing its content."""
        await run_blocking(shutil.copyfile, source, destination)
