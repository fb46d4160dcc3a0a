"""
Legacy Store.

Read access to the pre-database storage format, kept only so existing data
can be migrated once:

    <data_dir>/notes/*.xml       active notes, one file per note
    <data_dir>/deleted/*.xml     deleted notes
    <data_dir>/archived/*.xml    archived notes
    <data_dir>/shared_prefs/labelsPreferences.xml
                                 preferences map holding the label set
    <data_dir>/.migrating/       files moved aside by a migration in progress

A note file looks like:

    <note>                       (or <list> for a checklist)
      <date-created>1600000000000</date-created>
      <title>Groceries</title>
      <body>Milk and eggs</body>
      <span><bold>true</bold><start>0</start><end>4</end></span>
      <item><text>Milk</text><checked>false</checked></item>
      <label>home</label>
    </note>

The preferences file is an Android-style map:

    <map><set name="labelItems"><string>home</string></set></map>

Everything in this module is blocking file I/O; callers run it through
the I/O pool.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from xml.etree import ElementTree

from pydantic import ValidationError as PydanticValidationError

from jotter.core.exceptions import LegacyFormatError
from jotter.core.logging import get_logger
from jotter.core.utils import from_epoch_millis
from jotter.schemas.note import ChecklistItem, Folder, NoteData, NoteType, SpanRepresentation

logger = get_logger(__name__)

_NOTE_TYPES = {"note": NoteType.NOTE, "list": NoteType.LIST}
_SPAN_FLAGS = ("bold", "italic", "link", "monospace", "strikethrough")


def _flag(element: ElementTree.Element, tag: str) -> bool:
    return (element.findtext(tag) or "").strip().lower() == "true"


def _integer(element: ElementTree.Element, tag: str, path: Path) -> int:
    text = element.findtext(tag)
    try:
        return int((text or "").strip())
    except ValueError as e:
        raise LegacyFormatError(f"{path.name}: <{tag}> is not a number: {text!r}") from e


def read_note(path: Path, folder: Folder) -> NoteData:
    """
    Parse one legacy note file.

    The creation date comes from <date-created>, falling back to the file
    name, which the legacy store set to the creation time in milliseconds.

    Raises:
        LegacyFormatError: If the file is not a readable legacy note
    """
    try:
        root = ElementTree.parse(path).getroot()
    except (ElementTree.ParseError, UnicodeDecodeError) as e:
        raise LegacyFormatError(f"{path.name}: {e}") from e

    note_type = _NOTE_TYPES.get(root.tag)
    if note_type is None:
        raise LegacyFormatError(f"{path.name}: unknown root element <{root.tag}>")

    if root.find("date-created") is not None:
        millis = _integer(root, "date-created", path)
    elif path.stem.isdigit():
        millis = int(path.stem)
    else:
        raise LegacyFormatError(f"{path.name}: missing <date-created>")

    labels = frozenset(
        label.text.strip() for label in root.findall("label") if label.text and label.text.strip()
    )

    try:
        spans = [
            SpanRepresentation(
                **{flag: _flag(span, flag) for flag in _SPAN_FLAGS},
                start=_integer(span, "start", path),
                end=_integer(span, "end", path),
            )
            for span in root.findall("span")
        ] if note_type is NoteType.NOTE else []

        items = [
            ChecklistItem(body=item.findtext("text") or "", checked=_flag(item, "checked"))
            for item in root.findall("item")
        ] if note_type is NoteType.LIST else []

        return NoteData(
            type=note_type,
            folder=folder,
            title=root.findtext("title") or "",
            timestamp=from_epoch_millis(millis),
            body=(root.findtext("body") or "") if note_type is NoteType.NOTE else "",
            spans=spans,
            items=items,
            labels=labels,
        )
    except (PydanticValidationError, OverflowError, OSError) as e:
        raise LegacyFormatError(f"{path.name}: {e}") from e


class LegacyPreferences:
    """A single Android-style shared preferences file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> ElementTree.Element | None:
        if not self.path.is_file():
            return None
        try:
            return ElementTree.parse(self.path).getroot()
        except ElementTree.ParseError as e:
            raise LegacyFormatError(f"{self.path.name}: {e}") from e

    def get_string_set(self, key: str) -> set[str]:
        root = self._load()
        if root is None:
            return set()
        for entry in root.findall("set"):
            if entry.get("name") == key:
                return {
                    value.text.strip()
                    for value in entry.findall("string")
                    if value.text and value.text.strip()
                }
        return set()

    def remove(self, key: str) -> None:
        """Drop one entry and write the map back."""
        root = self._load()
        if root is None:
            return
        for entry in [child for child in root if child.get("name") == key]:
            root.remove(entry)
        ElementTree.ElementTree(root).write(self.path, encoding="utf-8", xml_declaration=True)


@dataclass
class LegacyNote:
    """A parsed legacy note and the file it came from."""

    path: Path
    note: NoteData


@dataclass
class LegacyScan:
    """Everything the legacy store currently holds."""

    notes: list[LegacyNote] = field(default_factory=list)
    labels: set[str] = field(default_factory=set)
    skipped: list[Path] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.notes and not self.labels


class LegacyStore:
    """The legacy folders and label preferences under one data directory."""

    def __init__(
        self,
        data_dir: Path,
        notes_dir: str = "notes",
        deleted_dir: str = "deleted",
        archived_dir: str = "archived",
        preferences_file: str = "shared_prefs/labelsPreferences.xml",
        labels_key: str = "labelItems",
    ) -> None:
        self.data_dir = Path(data_dir)
        self.folders = {
            Folder.NOTES: self.data_dir / notes_dir,
            Folder.DELETED: self.data_dir / deleted_dir,
            Folder.ARCHIVED: self.data_dir / archived_dir,
        }
        self.preferences = LegacyPreferences(self.data_dir / preferences_file)
        self.labels_key = labels_key
        self.staging_dir = self.data_dir / ".migrating"

    @classmethod
    def from_config(cls) -> "LegacyStore":
        from jotter.core.config import get_app_config, get_data_dir

        legacy = get_app_config().storage.legacy
        return cls(
            get_data_dir(),
            notes_dir=legacy.notes_dir,
            deleted_dir=legacy.deleted_dir,
            archived_dir=legacy.archived_dir,
            preferences_file=legacy.preferences_file,
            labels_key=legacy.labels_key,
        )

    def scan(self) -> LegacyScan:
        """
        Parse every legacy note and the label set.

        A file that fails to parse is logged and reported in `skipped`; it
        does not stop the scan.
        """
        scan = LegacyScan()
        for folder, directory in self.folders.items():
            if not directory.is_dir():
                continue
            for path in sorted(p for p in directory.iterdir() if p.is_file()):
                try:
                    scan.notes.append(LegacyNote(path=path, note=read_note(path, folder)))
                except LegacyFormatError as e:
                    logger.warning(
                        "Skipping unreadable legacy note",
                        extra={"path": str(path), "error": e.message},
                    )
                    scan.skipped.append(path)

        try:
            scan.labels = self.preferences.get_string_set(self.labels_key)
        except LegacyFormatError as e:
            logger.warning(
                "Skipping unreadable legacy label preferences",
                extra={"path": str(self.preferences.path), "error": e.message},
            )
        return scan

    def stage(self, paths: list[Path], clear_labels: bool) -> None:
        """
        Move migrated note files aside and clear the label set.

        Files go to the staging directory, keeping their path relative to
        the data directory; the preferences file is copied there before
        the label entry is removed. unstage() puts everything back,
        discard_staged() drops it for good.
        """
        for path in paths:
            target = self.staging_dir / path.relative_to(self.data_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            path.replace(target)
        if clear_labels:
            backup = self.staging_dir / self.preferences.path.relative_to(self.data_dir)
            backup.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.preferences.path, backup)
            self.clear_labels()

    def unstage(self) -> int:
        """
        Restore everything left in the staging directory.

        Returns:
            Number of files restored
        """
        if not self.staging_dir.is_dir():
            return 0
        restored = 0
        staged_files = sorted(
            p for p in self.staging_dir.rglob("*") if p.is_file() and p != self._committed_marker
        )
        for staged in staged_files:
            original = self.data_dir / staged.relative_to(self.staging_dir)
            original.parent.mkdir(parents=True, exist_ok=True)
            staged.replace(original)
            restored += 1
        shutil.rmtree(self.staging_dir)
        return restored

    def discard_staged(self) -> None:
        if self.staging_dir.is_dir():
            shutil.rmtree(self.staging_dir)

    def mark_committed(self) -> None:
        """Record that the staged files are in the database and may be dropped."""
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        self._committed_marker.touch()

    def recover_staged(self) -> int:
        """
        Finish a migration that was interrupted after staging.

        Committed leftovers are deleted; uncommitted ones are restored.

        Returns:
            Number of files restored
        """
        if self._committed_marker.is_file():
            self.discard_staged()
            return 0
        return self.unstage()

    @property
    def _committed_marker(self) -> Path:
        return self.staging_dir / ".committed"

    def clear_labels(self) -> None:
        self.preferences.remove(self.labels_key)
