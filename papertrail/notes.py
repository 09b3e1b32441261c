"""Reading, writing and deleting note files on disk."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")


class NoteError(Exception):
    """Base class for note file failures reported to the user as status text."""


class NoteNotFoundError(NoteError):
    pass


class UnsupportedNoteTypeError(NoteError):
    pass


class NoteIOError(NoteError):
    pass


def is_markdown_path(path: Path | str) -> bool:
    return Path(path).suffix.lower() in MARKDOWN_SUFFIXES


def timestamped_name(prefix: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{stamp}"


def read_note(path: Path) -> str:
    """Return note text, rejecting missing and non-markdown files."""
    if not path.is_file():
        raise NoteNotFoundError("File not found")
    if not is_markdown_path(path):
        raise UnsupportedNoteTypeError("Only markdown files are supported")
    try:
        # Undecodable bytes are replaced so any file still renders.
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise NoteIOError(str(exc)) from exc


def write_note(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text or "", encoding="utf-8")
    except OSError as exc:
        raise NoteIOError(str(exc)) from exc
    logger.info("Wrote %s (%d chars)", path, len(text or ""))


def delete_path(path: Path) -> None:
    """Delete a note file or a whole category folder."""
    try:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
    except OSError as exc:
        raise NoteIOError(str(exc)) from exc
    logger.info("Deleted %s", path)


def unique_path(parent: Path, stem: str, suffix: str = "") -> Path:
    """Pick the first free `stem`, `stem_1`, `stem_2`, ... under `parent`."""
    candidate = parent / f"{stem}{suffix}"
    counter = 1
    while candidate.exists():
        candidate = parent / f"{stem}_{counter}{suffix}"
        counter += 1
    return candidate
