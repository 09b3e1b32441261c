"""The open note: text, backing path, dirty flag, edit/view mode and theme."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from papertrail.renderer import Theme

APP_TITLE = "PaperTrail"


class Mode(Enum):
    VIEW = "view"
    EDIT = "edit"


class Document(QObject):
    """Single source of truth observed by the outline, renderer and views.

    Every setter emits its typed signal only when the value actually changes.
    """

    textChanged = Signal(str)
    filePathChanged = Signal(object)
    dirtyChanged = Signal(bool)
    modeChanged = Signal(object)
    themeChanged = Signal(object)

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._raw_text = ""
        self._file_path: Path | None = None
        self._is_dirty = False
        self._mode = Mode.VIEW
        self._theme = Theme.DARK

    @property
    def raw_text(self) -> str:
        return self._raw_text

    @property
    def file_path(self) -> Path | None:
        return self._file_path

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def has_file(self) -> bool:
        return self._file_path is not None

    @property
    def is_edit_mode(self) -> bool:
        return self._mode is Mode.EDIT

    @property
    def window_title(self) -> str:
        name = self._file_path.name if self._file_path is not None else "No file"
        return f"{APP_TITLE} - {name} *" if self._is_dirty else f"{APP_TITLE} - {name}"

    def set_text(self, text: str, *, mark_dirty: bool = True) -> bool:
        text = text or ""
        if text == self._raw_text:
            return False
        self._raw_text = text
        if mark_dirty:
            self.set_dirty(True)
        self.textChanged.emit(text)
        return True

    def set_file_path(self, path: Path | None) -> None:
        if path == self._file_path:
            return
        self._file_path = path
        self.filePathChanged.emit(path)

    def set_dirty(self, dirty: bool) -> None:
        if dirty == self._is_dirty:
            return
        self._is_dirty = dirty
        self.dirtyChanged.emit(dirty)

    def set_mode(self, mode: Mode) -> None:
        if mode is self._mode:
            return
        self._mode = mode
        self.modeChanged.emit(mode)

    def set_theme(self, theme: Theme) -> None:
        if theme is self._theme:
            return
        self._theme = theme
        self.themeChanged.emit(theme)

    def clear(self) -> None:
        """Forget the backing file and its contents."""
        self.set_file_path(None)
        self.set_text("", mark_dirty=False)
        self.set_dirty(False)
        self.set_mode(Mode.VIEW)
