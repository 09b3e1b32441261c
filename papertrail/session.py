"""Application session: the open note plus every user-facing operation.

Document changes fan out to independent subscribers: the outline is rebuilt
synchronously, the preview is re-rendered through the debounce scheduler.
Operations never raise; failures end up as status text.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from papertrail.config import Settings, expand_path_text, load_markdown_template, load_settings, save_settings
from papertrail.document import Document, Mode
from papertrail.explorer import ExplorerNode, build_explorer_tree, find_node, is_path_inside, path_equals
from papertrail.notes import (
    NoteError,
    NoteIOError,
    delete_path,
    is_markdown_path,
    read_note,
    timestamped_name,
    unique_path,
    write_note,
)
from papertrail.outline import Heading, extract_headings
from papertrail.renderer import MarkdownRenderer, RenderedPreview, Theme
from papertrail.scheduler import DEFAULT_DEBOUNCE_MS, RenderScheduler
from papertrail.scroll_sync import ScrollRatioSynchronizer

logger = logging.getLogger(__name__)


class NoteSession(QObject):
    headingsChanged = Signal(list)
    previewChanged = Signal(object)
    statusChanged = Signal(str)
    explorerChanged = Signal(list)
    editorTextRequested = Signal(str)
    selectionRequested = Signal(object)

    def __init__(
        self,
        renderer: MarkdownRenderer | None = None,
        app_dir: Path | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        root_override: Path | None = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._app_dir = app_dir
        self.renderer = renderer or MarkdownRenderer()
        self.document = Document(self)
        self.scroll = ScrollRatioSynchronizer()
        self.scroll.enabled = False
        self.scheduler = RenderScheduler(self.render_now, debounce_ms, self)
        self.headings: list[Heading] = []
        self.preview: RenderedPreview | None = None
        self.explorer_items: list[ExplorerNode] = []
        self.selected_item: ExplorerNode | None = None
        self.status_message = "Ready"

        self.document.textChanged.connect(self._refresh_outline)
        self.document.textChanged.connect(self._schedule_render)
        self.document.themeChanged.connect(self._on_theme_changed)
        self.document.modeChanged.connect(self._on_mode_changed)
        self.document.filePathChanged.connect(self._on_file_path_changed)

        if root_override is not None:
            self.root_path = Path(expand_path_text(str(root_override)))
        else:
            self.root_path = load_settings(app_dir).root_path(app_dir)
        self._ensure_root()
        self.load_explorer()

    # -- subscribers -----------------------------------------------------

    def _refresh_outline(self, text: str) -> None:
        self.headings = extract_headings(text)
        self.headingsChanged.emit(self.headings)

    def _schedule_render(self, _text: str) -> None:
        self.scheduler.schedule()

    def _on_theme_changed(self, theme: Theme) -> None:
        # A rendered preview must never lag behind the active theme.
        self.render_now()
        self._set_status("Markdown light mode" if theme is Theme.LIGHT else "Markdown dark mode")

    def _on_mode_changed(self, mode: Mode) -> None:
        self._set_status("Markdown edit mode" if mode is Mode.EDIT else "Markdown view mode")
        if mode is Mode.EDIT:
            self.editorTextRequested.emit(self.document.raw_text)

    def _on_file_path_changed(self, path: Path | None) -> None:
        self.scroll.enabled = path is not None

    def _set_status(self, message: str) -> None:
        self.status_message = message
        self.statusChanged.emit(message)

    # -- rendering -------------------------------------------------------

    def render_now(self) -> RenderedPreview:
        self.scheduler.cancel()
        path = self.document.file_path
        self.preview = self.renderer.render(
            self.document.raw_text,
            self.document.theme,
            title=path.name if path is not None else "",
        )
        self.previewChanged.emit(self.preview)
        return self.preview

    # -- editing and modes -----------------------------------------------

    def set_text_from_editor(self, text: str) -> None:
        self.document.set_text(text, mark_dirty=True)

    def switch_to_view(self) -> None:
        self.document.set_mode(Mode.VIEW)
        self.scheduler.flush()

    def switch_to_edit(self) -> None:
        if self.document.is_edit_mode:
            self.editorTextRequested.emit(self.document.raw_text)
            return
        self.document.set_mode(Mode.EDIT)

    def toggle_edit(self) -> None:
        if self.document.is_edit_mode:
            self.switch_to_view()
        else:
            self.switch_to_edit()

    def toggle_theme(self) -> None:
        self.document.set_theme(self.document.theme.toggled())

    def jump_to_heading(self, heading: Heading) -> int:
        return self.scroll.jump_to(heading.scroll_ratio)

    # -- files -----------------------------------------------------------

    def open_file(self, path: Path | str) -> bool:
        path = Path(path).expanduser() if str(path).strip() else Path()
        try:
            content = read_note(path)
        except NoteIOError as exc:
            logger.warning("Could not open %s: %s", path, exc)
            self._set_status(f"Open failed: {exc}")
            return False
        except NoteError as exc:
            self._set_status(str(exc))
            return False

        same_file = path_equals(self.document.file_path, path)
        text_changed = self.document.set_text(content, mark_dirty=False)
        self.document.set_file_path(path)
        self.document.set_dirty(False)
        self.document.set_mode(Mode.VIEW)
        if not same_file:
            self.scroll.reset()
        if not text_changed:
            self._refresh_outline(content)
        self.render_now()
        self.editorTextRequested.emit(content)
        self.scroll.reapply()
        self.select_path(path)
        logger.info("Opened %s", path)
        self._set_status(f"Opened: {path.name}")
        return True

    def open_selected(self) -> bool:
        item = self.selected_item
        if item is None or item.is_category:
            return False
        return self.open_file(item.full_path)

    def save(self) -> bool:
        if not self.document.raw_text.strip():
            self._set_status("Nothing to save")
            return False
        self._ensure_root()
        path = self.document.file_path
        if path is None:
            path = unique_path(self.root_path, timestamped_name("Note"), ".md")
        return self.save_to_path(path)

    def save_to_path(self, path: Path | str) -> bool:
        if not str(path).strip():
            return False
        path = Path(path).expanduser()
        try:
            write_note(path, self.document.raw_text)
        except NoteError as exc:
            logger.warning("Could not save %s: %s", path, exc)
            self._set_status(f"Save failed: {exc}")
            return False
        self.document.set_file_path(path)
        self.document.set_dirty(False)
        if is_markdown_path(path):
            self.load_explorer()
            self.select_path(path)
        self._set_status(f"Saved: {path.name}")
        return True

    def new_note(self) -> Path | None:
        self._ensure_root()
        path = unique_path(self.root_path, timestamped_name("Prompt"), ".md")
        try:
            write_note(path, load_markdown_template(self._app_dir))
        except NoteError as exc:
            logger.warning("Could not create %s: %s", path, exc)
            self._set_status(f"Create failed: {exc}")
            return None
        self.load_explorer()
        if not self.open_file(path):
            return None
        self.document.set_mode(Mode.EDIT)
        self._set_status(f"Created markdown: {path.name}")
        return path

    def create_directory(self, selected: ExplorerNode | None = None) -> Path | None:
        self._ensure_root()
        item = selected or self.selected_item
        parent = self.root_path
        if item is not None:
            parent = item.full_path if item.is_category else item.full_path.parent
        candidate = unique_path(parent, "NewFolder")
        try:
            candidate.mkdir(parents=True)
        except OSError as exc:
            self._set_status(f"Create folder failed: {exc}")
            return None
        self.load_explorer()
        self.select_path(candidate)
        self._set_status(f"Created folder: {candidate.name}")
        return candidate

    def delete_item(self, node: ExplorerNode | None = None) -> bool:
        item = node or self.selected_item
        if item is None:
            return False
        try:
            delete_path(item.full_path)
        except NoteError as exc:
            logger.warning("Could not delete %s: %s", item.full_path, exc)
            self._set_status(f"Delete failed: {exc}")
            return False

        open_path = self.document.file_path
        if open_path is not None and (
            path_equals(open_path, item.full_path)
            or (item.is_category and is_path_inside(open_path, item.full_path))
        ):
            self.document.clear()
            self.scroll.reset()
            self.render_now()
            self.editorTextRequested.emit("")

        self.load_explorer()
        self.selected_item = None
        self._set_status(f"Deleted folder: {item.name}" if item.is_category else f"Deleted file: {item.name}")
        return True

    # -- explorer --------------------------------------------------------

    def _ensure_root(self) -> None:
        try:
            self.root_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Could not create notes root %s: %s", self.root_path, exc)

    def set_root_path(self, folder: Path | str) -> None:
        if not str(folder).strip():
            return
        self.root_path = Path(expand_path_text(str(folder)))
        self._ensure_root()
        try:
            save_settings(Settings(markdown_root_path=str(self.root_path)), self._app_dir)
        except OSError as exc:
            logger.warning("Could not persist notes root: %s", exc)
        self.load_explorer()
        self.selected_item = None
        self._set_status(f"Folder opened: {self.root_path}")

    def load_explorer(self) -> list[ExplorerNode]:
        self.explorer_items = build_explorer_tree(self.root_path)
        self.explorerChanged.emit(self.explorer_items)
        return self.explorer_items

    def refresh_explorer(self) -> None:
        self.load_explorer()
        self._set_status("Explorer refreshed")

    def set_selected_item(self, node: ExplorerNode | None) -> None:
        self.selected_item = node

    def select_path(self, path: Path) -> ExplorerNode | None:
        node = find_node(self.explorer_items, path)
        if node is not None:
            self.selected_item = node
            self.selectionRequested.emit(node)
        return node
