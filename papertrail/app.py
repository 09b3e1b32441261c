#!/usr/bin/env python3
"""papertrail: markdown notes with a live, scroll-synchronized preview."""

from __future__ import annotations

import argparse
import html
import logging
import sys
from pathlib import Path

from PySide6.QtCore import Qt, QTimer, QUrl
from PySide6.QtGui import QAction, QFont, QKeySequence
from PySide6.QtWebEngineCore import QWebEngineSettings
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QSizePolicy,
    QSplitter,
    QStackedWidget,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from papertrail import __version__
from papertrail.document import Mode
from papertrail.explorer import ExplorerNode, path_equals
from papertrail.notes import is_markdown_path
from papertrail.outline import Heading
from papertrail.renderer import RenderedPreview, Theme
from papertrail.session import NoteSession
from papertrail.surfaces import EditorSurface, WebPreviewSurface

logger = logging.getLogger(__name__)

SURFACE_EDITOR = "editor"
SURFACE_PREVIEW_EDIT = "preview_edit"
SURFACE_PREVIEW_VIEW = "preview_view"
OUTLINE_INDENT = "    "
NODE_ROLE = Qt.ItemDataRole.UserRole
EDITOR_COLORS = {
    Theme.DARK: ("#1e1e1e", "#d4d4d4"),
    Theme.LIGHT: ("#f3f2ee", "#1f0909"),
}


def _build_preview_view() -> QWebEngineView:
    view = QWebEngineView()
    settings = view.settings()
    # Notes reference images next to the file; let the local page load them.
    settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessFileUrls, True)
    view.setContextMenuPolicy(Qt.ContextMenuPolicy.NoContextMenu)
    return view


class MainWindow(QMainWindow):
    def __init__(self, session: NoteSession):
        super().__init__()
        self.session = session
        self.setAcceptDrops(True)
        self.resize(1400, 900)

        self.tree = QTreeWidget()
        self.tree.setHeaderHidden(True)
        self.tree.setMinimumWidth(220)
        self.tree.currentItemChanged.connect(self._on_tree_current_changed)
        self.tree.itemActivated.connect(self._on_tree_item_activated)

        self.outline = QListWidget()
        self.outline.setMinimumWidth(200)
        self.outline.itemClicked.connect(self._on_outline_item_clicked)

        self.editor = QPlainTextEdit()
        self.editor.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        editor_font = QFont("Noto Sans Mono")
        editor_font.setStyleHint(QFont.StyleHint.Monospace)
        self.editor.setFont(editor_font)
        self.editor.textChanged.connect(self._on_editor_text_changed)

        self.preview_edit = _build_preview_view()
        self.preview_view = _build_preview_view()

        self.editor_surface = EditorSurface(self.editor)
        self.preview_edit_surface = WebPreviewSurface(self.preview_edit)
        self.preview_view_surface = WebPreviewSurface(self.preview_view)
        self._connect_surfaces()

        edit_page = QSplitter(Qt.Horizontal)
        edit_page.addWidget(self.editor)
        edit_page.addWidget(self.preview_edit)
        edit_page.setChildrenCollapsible(False)
        edit_page.setStretchFactor(0, 1)
        edit_page.setStretchFactor(1, 1)

        self.pages = QStackedWidget()
        self.pages.addWidget(self.preview_view)
        self.pages.addWidget(edit_page)

        buttons = [
            ("New", self.session.new_note),
            ("Open", self._pick_and_open_file),
            ("Save", self._save_current_file),
            ("Folder", self._pick_root_folder),
            ("New folder", lambda: self.session.create_directory()),
            ("Delete", self._confirm_and_delete_selected),
            ("Refresh", self.session.refresh_explorer),
            ("View", self.session.switch_to_view),
            ("Edit", self.session.toggle_edit),
            ("Theme", self.session.toggle_theme),
        ]
        top_bar = QHBoxLayout()
        top_bar.setContentsMargins(0, 0, 0, 0)
        for label, handler in buttons:
            button = QPushButton(label)
            button.clicked.connect(lambda _checked=False, h=handler: h())
            top_bar.addWidget(button)
        self.path_label = QLabel("")
        top_bar.addWidget(self.path_label, 1)

        top_bar_widget = QWidget()
        top_bar_widget.setLayout(top_bar)
        top_bar_widget.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(self.tree)
        self.splitter.addWidget(self.pages)
        self.splitter.addWidget(self.outline)
        self.splitter.setChildrenCollapsible(False)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 4)
        self.splitter.setStretchFactor(2, 1)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.addWidget(top_bar_widget)
        layout.addWidget(self.splitter, 1)
        self.setCentralWidget(central)

        session.statusChanged.connect(self._show_status)
        session.headingsChanged.connect(self._populate_outline)
        session.previewChanged.connect(self._show_preview)
        session.explorerChanged.connect(self._populate_tree)
        session.editorTextRequested.connect(self._set_editor_text)
        session.selectionRequested.connect(self._select_tree_node)
        session.document.modeChanged.connect(self._on_mode_changed)
        session.document.themeChanged.connect(self._apply_editor_theme)
        session.document.filePathChanged.connect(self._update_window_title)
        session.document.dirtyChanged.connect(self._update_window_title)

        self._populate_tree(session.explorer_items)
        self._apply_editor_theme(session.document.theme)
        self._update_window_title()
        self._add_shortcuts()
        self.session.render_now()
        self.statusBar().showMessage(session.status_message)

    def _connect_surfaces(self) -> None:
        scroll = self.session.scroll
        scroll.register(SURFACE_EDITOR, self.editor_surface)
        scroll.register(SURFACE_PREVIEW_EDIT, self.preview_edit_surface, ready=False)
        scroll.register(SURFACE_PREVIEW_VIEW, self.preview_view_surface, ready=False)
        self.editor_surface.scrolled.connect(lambda: scroll.surface_scrolled(SURFACE_EDITOR))
        for name, surface in (
            (SURFACE_PREVIEW_EDIT, self.preview_edit_surface),
            (SURFACE_PREVIEW_VIEW, self.preview_view_surface),
        ):
            surface.scrolled.connect(lambda n=name: scroll.surface_scrolled(n))
            surface.ready.connect(lambda n=name: scroll.surface_ready(n))
            surface.unready.connect(lambda n=name: scroll.surface_unready(n))

    def _add_shortcuts(self) -> None:
        """Register window-level keyboard shortcuts."""
        for sequence, handler in (
            (QKeySequence.StandardKey.Open, self._pick_and_open_file),
            (QKeySequence.StandardKey.Save, self._save_current_file),
            (QKeySequence.StandardKey.New, self.session.new_note),
            ("Ctrl+E", self.session.switch_to_edit),
        ):
            action = QAction(self)
            action.setShortcut(QKeySequence(sequence))
            action.triggered.connect(lambda _checked=False, h=handler: h())
            self.addAction(action)

    # -- session -> widgets ----------------------------------------------

    def _show_status(self, message: str) -> None:
        self.statusBar().showMessage(message)

    def _update_window_title(self, *_args) -> None:
        self.setWindowTitle(self.session.document.window_title)
        path = self.session.document.file_path
        if path is None:
            self.path_label.setText("")
            return
        try:
            self.path_label.setText(str(path.relative_to(self.session.root_path)))
        except ValueError:
            self.path_label.setText(str(path))

    def _base_url(self) -> QUrl:
        path = self.session.document.file_path
        folder = path.parent if path is not None else self.session.root_path
        try:
            return QUrl.fromLocalFile(f"{folder.resolve()}/")
        except OSError:
            return QUrl.fromLocalFile(f"{self.session.root_path}/")

    def _show_preview(self, preview: RenderedPreview) -> None:
        base_url = self._base_url()
        self.preview_edit_surface.set_html(preview.html, base_url)
        self.preview_view_surface.set_html(preview.html, base_url)

    def _set_editor_text(self, text: str) -> None:
        # textChanged fires back into the session, which ignores equal text.
        if self.editor.toPlainText() != text:
            self.editor.setPlainText(text)

    def _on_editor_text_changed(self) -> None:
        self.session.set_text_from_editor(self.editor.toPlainText())

    def _on_mode_changed(self, mode: Mode) -> None:
        self.pages.setCurrentIndex(1 if mode is Mode.EDIT else 0)
        # Hidden surfaces never saw the latest scrolls; catch them up after layout.
        QTimer.singleShot(0, self.session.scroll.reapply)

    def _apply_editor_theme(self, theme: Theme) -> None:
        background, foreground = EDITOR_COLORS[theme]
        self.editor.setStyleSheet(
            f"QPlainTextEdit {{ background-color: {background}; color: {foreground}; border: none; }}"
        )

    def _populate_outline(self, headings: list[Heading]) -> None:
        self.outline.clear()
        for heading in headings:
            item = QListWidgetItem(f"{OUTLINE_INDENT * (heading.level - 1)}{heading.text}")
            item.setData(NODE_ROLE, heading)
            self.outline.addItem(item)

    def _on_outline_item_clicked(self, item: QListWidgetItem) -> None:
        heading = item.data(NODE_ROLE)
        if isinstance(heading, Heading):
            self.session.jump_to_heading(heading)

    # -- explorer --------------------------------------------------------

    def _populate_tree(self, nodes: list[ExplorerNode]) -> None:
        self.tree.blockSignals(True)
        self.tree.clear()

        def add_children(parent, children: list[ExplorerNode]) -> None:
            for node in children:
                item = QTreeWidgetItem([node.name])
                item.setData(0, NODE_ROLE, node)
                if isinstance(parent, QTreeWidget):
                    parent.addTopLevelItem(item)
                else:
                    parent.addChild(item)
                add_children(item, node.children)
                item.setExpanded(True)

        add_children(self.tree, nodes)
        self.tree.blockSignals(False)

    def _iter_tree_items(self):
        stack = [self.tree.topLevelItem(i) for i in range(self.tree.topLevelItemCount())]
        while stack:
            item = stack.pop()
            yield item
            stack.extend(item.child(i) for i in range(item.childCount()))

    def _select_tree_node(self, node: ExplorerNode) -> None:
        for item in self._iter_tree_items():
            candidate = item.data(0, NODE_ROLE)
            if isinstance(candidate, ExplorerNode) and path_equals(candidate.full_path, node.full_path):
                self.tree.blockSignals(True)
                self.tree.setCurrentItem(item)
                self.tree.blockSignals(False)
                return

    def _on_tree_current_changed(self, current, _previous) -> None:
        node = current.data(0, NODE_ROLE) if current is not None else None
        self.session.set_selected_item(node if isinstance(node, ExplorerNode) else None)

    def _on_tree_item_activated(self, item: QTreeWidgetItem, _column: int) -> None:
        node = item.data(0, NODE_ROLE)
        if isinstance(node, ExplorerNode) and not node.is_category:
            self.session.open_file(node.full_path)

    def _confirm_and_delete_selected(self) -> None:
        node = self.session.selected_item
        if node is None:
            return
        kind = "folder and everything in it" if node.is_category else "file"
        reply = QMessageBox.question(
            self,
            "Delete",
            f"Delete the {kind} '{html.escape(node.name)}'?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.session.delete_item(node)

    # -- dialogs ---------------------------------------------------------

    def _pick_and_open_file(self) -> None:
        path, _selected_filter = QFileDialog.getOpenFileName(
            self,
            "Open Markdown File",
            str(self.session.root_path),
            "Markdown Files (*.md *.markdown);;All Files (*)",
        )
        if path:
            self.session.open_file(path)

    def _pick_root_folder(self) -> None:
        folder = QFileDialog.getExistingDirectory(self, "Select Markdown Folder", str(self.session.root_path))
        if folder:
            self.session.set_root_path(folder)

    def _save_current_file(self) -> None:
        if self.session.document.has_file:
            self.session.save()
            return
        path, _selected_filter = QFileDialog.getSaveFileName(
            self,
            "Save Markdown File",
            str(self.session.root_path / "untitled.md"),
            "Markdown Files (*.md *.markdown)",
        )
        if path:
            if not Path(path).suffix:
                path = f"{path}.md"
            self.session.save_to_path(path)

    # -- drag and drop ---------------------------------------------------

    def dragEnterEvent(self, event) -> None:  # noqa: N802
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:  # noqa: N802
        for url in event.mimeData().urls():
            if url.isLocalFile() and is_markdown_path(url.toLocalFile()):
                self.session.open_file(url.toLocalFile())
                event.acceptProposedAction()
                return


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="papertrail",
        description="Edit markdown notes with a live, scroll-synchronized preview.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Notes root folder (default: the folder saved in ~/.papertrail/settings.json).",
    )
    parser.add_argument("--debug", action="store_true", help="Log debug output to stderr.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    root = Path(args.path).expanduser() if args.path is not None else None
    if root is not None and root.exists() and not root.is_dir():
        print(f"Path is not a directory: {root}", file=sys.stderr)
        return 2

    app = QApplication(sys.argv)
    app.setApplicationName("papertrail")
    app.setDesktopFileName("papertrail")

    session = NoteSession(root_override=root)
    window = MainWindow(session)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
