"""Qt widgets exposed as scroll surfaces for the ratio synchronizer."""

from __future__ import annotations

import json

from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QPlainTextEdit


class EditorSurface(QObject):
    """Plain-text editor measured as `line_count * line_height` pixels.

    The editor scrolls by whole lines, so its extent is approximated from the
    line count rather than a layout; wrapped lines make it drift from the
    preview.
    """

    scrolled = Signal()
    applies_synchronously = True

    def __init__(self, editor: QPlainTextEdit) -> None:
        super().__init__(editor)
        self._editor = editor
        editor.verticalScrollBar().valueChanged.connect(lambda _value: self.scrolled.emit())

    def line_height(self) -> float:
        return float(max(1, self._editor.fontMetrics().lineSpacing()))

    def extent(self) -> float:
        return self._editor.document().blockCount() * self.line_height()

    def viewport(self) -> float:
        return float(max(1, self._editor.viewport().height()))

    def offset(self) -> float:
        return self._editor.verticalScrollBar().value() * self.line_height()

    def set_offset(self, offset: float) -> None:
        self._editor.verticalScrollBar().setValue(int(round(offset / self.line_height())))

    def is_visible(self) -> bool:
        return self._editor.isVisible()


class WebPreviewSurface(QObject):
    """Rendered preview in a web view; scrolling is applied asynchronously."""

    scrolled = Signal()
    ready = Signal()
    unready = Signal()
    applies_synchronously = False

    def __init__(self, view: QWebEngineView) -> None:
        super().__init__(view)
        self._view = view
        self._loaded = False
        page = view.page()
        page.scrollPositionChanged.connect(lambda _pos: self.scrolled.emit())
        page.contentsSizeChanged.connect(self._on_contents_size_changed)
        view.loadFinished.connect(self._on_load_finished)

    @property
    def view(self) -> QWebEngineView:
        return self._view

    def set_html(self, html_doc: str, base_url: QUrl) -> None:
        # Loading resets the page scroll position; hold positions until done.
        self._loaded = False
        self.unready.emit()
        self._view.setHtml(html_doc, base_url)

    def _on_load_finished(self, _ok: bool) -> None:
        self._loaded = True
        self.ready.emit()

    def _on_contents_size_changed(self, _size) -> None:
        # Late layout (images, fonts) can grow the page after loadFinished.
        if self._loaded:
            self.ready.emit()

    def _zoom(self) -> float:
        return self._view.zoomFactor() or 1.0

    def extent(self) -> float:
        return float(self._view.page().contentsSize().height())

    def viewport(self) -> float:
        return self._view.height() / self._zoom()

    def offset(self) -> float:
        return float(self._view.page().scrollPosition().y())

    def set_offset(self, offset: float) -> None:
        y_json = json.dumps(float(offset))
        self._view.page().runJavaScript(f"window.scrollTo(0, {y_json});")

    def is_visible(self) -> bool:
        return self._view.isVisible()
