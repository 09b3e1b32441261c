"""Shared fixtures for papertrail tests."""

from __future__ import annotations

import os

# Headless runs: no display, and the web engine refuses its sandbox as root.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("QTWEBENGINE_DISABLE_SANDBOX", "1")

import pytest  # noqa: E402

from papertrail.renderer import MarkdownRenderer  # noqa: E402
from papertrail.session import NoteSession  # noqa: E402


class FakeSurface:
    """In-memory scroll surface.

    Synchronous surfaces report their own write back to the synchronizer
    immediately, like a Qt scroll bar; asynchronous ones queue the echo until
    `deliver_echoes()`, like a web page.
    """

    def __init__(self, extent: float, viewport: float, offset: float = 0.0, *, visible=True, synchronous=True):
        self._extent = extent
        self._viewport = viewport
        self._offset = offset
        self.visible = visible
        self.applies_synchronously = synchronous
        self.writes: list[float] = []
        self.on_scroll = None
        self._queued_echoes = 0

    def extent(self) -> float:
        return self._extent

    def viewport(self) -> float:
        return self._viewport

    def offset(self) -> float:
        return self._offset

    def is_visible(self) -> bool:
        return self.visible

    def resize(self, extent: float, viewport: float) -> None:
        self._extent = extent
        self._viewport = viewport

    def set_offset(self, offset: float) -> None:
        self.writes.append(offset)
        self._offset = offset
        if self.applies_synchronously:
            self._notify()
        else:
            self._queued_echoes += 1

    def user_scroll(self, offset: float):
        self._offset = offset
        return self._notify()

    def deliver_echoes(self) -> None:
        while self._queued_echoes:
            self._queued_echoes -= 1
            self._notify()

    def ratio(self) -> float:
        return self._offset / self._extent

    def _notify(self):
        if self.on_scroll is not None:
            return self.on_scroll()
        return None


class LaggingSurface(FakeSurface):
    """Asynchronous surface whose position only moves when an echo is delivered."""

    def __init__(self, extent: float, viewport: float, offset: float = 0.0, *, visible=True):
        super().__init__(extent, viewport, offset, visible=visible, synchronous=False)
        self._in_flight: list[float] = []

    def set_offset(self, offset: float) -> None:
        self.writes.append(offset)
        self._in_flight.append(offset)

    def deliver_echoes(self, count: int | None = None) -> None:
        if count is None:
            count = len(self._in_flight)
        for _ in range(count):
            self._offset = self._in_flight.pop(0)
            self._notify()

    def deliver_last_echo(self) -> None:
        """Land only the newest write, like a page that coalesces scrolls."""
        self._offset = self._in_flight[-1]
        self._in_flight.clear()
        self._notify()


def attach(synchronizer, name: str, surface: FakeSurface, *, ready: bool = True) -> FakeSurface:
    synchronizer.register(name, surface, ready=ready)
    surface.on_scroll = lambda: synchronizer.surface_scrolled(name)
    return surface


@pytest.fixture(scope="session")
def renderer():
    return MarkdownRenderer()


@pytest.fixture
def notes_root(tmp_path):
    root = tmp_path / "notes"
    root.mkdir()
    return root


@pytest.fixture
def session(qtbot, tmp_path, notes_root, renderer):
    return NoteSession(renderer=renderer, app_dir=tmp_path / "app", debounce_ms=20, root_override=notes_root)
