"""Debounced preview rendering."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer

DEFAULT_DEBOUNCE_MS = 250


class RenderScheduler(QObject):
    """Coalesce bursts of edits into one render after an idle window.

    Every `schedule()` restarts the single-shot countdown, so only the last
    edit of a burst triggers a render, and it always does.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int = DEFAULT_DEBOUNCE_MS, parent=None) -> None:
        super().__init__(parent)
        self._callback = callback
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(interval_ms)))
        self._timer.timeout.connect(self._fire)

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def schedule(self) -> None:
        # start() on an active timer restarts the countdown.
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def flush(self) -> bool:
        """Render immediately if a render is pending. Returns whether it fired."""
        if not self._timer.isActive():
            return False
        self._timer.stop()
        self._fire()
        return True

    def _fire(self) -> None:
        self._callback()
