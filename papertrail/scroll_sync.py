"""Keep the editor and both previews at the same fractional scroll position.

All surfaces share one ratio in [0, 1]. Whichever visible surface the user
scrolls becomes the source for that pass; its ratio is stored and pushed to
every other surface. Each surface carries its own small state machine:

    IDLE --push--> PROPAGATING --echo event--> IDLE

A surface stays PROPAGATING while any of its writes is still outstanding.
A scroll event matching one of those writes is its echo and is consumed
instead of starting a new pass, so surfaces never bounce offsets back and
forth, even when several writes land late and in order.

Surfaces that cannot take a position yet (a preview page that is reloading,
or one with no layout) keep the ratio as pending until the host reports
them ready.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)

# Offsets closer than this are treated as equal, which makes a repeated
# pass with no new input a fixed point.
SCROLL_EPSILON_PX = 0.5
# Asynchronous surfaces may land a pixel off the requested offset.
ECHO_TOLERANCE_PX = 1.5
# Writes an asynchronous surface may still owe an echo for.
MAX_OUTSTANDING_ECHOES = 8


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def ratio_from_offset(offset: float, extent: float) -> float | None:
    """Fractional position of `offset` within `extent`, or None without content."""
    if extent <= 0:
        return None
    return clamp(offset / extent, 0.0, 1.0)


def offset_from_ratio(ratio: float, extent: float, viewport: float) -> float | None:
    """Offset that shows `ratio`, or None when the surface cannot scroll."""
    extent = max(0.0, extent)
    max_offset = max(0.0, extent - max(0.0, viewport))
    if extent <= 0 or max_offset <= 0:
        return None
    return clamp(clamp(ratio, 0.0, 1.0) * extent, 0.0, max_offset)


class ScrollSurface(Protocol):
    """A vertically scrollable view measured in pixels."""

    applies_synchronously: bool

    def extent(self) -> float: ...

    def viewport(self) -> float: ...

    def offset(self) -> float: ...

    def set_offset(self, offset: float) -> None: ...

    def is_visible(self) -> bool: ...


class SurfaceState(Enum):
    IDLE = "idle"
    PROPAGATING = "propagating"


@dataclass
class _SurfaceLink:
    name: str
    surface: ScrollSurface
    ready: bool = True
    state: SurfaceState = SurfaceState.IDLE
    outstanding: deque[float] = field(default_factory=lambda: deque(maxlen=MAX_OUTSTANDING_ECHOES))
    pending_ratio: float | None = None


class ScrollRatioSynchronizer:
    def __init__(self) -> None:
        self._links: dict[str, _SurfaceLink] = {}
        self._last_ratio = 0.0
        # Off while no document is open; scroll events are then ignored.
        self.enabled = True

    @property
    def last_ratio(self) -> float:
        return self._last_ratio

    def register(self, name: str, surface: ScrollSurface, *, ready: bool = True) -> None:
        self._links[name] = _SurfaceLink(name=name, surface=surface, ready=ready)

    def state_of(self, name: str) -> SurfaceState:
        return self._links[name].state

    def pending_ratio_of(self, name: str) -> float | None:
        return self._links[name].pending_ratio

    def is_ready(self, name: str) -> bool:
        return self._links[name].ready

    def reset(self, ratio: float = 0.0) -> None:
        self._last_ratio = clamp(ratio, 0.0, 1.0)
        for link in self._links.values():
            self._settle(link)
            link.pending_ratio = None

    def surface_scrolled(self, name: str) -> bool:
        """Handle a scroll event. Returns True when it started a propagation pass."""
        link = self._links.get(name)
        if link is None:
            return False
        surface = link.surface
        if link.state is SurfaceState.PROPAGATING:
            if surface.applies_synchronously or self._consume_echo(link, surface.offset()):
                return False
            # The user moved the surface before our writes landed.
            self._settle(link)
        if not self.enabled or not link.ready or not surface.is_visible():
            return False
        ratio = ratio_from_offset(surface.offset(), surface.extent())
        if ratio is None:
            return False
        self._last_ratio = ratio
        logger.debug("Scroll source %s at ratio %.4f", name, ratio)
        for other in self._links.values():
            if other is not link:
                self._push(other, ratio)
        return True

    def surface_unready(self, name: str) -> None:
        """The surface is about to lose its layout (for example a page reload)."""
        link = self._links[name]
        link.ready = False
        self._settle(link)
        link.pending_ratio = self._last_ratio

    def surface_ready(self, name: str) -> bool:
        """The surface has a layout again; apply whatever position it missed."""
        link = self._links[name]
        link.ready = True
        if link.pending_ratio is None:
            return False
        return self._push(link, link.pending_ratio)

    def reapply(self, visible_only: bool = True) -> int:
        """Push the shared ratio again, e.g. after a mode switch or file open."""
        applied = 0
        for link in self._links.values():
            if visible_only and not link.surface.is_visible():
                continue
            if self._push(link, self._last_ratio):
                applied += 1
        return applied

    def jump_to(self, ratio: float) -> int:
        """Move every surface to `ratio`, e.g. for outline navigation."""
        self._last_ratio = clamp(ratio, 0.0, 1.0)
        logger.debug("Jump to ratio %.4f", self._last_ratio)
        applied = 0
        for link in self._links.values():
            if self._push(link, self._last_ratio):
                applied += 1
        return applied

    def _push(self, link: _SurfaceLink, ratio: float) -> bool:
        if not link.ready:
            link.pending_ratio = ratio
            return False
        surface = link.surface
        target = offset_from_ratio(ratio, surface.extent(), surface.viewport())
        if target is None:
            link.pending_ratio = ratio
            return False
        link.pending_ratio = None
        # Compare against the last write still in flight, not a stale position.
        current = link.outstanding[-1] if link.outstanding else surface.offset()
        if abs(current - target) <= SCROLL_EPSILON_PX:
            return True
        link.state = SurfaceState.PROPAGATING
        link.outstanding.append(target)
        surface.set_offset(target)
        if surface.applies_synchronously:
            self._settle(link)
        return True

    @staticmethod
    def _consume_echo(link: _SurfaceLink, offset: float) -> bool:
        """Match `offset` against outstanding writes, oldest first.

        A match drops that write and every older one, since a surface may
        coalesce several writes into a single scroll event.
        """
        for index, target in enumerate(link.outstanding):
            if abs(offset - target) <= ECHO_TOLERANCE_PX:
                for _ in range(index + 1):
                    link.outstanding.popleft()
                if not link.outstanding:
                    link.state = SurfaceState.IDLE
                return True
        return False

    @staticmethod
    def _settle(link: _SurfaceLink) -> None:
        link.outstanding.clear()
        link.state = SurfaceState.IDLE
