"""Heading outline extraction for in-document navigation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

MIN_HEADING_LEVEL = 1
MAX_HEADING_LEVEL = 6

# ATX headings only: up to three leading spaces, 1-6 markers, required
# whitespace, then text with an optional closing `#` run.
HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class Heading:
    """One outline entry with its approximate position on the scroll axis."""

    text: str
    level: int
    scroll_ratio: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", int(_clamp(self.level, MIN_HEADING_LEVEL, MAX_HEADING_LEVEL)))
        object.__setattr__(self, "scroll_ratio", float(_clamp(self.scroll_ratio, 0.0, 1.0)))


def normalize_newlines(text: str) -> str:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n")


def iter_headings(markdown_text: str) -> Iterator[Heading]:
    """Yield headings in document order.

    The ratio maps the heading's line index linearly onto [0, 1], assuming a
    roughly uniform visual line height. It is an approximation of where the
    heading lands in the rendered preview, not a layout measurement.
    """
    lines = normalize_newlines(markdown_text).split("\n")
    max_line_index = max(1, len(lines) - 1)
    for index, line in enumerate(lines):
        match = HEADING_PATTERN.match(line)
        if match is None:
            continue
        text = match.group(2).strip()
        if not text:
            continue
        yield Heading(text=text, level=len(match.group(1)), scroll_ratio=index / max_line_index)


def extract_headings(markdown_text: str) -> list[Heading]:
    if not markdown_text:
        return []
    return list(iter_headings(markdown_text))
