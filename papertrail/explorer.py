"""Category/file tree of the notes root folder."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from papertrail.notes import is_markdown_path

logger = logging.getLogger(__name__)


@dataclass
class ExplorerNode:
    name: str
    full_path: Path
    is_category: bool
    children: list["ExplorerNode"] = field(default_factory=list)


def _sort_key(path: Path) -> str:
    return path.name.casefold()


def build_explorer_tree(root: Path) -> list[ExplorerNode]:
    """Folders first, then markdown files, each sorted case-insensitively.

    Symlinked folders are skipped; symlinked markdown files are listed.
    """
    if not root.is_dir():
        return []
    try:
        entries = list(root.iterdir())
    except OSError as exc:
        logger.debug("Skipping unreadable folder %s: %s", root, exc)
        return []

    nodes: list[ExplorerNode] = []
    # Linked folders are not followed.
    for directory in sorted((p for p in entries if p.is_dir() and not p.is_symlink()), key=_sort_key):
        nodes.append(
            ExplorerNode(
                name=directory.name,
                full_path=directory,
                is_category=True,
                children=build_explorer_tree(directory),
            )
        )
    for file_path in sorted((p for p in entries if p.is_file() and is_markdown_path(p)), key=_sort_key):
        nodes.append(ExplorerNode(name=file_path.name, full_path=file_path, is_category=False))
    return nodes


def _normalized(path: Path | str) -> str:
    try:
        resolved = Path(path).expanduser().resolve()
    except (OSError, RuntimeError):
        resolved = Path(os.path.abspath(path))
    return os.path.normcase(str(resolved)).rstrip("/\\").casefold()


def path_equals(left: Path | str | None, right: Path | str | None) -> bool:
    if not left or not right:
        return False
    return _normalized(left) == _normalized(right)


def is_path_inside(path: Path | str | None, directory: Path | str | None) -> bool:
    """True when `path` lies strictly below `directory`."""
    if not path or not directory:
        return False
    return _normalized(path).startswith(_normalized(directory) + os.sep)


def find_node(nodes: list[ExplorerNode], target: Path | str) -> ExplorerNode | None:
    for node in nodes:
        if path_equals(node.full_path, target):
            return node
        match = find_node(node.children, target)
        if match is not None:
            return match
    return None
