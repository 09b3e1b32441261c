"""Note files on disk and the folder tree built from them."""

from datetime import datetime

import pytest

from papertrail.explorer import build_explorer_tree, find_node, is_path_inside, path_equals
from papertrail.notes import (
    NoteIOError,
    NoteNotFoundError,
    UnsupportedNoteTypeError,
    delete_path,
    is_markdown_path,
    read_note,
    timestamped_name,
    unique_path,
    write_note,
)


@pytest.mark.parametrize(
    "name, expected",
    [("a.md", True), ("b.MARKDOWN", True), ("c.txt", False), ("md", False), ("d.md.bak", False)],
)
def test_is_markdown_path(name, expected):
    assert is_markdown_path(name) is expected


def test_timestamped_name():
    assert timestamped_name("Note", datetime(2024, 3, 5, 7, 8, 9)) == "Note_20240305_070809"


def test_read_note_roundtrips_utf8(tmp_path):
    path = tmp_path / "a.md"
    write_note(path, "# Café\n")

    assert read_note(path) == "# Café\n"


def test_read_note_replaces_undecodable_bytes(tmp_path):
    path = tmp_path / "bad.md"
    path.write_bytes(b"# ok \xff\xfe\n")

    assert read_note(path) == "# ok ��\n"


def test_read_note_rejects_missing_files(tmp_path):
    with pytest.raises(NoteNotFoundError, match="File not found"):
        read_note(tmp_path / "missing.md")


def test_read_note_rejects_other_file_types(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("text", encoding="utf-8")

    with pytest.raises(UnsupportedNoteTypeError, match="Only markdown files are supported"):
        read_note(path)


def test_write_note_creates_parent_folders(tmp_path):
    path = tmp_path / "deep" / "er" / "n.md"

    write_note(path, "x")

    assert path.read_text(encoding="utf-8") == "x"


def test_write_note_wraps_os_errors(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(NoteIOError):
        write_note(blocker / "child.md", "x")


def test_delete_path_handles_files_and_folders(tmp_path):
    note = tmp_path / "a.md"
    note.write_text("a", encoding="utf-8")
    folder = tmp_path / "cat"
    (folder / "sub").mkdir(parents=True)
    (folder / "sub" / "b.md").write_text("b", encoding="utf-8")

    delete_path(note)
    delete_path(folder)
    delete_path(tmp_path / "never-existed.md")

    assert not note.exists()
    assert not folder.exists()


def test_unique_path_counts_up(tmp_path):
    assert unique_path(tmp_path, "NewFolder") == tmp_path / "NewFolder"
    (tmp_path / "NewFolder").mkdir()
    (tmp_path / "NewFolder_1").mkdir()

    assert unique_path(tmp_path, "NewFolder") == tmp_path / "NewFolder_2"
    assert unique_path(tmp_path, "Note", ".md") == tmp_path / "Note.md"


def test_tree_lists_folders_first_then_markdown_files(tmp_path):
    (tmp_path / "b.md").write_text("", encoding="utf-8")
    (tmp_path / "A.md").write_text("", encoding="utf-8")
    (tmp_path / "skip.txt").write_text("", encoding="utf-8")
    (tmp_path / "zeta").mkdir()
    (tmp_path / "Alpha").mkdir()
    (tmp_path / "Alpha" / "inner.markdown").write_text("", encoding="utf-8")

    tree = build_explorer_tree(tmp_path)

    assert [node.name for node in tree] == ["Alpha", "zeta", "A.md", "b.md"]
    assert [node.is_category for node in tree] == [True, True, False, False]
    assert [child.name for child in tree[0].children] == ["inner.markdown"]
    assert tree[1].children == []


def test_tree_of_missing_root_is_empty(tmp_path):
    assert build_explorer_tree(tmp_path / "nope") == []


def test_find_node_searches_nested_folders(tmp_path):
    (tmp_path / "cat").mkdir()
    note = tmp_path / "cat" / "n.md"
    note.write_text("", encoding="utf-8")
    tree = build_explorer_tree(tmp_path)

    assert find_node(tree, note).full_path == note
    assert find_node(tree, tmp_path / "other.md") is None


def test_path_helpers(tmp_path):
    folder = tmp_path / "cat"
    note = folder / "n.md"

    assert path_equals(note, folder / "." / "n.md")
    assert not path_equals(note, None)
    assert is_path_inside(note, folder)
    assert not is_path_inside(folder, folder)
    assert not is_path_inside(tmp_path / "category" / "x.md", folder)


def test_tree_does_not_follow_linked_folders(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "n.md").write_text("", encoding="utf-8")
    (tmp_path / "a" / "back").symlink_to(tmp_path, target_is_directory=True)
    (tmp_path / "linked.md").symlink_to(tmp_path / "a" / "n.md")

    tree = build_explorer_tree(tmp_path)

    assert [node.name for node in tree] == ["a", "linked.md"]
    assert [child.name for child in tree[0].children] == ["n.md"]
    assert all(not child.is_category for child in tree[0].children)
