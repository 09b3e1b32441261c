"""Document state and its change notifications."""

from pathlib import Path

from papertrail.document import Document, Mode
from papertrail.renderer import Theme


def test_defaults(qtbot):
    doc = Document()

    assert doc.raw_text == ""
    assert doc.file_path is None
    assert not doc.is_dirty
    assert doc.mode is Mode.VIEW
    assert doc.theme is Theme.DARK
    assert not doc.has_file
    assert doc.window_title == "PaperTrail - No file"


def test_set_text_marks_dirty_and_notifies(qtbot):
    doc = Document()

    with qtbot.waitSignal(doc.textChanged) as blocker:
        assert doc.set_text("# Hi") is True

    assert blocker.args == ["# Hi"]
    assert doc.is_dirty
    assert doc.window_title == "PaperTrail - No file *"


def test_unchanged_text_emits_nothing(qtbot):
    doc = Document()
    doc.set_text("same", mark_dirty=False)

    with qtbot.assertNotEmitted(doc.textChanged):
        assert doc.set_text("same") is False
    assert not doc.is_dirty


def test_loading_text_keeps_document_clean(qtbot):
    doc = Document()

    doc.set_text("loaded", mark_dirty=False)

    assert not doc.is_dirty


def test_setters_emit_only_on_change(qtbot):
    doc = Document()
    path = Path("/notes/a.md")

    with qtbot.waitSignal(doc.filePathChanged):
        doc.set_file_path(path)
    with qtbot.assertNotEmitted(doc.filePathChanged):
        doc.set_file_path(Path("/notes/a.md"))

    with qtbot.waitSignal(doc.modeChanged) as blocker:
        doc.set_mode(Mode.EDIT)
    assert blocker.args == [Mode.EDIT]
    with qtbot.assertNotEmitted(doc.modeChanged):
        doc.set_mode(Mode.EDIT)

    with qtbot.waitSignal(doc.themeChanged):
        doc.set_theme(Theme.LIGHT)
    with qtbot.assertNotEmitted(doc.themeChanged):
        doc.set_theme(Theme.LIGHT)

    with qtbot.assertNotEmitted(doc.dirtyChanged):
        doc.set_dirty(False)


def test_window_title_names_the_file(qtbot):
    doc = Document()
    doc.set_file_path(Path("/notes/plan.md"))

    assert doc.window_title == "PaperTrail - plan.md"
    doc.set_dirty(True)
    assert doc.window_title == "PaperTrail - plan.md *"


def test_theme_toggles_between_the_two_themes():
    assert Theme.DARK.toggled() is Theme.LIGHT
    assert Theme.LIGHT.toggled() is Theme.DARK


def test_clear_returns_to_an_empty_view(qtbot):
    doc = Document()
    doc.set_file_path(Path("/notes/a.md"))
    doc.set_text("body")
    doc.set_mode(Mode.EDIT)

    doc.clear()

    assert doc.file_path is None
    assert doc.raw_text == ""
    assert not doc.is_dirty
    assert doc.mode is Mode.VIEW
