"""Settings file and note template in the app data folder."""

import json

from papertrail.config import (
    APP_HOME_ENV,
    DEFAULT_TEMPLATE,
    SETTINGS_FILE_NAME,
    TEMPLATE_FILE_NAME,
    Settings,
    app_data_dir,
    ensure_app_data_files,
    expand_path_text,
    load_markdown_template,
    load_settings,
    save_settings,
)


def test_app_data_dir_honours_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(APP_HOME_ENV, str(tmp_path / "home"))

    assert app_data_dir() == tmp_path / "home"


def test_expand_path_text(monkeypatch, tmp_path):
    monkeypatch.setenv("NOTES_BASE", str(tmp_path))

    assert expand_path_text("  $NOTES_BASE/notes ") == f"{tmp_path}/notes"


def test_first_run_creates_default_files(tmp_path):
    app_dir = tmp_path / "app"

    ensure_app_data_files(app_dir)

    settings = json.loads((app_dir / SETTINGS_FILE_NAME).read_text(encoding="utf-8"))
    assert settings == {"markdown_root_path": str(app_dir)}
    assert (app_dir / TEMPLATE_FILE_NAME).read_text(encoding="utf-8") == DEFAULT_TEMPLATE


def test_settings_roundtrip(tmp_path):
    app_dir = tmp_path / "app"

    save_settings(Settings(markdown_root_path=str(tmp_path / "notes")), app_dir)

    assert load_settings(app_dir).root_path(app_dir) == tmp_path / "notes"


def test_blank_root_falls_back_to_app_folder(tmp_path):
    app_dir = tmp_path / "app"
    save_settings(Settings(markdown_root_path="  "), app_dir)

    assert load_settings(app_dir).root_path(app_dir) == app_dir
    assert Settings().root_path(app_dir) == app_dir


def test_corrupt_settings_fall_back_to_defaults(tmp_path):
    app_dir = tmp_path / "app"
    app_dir.mkdir()
    (app_dir / SETTINGS_FILE_NAME).write_text("{not json", encoding="utf-8")

    assert load_settings(app_dir) == Settings(markdown_root_path=str(app_dir))


def test_non_object_settings_fall_back_to_defaults(tmp_path):
    app_dir = tmp_path / "app"
    app_dir.mkdir()
    (app_dir / SETTINGS_FILE_NAME).write_text("[1, 2]", encoding="utf-8")

    assert load_settings(app_dir).markdown_root_path == str(app_dir)


def test_custom_template_is_used(tmp_path):
    app_dir = tmp_path / "app"
    app_dir.mkdir()
    (app_dir / TEMPLATE_FILE_NAME).write_text("# Mine\n", encoding="utf-8")

    assert load_markdown_template(app_dir) == "# Mine\n"


def test_blank_template_uses_built_in_one(tmp_path):
    app_dir = tmp_path / "app"
    app_dir.mkdir()
    (app_dir / TEMPLATE_FILE_NAME).write_text("\n\n", encoding="utf-8")

    assert load_markdown_template(app_dir) == DEFAULT_TEMPLATE
