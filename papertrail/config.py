"""Settings and note template stored in the per-user app data folder."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR_NAME = ".papertrail"
APP_HOME_ENV = "PAPERTRAIL_HOME"
SETTINGS_FILE_NAME = "settings.json"
TEMPLATE_FILE_NAME = "markdown.md"

DEFAULT_TEMPLATE = """# AI Prompt

## Role / Persona
You are a helpful AI assistant.

## Context
Provide relevant background information here.

## Task / Instructions
Describe what you want the AI to do.

## Input
```
[Your input data here]
```

## Output Format
Describe the expected output format (e.g., JSON, markdown, bullet points).

## Constraints
- Constraint 1
- Constraint 2

## Examples (Optional)

### Example Input
```
[Example input]
```

### Example Output
```
[Example output]
```

---

## Notes
Additional notes or considerations.
"""


def app_data_dir() -> Path:
    override = os.environ.get(APP_HOME_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / APP_DIR_NAME


def expand_path_text(raw: str) -> str:
    return os.path.expanduser(os.path.expandvars(raw.strip()))


@dataclass
class Settings:
    markdown_root_path: str = ""

    def root_path(self, app_dir: Path | None = None) -> Path:
        if not self.markdown_root_path.strip():
            return app_dir or app_data_dir()
        return Path(expand_path_text(self.markdown_root_path))


def ensure_app_data_files(app_dir: Path | None = None) -> Path:
    """Create the app data folder, default settings and template if missing."""
    directory = app_dir or app_data_dir()
    directory.mkdir(parents=True, exist_ok=True)
    settings_path = directory / SETTINGS_FILE_NAME
    if not settings_path.exists():
        settings_path.write_text(
            json.dumps(asdict(Settings(markdown_root_path=str(directory))), indent=2),
            encoding="utf-8",
        )
    template_path = directory / TEMPLATE_FILE_NAME
    if not template_path.exists():
        template_path.write_text(DEFAULT_TEMPLATE, encoding="utf-8")
    return directory


def load_settings(app_dir: Path | None = None) -> Settings:
    """Read settings, falling back to defaults on any read/parse problem."""
    directory = app_dir or app_data_dir()
    fallback = Settings(markdown_root_path=str(directory))
    try:
        ensure_app_data_files(directory)
        raw = json.loads((directory / SETTINGS_FILE_NAME).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Using default settings, could not read %s: %s", directory / SETTINGS_FILE_NAME, exc)
        return fallback
    if not isinstance(raw, dict):
        return fallback
    root = raw.get("markdown_root_path")
    if not isinstance(root, str) or not root.strip():
        return fallback
    return Settings(markdown_root_path=expand_path_text(root))


def save_settings(settings: Settings, app_dir: Path | None = None) -> None:
    directory = ensure_app_data_files(app_dir)
    if not settings.markdown_root_path.strip():
        settings = Settings(markdown_root_path=str(directory))
    (directory / SETTINGS_FILE_NAME).write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")


def load_markdown_template(app_dir: Path | None = None) -> str:
    directory = app_dir or app_data_dir()
    try:
        ensure_app_data_files(directory)
        template = (directory / TEMPLATE_FILE_NAME).read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Using built-in note template: %s", exc)
        return DEFAULT_TEMPLATE
    if template.strip():
        return template
    return DEFAULT_TEMPLATE
