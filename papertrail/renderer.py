"""Markdown to themed, self-contained HTML."""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from markdown_it import MarkdownIt
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.attrs import attrs_block_plugin, attrs_plugin
from mdit_py_plugins.container import container_plugin
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.subscript import sub_plugin
from mdit_py_plugins.superscript import superscript_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

STYLES_DIR = Path(__file__).resolve().parent / "styles"

EMBEDDED_STYLE_BLOCK_PATTERN = re.compile(r"<style\b[^>]*>[\s\S]*?</style>", re.IGNORECASE)
INLINE_STYLE_ATTR_PATTERN = re.compile(
    r"""<(?P<tag>[a-zA-Z][a-zA-Z0-9:-]*)\b(?P<before>[^>]*?)\sstyle\s*=\s*(?:"[^"]*"|'[^']*')(?P<after>[^>]*)>""",
    re.IGNORECASE,
)
# `::: name` opens a custom container rendered as `<div class="name">`.
CONTAINER_CLASS_PATTERN = re.compile(r"^[A-Za-z][\w-]*$")


class Theme(Enum):
    DARK = "dark"
    LIGHT = "light"

    def toggled(self) -> "Theme":
        return Theme.LIGHT if self is Theme.DARK else Theme.DARK


_DARK_SHELL_CSS = """
:root {
  color-scheme: dark;
}
html, body {
  margin: 0;
  padding: 0;
  background: #1e1e1e;
  color: #d7dce4;
  font-family: "Noto Sans", "Segoe UI", Arial, sans-serif;
  font-size: 15px;
  line-height: 1.62;
}
h1, h2, h3, h4, h5, h6 {
  color: #f5f8ff;
  line-height: 1.24;
  margin: 1.25em 0 0.55em;
}
h1 {
  font-size: 2.15em;
  padding-bottom: 0.18em;
  border-bottom: 1px solid #3a3f49;
}
h2 {
  font-size: 1.65em;
  padding-bottom: 0.15em;
  border-bottom: 1px solid #333842;
}
a {
  color: #5ab8ff;
  text-decoration: none;
  border-bottom: 1px dotted #5ab8ff66;
}
hr {
  border: none;
  height: 1px;
  background: #3a3f49;
  margin: 1.35em 0;
}
blockquote {
  margin: 1.1em 0;
  padding: 0.8em 1em;
  border-left: 4px solid #3d7fff;
  background: #1d2433;
  color: #d4def5;
  border-radius: 0 8px 8px 0;
}
code {
  font-family: "Noto Sans Mono", "Cascadia Code", Consolas, monospace;
  font-size: 0.93em;
  background: #2b3038;
  color: #ffd892;
  border: 1px solid #3b414d;
  border-radius: 6px;
  padding: 0.1em 0.38em;
}
pre {
  margin: 1em 0 1.25em;
  padding: 14px 16px;
  background: #151922;
  border: 1px solid #303745;
  border-radius: 12px;
  overflow-x: auto;
}
pre code {
  display: block;
  white-space: pre;
  color: #d7e5ff;
  background: transparent;
  border: none;
  padding: 0;
}
table {
  width: 100%;
  border-collapse: separate;
  border-spacing: 0;
  margin: 1.05em 0 1.3em;
  border: 1px solid #343c4a;
  border-radius: 10px;
  overflow: hidden;
}
th, td {
  padding: 9px 11px;
  border-right: 1px solid #343c4a;
  border-bottom: 1px solid #343c4a;
  text-align: left;
  vertical-align: top;
}
th {
  background: #232b3a;
  color: #e7eeff;
}
tr:nth-child(even) td {
  background: #1b2028;
}
img {
  max-width: 100%;
  height: auto;
  border-radius: 8px;
  border: 1px solid #3b414d;
}
"""

_LIGHT_SHELL_CSS = """
:root {
  color-scheme: light;
}
html, body {
  margin: 0;
  padding: 0;
  background: #f3f2ee;
  color: #1f0909;
}
blockquote {
  margin: 1.1em 0;
  padding: 0.6em 1em;
  border-left: 4px solid #b8a98f;
  color: #4a3a2c;
}
.markdown-root pre {
  background: #ece8df !important;
  border: 1px solid #d6cdbf !important;
  border-radius: 6px !important;
  color: #1f3557 !important;
  padding: 12px 14px !important;
  overflow-x: auto;
}
.markdown-root pre code {
  background: transparent !important;
  border: none !important;
  color: #1f3557 !important;
  padding: 0 !important;
  display: block;
  line-height: 1.5;
}
.markdown-root code {
  background: #e7e0d3;
  border: 1px solid #d1c5b2;
  color: #3d2b20;
  border-radius: 6px;
  padding: 0.08em 0.36em;
}
table {
  border-collapse: collapse;
}
th, td {
  border: 1px solid #d6cdbf;
  padding: 0.4rem 0.6rem;
}
img {
  max-width: 100%;
  height: auto;
}
"""

_ROOT_CSS = """
.markdown-root {
  max-width: 940px;
  margin: 0 auto;
  padding: 0 1.2rem 36px;
}
.markdown-root > :first-child {
  margin-top: 0;
}
.task-list-item {
  list-style: none;
}
"""


@dataclass(frozen=True)
class ThemeConfig:
    """Everything that differs between the dark and light preview."""

    theme: Theme
    stylesheet_name: str
    shell_css: str
    highlight_code: bool
    strip_inline_styles: bool
    pygments_style: str | None = None


THEME_CONFIGS: dict[Theme, ThemeConfig] = {
    Theme.DARK: ThemeConfig(
        theme=Theme.DARK,
        stylesheet_name="atom-dark.css",
        shell_css=_DARK_SHELL_CSS,
        highlight_code=True,
        strip_inline_styles=False,
        pygments_style="monokai",
    ),
    Theme.LIGHT: ThemeConfig(
        theme=Theme.LIGHT,
        stylesheet_name="newsprint.css",
        shell_css=_LIGHT_SHELL_CSS,
        highlight_code=False,
        strip_inline_styles=True,
    ),
}


@dataclass(frozen=True)
class RenderedPreview:
    html: str
    theme: Theme


def load_stylesheet(filename: str, styles_dir: Path | None = None) -> str:
    """Read a theme stylesheet, degrading to no CSS when it is unavailable."""
    path = (styles_dir or STYLES_DIR) / filename
    try:
        if path.is_file():
            return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read stylesheet %s: %s", path, exc)
        return ""
    logger.warning("Stylesheet not found: %s", path)
    return ""


def strip_embedded_styles(body_html: str) -> str:
    """Drop `<style>` blocks and inline `style=` attributes from rendered HTML."""
    if not body_html or not body_html.strip():
        return ""
    without_blocks = EMBEDDED_STYLE_BLOCK_PATTERN.sub("", body_html)
    return INLINE_STYLE_ATTR_PATTERN.sub(
        lambda match: f"<{match.group('tag')}{match.group('before')}{match.group('after')}>",
        without_blocks,
    )


def _container_class(params: str) -> str:
    words = params.split()
    return words[0] if words else ""


def _is_custom_container(params: str, *_args) -> bool:
    return CONTAINER_CLASS_PATTERN.match(_container_class(params)) is not None


def _render_custom_container(self, tokens, idx, options, env):
    token = tokens[idx]
    if token.nesting == 1:
        token.attrJoin("class", _container_class(token.info))
    return self.renderToken(tokens, idx, options, env)


class MarkdownRenderer:
    """Converts markdown to a full HTML document for one of the two themes."""

    def __init__(self, styles_dir: Path | None = None) -> None:
        # Stylesheets are read once; a theme flip only swaps which one is used.
        self._stylesheets = {
            theme: load_stylesheet(config.stylesheet_name, styles_dir) for theme, config in THEME_CONFIGS.items()
        }
        self._parsers = {theme: self._build_parser(config) for theme, config in THEME_CONFIGS.items()}

    def stylesheet(self, theme: Theme) -> str:
        return self._stylesheets[theme]

    def _build_parser(self, config: ThemeConfig) -> MarkdownIt:
        md = MarkdownIt(
            "commonmark",
            {"html": True, "linkify": True, "typographer": True},
        ).enable(["table", "strikethrough", "linkify", "replacements", "smartquotes"])
        md.use(footnote_plugin)
        md.use(tasklists_plugin)
        md.use(deflist_plugin)
        md.use(anchors_plugin, max_level=6)
        md.use(sub_plugin)
        md.use(superscript_plugin)
        md.use(attrs_plugin, spans=True)
        md.use(attrs_block_plugin)
        md.use(container_plugin, "custom", validate=_is_custom_container, render=_render_custom_container)
        # Parse $...$ / $$...$$ before emphasis rules so TeX stays intact.
        md.use(dollarmath_plugin)

        def custom_math_inline(tokens, idx, options, env):
            return f'<span class="math inline">\\({html.escape(tokens[idx].content)}\\)</span>'

        def custom_math_block(tokens, idx, options, env):
            math_body = (tokens[idx].content or "").strip("\n")
            return f'<div class="math display">\\[\n{html.escape(math_body)}\n\\]</div>\n'

        md.renderer.rules["math_inline"] = custom_math_inline
        md.renderer.rules["math_block"] = custom_math_block

        if config.highlight_code:
            formatter = HtmlFormatter(style=config.pygments_style or "default", noclasses=True, nowrap=True)

            def highlight_code(code: str, lang: str, attrs: str) -> str:
                # An empty result makes markdown-it fall back to escaped text.
                if not lang:
                    return ""
                try:
                    lexer = get_lexer_by_name(lang, stripall=False)
                except ClassNotFound:
                    return ""
                return highlight(code, lexer, formatter)

            md.options.highlight = highlight_code
        return md

    def render_body(self, markdown_text: str, theme: Theme) -> str:
        config = THEME_CONFIGS[theme]
        text = markdown_text or ""
        if not text:
            return ""
        try:
            body = self._parsers[theme].render(text)
        except Exception as exc:
            # Malformed input must still produce a readable preview.
            logger.warning("Markdown conversion failed, showing source text: %s", exc)
            body = f"<pre>{html.escape(text)}</pre>\n"
        if config.strip_inline_styles:
            body = strip_embedded_styles(body)
        return body

    def render_document(self, markdown_text: str, theme: Theme, title: str = "") -> str:
        config = THEME_CONFIGS[theme]
        body = self.render_body(markdown_text, theme)
        escaped_title = html.escape(title)
        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escaped_title}</title>
  <style>
{config.shell_css}
{self._stylesheets[theme]}
{_ROOT_CSS}
  </style>
</head>
<body>
<div class="markdown-root">
{body}</div>
</body>
</html>
"""

    def render(self, markdown_text: str, theme: Theme, title: str = "") -> RenderedPreview:
        html_doc = self.render_document(markdown_text, theme, title)
        logger.debug("Rendered %d chars of markdown with %s theme", len(markdown_text or ""), theme.value)
        return RenderedPreview(html=html_doc, theme=theme)
