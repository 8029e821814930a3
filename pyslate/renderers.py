"""Markdown rendering for Pyslate includes.

Includes are rendered with mistune and a renderer that overrides two rules:
- Headings get an ``id`` that is the heading text percent-encoded verbatim.
  The same text always yields the same id, so repeated headings repeat ids.
- Fenced code blocks are highlighted with Pygments, either with the lexer
  named by the block's language tag or with a guessed lexer.

Key classes:
- SlateRenderer: mistune renderer implementing both rules.
- MarkdownRenderer: Turns Markdown text into an HTML fragment.
"""

from __future__ import annotations

import html
from urllib.parse import quote

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

# Characters encodeURIComponent leaves untouched besides letters and digits.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def heading_id(text: str) -> str:
    """Return the anchor id for a heading.

    Examples:
        >>> heading_id("Getting Started")
        'Getting%20Started'
    """
    return quote(text, safe=_URI_COMPONENT_SAFE)


def highlight_code(code: str, language: str = "") -> str:
    """Highlight code with Pygments, returning inner HTML without a wrapper.

    Args:
        code: Source code to highlight.
        language: Language tag; empty to guess the language from the code.

    Returns:
        Highlighted HTML. Unknown language tags fall back to escaped text.
    """
    try:
        lexer = get_lexer_by_name(language) if language else guess_lexer(code)
    except ClassNotFound:
        return html.escape(code, quote=False)
    return highlight(code, lexer, HtmlFormatter(nowrap=True))


class SlateRenderer(mistune.HTMLRenderer):
    """mistune renderer with verbatim heading ids and Pygments code blocks."""

    def __init__(self):
        super().__init__(escape=False)

    def heading(self, text: str, level: int, **attrs) -> str:
        return f'<h{level} id="{heading_id(text)}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        language = info.split()[0] if info and info.strip() else ""
        classes = f"highlight {language}".strip()
        return (
            f'<pre class="{classes}"><code>{highlight_code(code, language)}</code></pre>\n'
        )


class MarkdownRenderer:
    """Renders include Markdown into an HTML fragment."""

    plugins = ["strikethrough", "table", "url"]

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source.

        Returns:
            Rendered HTML fragment.
        """
        markdown = mistune.create_markdown(renderer=SlateRenderer(), plugins=self.plugins)
        return markdown(content)
