"""Page rendering for Pyslate.

Page templates are the ``*.html`` files at the top of the source directory,
written in Jinja2. They receive a PageContext: the manifest, the rendered
includes and a handful of tag helpers.

Template variables:
- current_page.data: The manifest mapping.
- page_classes: Extra classes for the page body.
- includes: Rendered include HTML, in manifest order.
- image_tag, javascript_include_tag, stylesheet_link_tag: Tag helpers.
- langs: Language tab names.

Key classes:
- PageContext: Immutable render context with the helper functions.
- PageRenderer: Renders page templates with a PageContext.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup, Comment, Doctype, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateSyntaxError,
    select_autoescape,
)
from jinja2 import TemplateError as JinjaTemplateError
from markupsafe import Markup

from .config import BuildConfig
from .content import IncludeFragment
from .errors import TemplateError

PRETTIFY_INDENT = 3

# Elements whose content is phrasing content; kept on one line with their text.
INLINE_ELEMENTS = frozenset(
    {
        "a", "abbr", "b", "bdi", "bdo", "br", "button", "cite", "code", "data",
        "del", "dfn", "em", "i", "img", "input", "ins", "kbd", "label", "mark",
        "q", "s", "samp", "select", "small", "span", "strong", "sub", "sup",
        "time", "u", "var", "wbr",
    }
)

# Elements serialized exactly as parsed.
VERBATIM_ELEMENTS = frozenset({"pre", "textarea", "script", "style"})


def language_tab_names(config: BuildConfig) -> list[str]:
    """Return the tab name of every language tab.

    Plain strings are used as-is; for a mapping such as ``{shell: cURL}`` the
    first key is used.
    """
    names = []
    for tab in config.language_tabs:
        if isinstance(tab, str):
            names.append(tab)
        else:
            names.append(str(next(iter(tab))))
    return names


@dataclass(frozen=True)
class PageContext:
    """Everything a page template can see.

    Attributes:
        config: Manifest values.
        fragments: Rendered includes, in manifest order.
        page_classes: Extra CSS classes for the page.
    """

    config: BuildConfig
    fragments: tuple[IncludeFragment, ...]
    page_classes: str = ""

    def image_tag(self, filename: str) -> Markup:
        code = filename.split(".")[0]
        return Markup('<img alt="{0}" class="image-{0}" src="images/{1}">').format(
            code, filename
        )

    def javascript_include_tag(self, name: str) -> Markup:
        return Markup(
            '<script src="javascripts/{}.js" type="text/javascript"></script>\n'
        ).format(name)

    def stylesheet_link_tag(self, name: str, media: str = "all") -> Markup:
        return Markup(
            '<link href="stylesheets/{}.css" rel="stylesheet" media="{}">'
        ).format(name, media)

    def langs(self) -> list[str]:
        return language_tab_names(self.config)

    def template_vars(self) -> dict[str, Any]:
        """Return the variables passed to page templates."""
        return {
            "current_page": {"data": self.config.data},
            "page_classes": self.page_classes,
            "includes": [Markup(fragment.html) for fragment in self.fragments],
            "image_tag": self.image_tag,
            "javascript_include_tag": self.javascript_include_tag,
            "stylesheet_link_tag": self.stylesheet_link_tag,
            "langs": self.langs(),
        }


def _is_block_container(tag: Tag) -> bool:
    if tag.name in INLINE_ELEMENTS or tag.name in VERBATIM_ELEMENTS:
        return False
    has_block = False
    previous_inline = False
    for child in tag.children:
        if isinstance(child, Tag):
            inline = child.name in INLINE_ELEMENTS
            # a line break between touching inline elements would render as a space
            if inline and previous_inline:
                return False
            previous_inline = inline
            has_block = has_block or not inline
        elif isinstance(child, (Comment, Doctype)):
            continue
        elif child.strip():
            return False
        else:
            previous_inline = False
    return has_block


def _start_tag(tag: Tag, formatter: HTMLFormatter) -> str:
    parts = [tag.name]
    for key, value in formatter.attributes(tag):
        if value is None:
            parts.append(key)
            continue
        if isinstance(value, list):
            value = " ".join(value)
        value = formatter.attribute_value(str(value))
        parts.append(f"{key}={formatter.quoted_attribute_value(value)}")
    return "<" + " ".join(parts) + ">"


def _prettify_children(
    node: Tag, depth: int, formatter: HTMLFormatter, lines: list[str]
) -> None:
    indent = " " * (PRETTIFY_INDENT * depth)
    for child in node.children:
        if isinstance(child, Tag):
            if _is_block_container(child):
                lines.append(indent + _start_tag(child, formatter))
                _prettify_children(child, depth + 1, formatter, lines)
                lines.append(f"{indent}</{child.name}>")
            else:
                lines.append(indent + child.decode(formatter=formatter))
        elif isinstance(child, (Comment, Doctype)):
            lines.append(indent + child.output_ready(formatter))
        else:
            text = child.output_ready(formatter).strip()
            if text:
                lines.append(indent + text)


def prettify_html(html: str) -> str:
    """Re-indent the block structure of an HTML document.

    An element is broken over several lines only when it holds block
    elements and no text. Elements with text, and runs of touching inline
    elements, are written on one line exactly as parsed, so the rendered text
    never changes. ``pre``, ``textarea``, ``script`` and ``style`` are never
    touched.
    """
    formatter = HTMLFormatter(
        entity_substitution=EntitySubstitution.substitute_xml,
        void_element_close_prefix=None,
        indent=PRETTIFY_INDENT,
    )
    lines: list[str] = []
    _prettify_children(BeautifulSoup(html, "html.parser"), 0, formatter, lines)
    return "\n".join(lines) + "\n"


class PageRenderer:
    """Renders the page templates of a source directory.

    Attributes:
        source_dir: Directory containing the ``*.html`` page templates.
        env: Jinja2 environment.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir
        self.env = Environment(
            loader=FileSystemLoader(str(source_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def template_names(self) -> list[str]:
        return sorted(path.name for path in self.source_dir.glob("*.html"))

    def render(self, context: PageContext, template_name: str = "index.html") -> str:
        """Render one page template.

        Args:
            context: Page context.
            template_name: Template filename relative to the source directory.

        Returns:
            Rendered HTML document.

        Raises:
            TemplateError: If the template cannot be parsed or rendered.
        """
        path = self.source_dir / template_name
        try:
            template = self.env.get_template(template_name)
            return template.render(**context.template_vars())
        except TemplateSyntaxError as exc:
            raise TemplateError(
                path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except JinjaTemplateError as exc:
            raise TemplateError(path, f"{type(exc).__name__}: {exc}", exc) from exc

    def render_all(self, context: PageContext) -> dict[str, str]:
        """Render every page template, keyed by template filename."""
        return {name: self.render(context, name) for name in self.template_names()}
