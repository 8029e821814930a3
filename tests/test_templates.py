import dataclasses

import pytest

from pyslate.config import BuildConfig
from pyslate.content import IncludeFragment
from pyslate.errors import TemplateError
from pyslate.templates import (
    PageContext,
    PageRenderer,
    language_tab_names,
    prettify_html,
)


def make_context(**config_fields) -> PageContext:
    fields = {"includes": ("intro", "auth"), "data": {"title": "Docs"}}
    fields.update(config_fields)
    fragments = (
        IncludeFragment("intro", "# Intro", '<h1 id="Intro">Intro</h1>'),
        IncludeFragment("auth", "# Auth", '<h1 id="Auth">Auth</h1>'),
    )
    return PageContext(BuildConfig(**fields), fragments)


def test_image_tag_uses_first_segment_as_code():
    context = make_context()
    assert (
        context.image_tag("logo.png")
        == '<img alt="logo" class="image-logo" src="images/logo.png">'
    )
    assert 'alt="navbar"' in context.image_tag("navbar.dark.png")


def test_script_and_stylesheet_tags():
    context = make_context()
    assert context.javascript_include_tag("all") == (
        '<script src="javascripts/all.js" type="text/javascript"></script>\n'
    )
    assert context.stylesheet_link_tag("print", "print") == (
        '<link href="stylesheets/print.css" rel="stylesheet" media="print">'
    )


def test_helpers_escape_arguments():
    context = make_context()
    assert "&lt;" in context.image_tag("<x>.png")


def test_language_tab_names():
    config = BuildConfig(
        includes=(), language_tabs=("shell", {"ruby": "Ruby"}, {"python": "Python"})
    )
    assert language_tab_names(config) == ["shell", "ruby", "python"]
    assert make_context(language_tabs=("go",)).langs() == ["go"]


def test_page_context_is_immutable():
    context = make_context()
    with pytest.raises(dataclasses.FrozenInstanceError):
        context.page_classes = "dark"


def test_template_vars():
    variables = make_context().template_vars()
    assert variables["current_page"]["data"]["title"] == "Docs"
    assert variables["page_classes"] == ""
    assert [str(item) for item in variables["includes"]] == [
        '<h1 id="Intro">Intro</h1>',
        '<h1 id="Auth">Auth</h1>',
    ]


def test_page_renderer_renders_includes_in_order(tmp_path):
    (tmp_path / "index.html").write_text(
        "<title>{{ current_page.data.title }}</title>"
        "{% for fragment in includes %}{{ fragment }}{% endfor %}"
        "{{ stylesheet_link_tag('screen', 'screen') }}",
        encoding="utf-8",
    )
    html = PageRenderer(tmp_path).render(make_context())
    assert "<title>Docs</title>" in html
    assert html.index('id="Intro"') < html.index('id="Auth"')
    assert '<link href="stylesheets/screen.css"' in html


def test_render_all_covers_every_template(tmp_path):
    (tmp_path / "index.html").write_text("index", encoding="utf-8")
    (tmp_path / "errors.html").write_text("errors", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("skip", encoding="utf-8")
    pages = PageRenderer(tmp_path).render_all(make_context())
    assert pages == {"errors.html": "errors", "index.html": "index"}


def test_template_syntax_error(tmp_path):
    (tmp_path / "index.html").write_text("{% for x in %}", encoding="utf-8")
    with pytest.raises(TemplateError) as excinfo:
        PageRenderer(tmp_path).render(make_context())
    assert "line 1" in excinfo.value.message
    assert excinfo.value.source_path == tmp_path / "index.html"


def test_template_render_error(tmp_path):
    (tmp_path / "index.html").write_text("{{ missing.attr.deeper }}", encoding="utf-8")
    with pytest.raises(TemplateError) as excinfo:
        PageRenderer(tmp_path).render(make_context())
    assert "UndefinedError" in excinfo.value.message


def test_prettify_indents_and_keeps_pre():
    html = prettify_html(
        "<html><body><div><p>Hi &amp; bye</p></div>"
        "<pre><code>a\n  b</code></pre><img src='x.png'></body></html>"
    )
    assert "\n   <body>" in html
    assert "Hi &amp; bye" in html
    assert "a\n  b" in html
    assert "<img src=\"x.png\">" in html


def test_prettify_keeps_inline_content_on_one_line():
    html = prettify_html(
        "<html><body><ul><li>One</li><li>Two</li></ul>"
        "<p>Use <code>token</code>, then <strong>retry</strong>.</p>"
        "<div><code>a</code><em>b</em></div></body></html>"
    )
    assert "\n      <ul>\n         <li>One</li>\n         <li>Two</li>\n      </ul>" in html
    assert "<p>Use <code>token</code>, then <strong>retry</strong>.</p>" in html
    assert "<div><code>a</code><em>b</em></div>" in html
