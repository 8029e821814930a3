from pathlib import Path

import pytest

from pyslate.assets import DEFAULT_MANIFEST

MANIFEST = """\
title: API Reference
language_tabs:
  - shell
  - ruby: Ruby
toc_footers:
  - <a href='#'>Sign Up</a>
includes:
  - intro
  - auth
search: false
highlight_theme: default
"""

TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<title>{{ current_page.data.title }}</title>
{{ stylesheet_link_tag("screen", "screen") }}
{{ javascript_include_tag("all") }}
</head>
<body class="{{ page_classes }}">
{{ image_tag("logo.png") }}
<ul class="tabs">{% for lang in langs %}<li>{{ lang }}</li>{% endfor %}</ul>
{% for fragment in includes %}{{ fragment }}{% endfor %}
</body>
</html>
"""


def create_project(tmp_path: Path) -> Path:
    project = tmp_path
    source = project / "source"
    (source / "includes").mkdir(parents=True)
    (source / "stylesheets").mkdir()
    (source / "fonts").mkdir()
    (source / "images" / "icons").mkdir(parents=True)

    (source / "index.yml").write_text(MANIFEST, encoding="utf-8")
    (source / "index.html").write_text(TEMPLATE, encoding="utf-8")
    (source / "includes" / "intro.md").write_text(
        "# Introduction\n\nWelcome to the API.\n", encoding="utf-8"
    )
    (source / "includes" / "auth.md").write_text(
        '# Authentication\n\n```json\n{"key": "value"}\n```\n', encoding="utf-8"
    )

    for rel in DEFAULT_MANIFEST.script_sources(search=True):
        path = source / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        name = Path(rel).stem.strip("_").replace(".", "_")
        path.write_text(f"var {name} = function () {{ return 1 + 1; }};\n", encoding="utf-8")

    (source / "stylesheets" / "_variables.scss").write_text(
        "$main: #2e3336;\n", encoding="utf-8"
    )
    (source / "stylesheets" / "screen.css.scss").write_text(
        "@import 'variables';\n\nbody {\n  color: $main;\n}\n", encoding="utf-8"
    )

    (source / "fonts" / "slate.woff").write_bytes(b"wOFF\x00\x01\x02binary")
    (source / "images" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    (source / "images" / "icons" / "menu.svg").write_text("<svg></svg>", encoding="utf-8")
    return project


@pytest.fixture
def project(tmp_path):
    return create_project(tmp_path)
