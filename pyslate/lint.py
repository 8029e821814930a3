"""Static checks for the built site.

The ``lint`` target inspects the generated page and the application scripts:
- Every ``img`` needs an ``alt`` attribute.
- Attribute values must not contain invisible or control characters.
- Every opened element must be closed (void elements excepted).
- Application scripts are checked with ``jshint`` when it is installed.

Duplicate ids are not reported: headings with the same text share an anchor.
Lint results are informational and never fail a build.

Key classes:
- LintMessage: One finding.
- Linter: Runs the checks.
"""

from __future__ import annotations

import json
import re
import subprocess
import tempfile
from dataclasses import dataclass
from html.parser import HTMLParser
from pathlib import Path

from bs4 import BeautifulSoup

from .executable_utils import find_executable

UNSAFE_ATTR_CHARS = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f\xad\u0600-\u0604\u070f"
    r"\u17b4\u17b5\u200c-\u200f\u2028-\u202f"
    r"\u2060-\u206f\ufeff\ufff0-\uffff]"
)

JSHINT_OPTIONS = {"jquery": True, "browser": True, "undef": True, "unused": True}

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "param", "source", "track", "wbr",
    }
)


@dataclass(frozen=True)
class LintMessage:
    """A lint finding.

    Attributes:
        path: File the finding is about.
        rule: Rule identifier (e.g. 'alt-require', 'jshint').
        message: Description of the problem.
        line: Line number, when known.
    """

    path: Path
    rule: str
    message: str
    line: int | None = None

    def __str__(self) -> str:
        location = f"{self.path}:{self.line}" if self.line else str(self.path)
        return f"{location} [{self.rule}] {self.message}"


class _TagPairChecker(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.stack: list[tuple[str, int]] = []
        self.problems: list[tuple[str, int]] = []

    def handle_starttag(self, tag, attrs):
        if tag not in VOID_ELEMENTS:
            self.stack.append((tag, self.getpos()[0]))

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            return
        line = self.getpos()[0]
        if not any(open_tag == tag for open_tag, _ in self.stack):
            self.problems.append((f"Tag must be paired, no start tag: </{tag}>", line))
            return
        while self.stack:
            open_tag, open_line = self.stack.pop()
            if open_tag == tag:
                return
            self.problems.append(
                (f"Tag must be paired, missing: </{open_tag}>", open_line)
            )

    def close(self):
        super().close()
        for open_tag, open_line in self.stack:
            self.problems.append(
                (f"Tag must be paired, missing: </{open_tag}>", open_line)
            )
        self.stack = []


class Linter:
    """Checks generated markup and application scripts.

    Attributes:
        project_root: Root directory of the project.
    """

    def __init__(self, project_root: Path):
        self.project_root = project_root

    def lint_html(self, path: Path) -> list[LintMessage]:
        """Check one generated HTML page."""
        markup = path.read_text(encoding="utf-8")
        messages = []
        soup = BeautifulSoup(markup, "html.parser")
        for img in soup.find_all("img"):
            if not img.has_attr("alt"):
                messages.append(
                    LintMessage(
                        path,
                        "alt-require",
                        f"An alt attribute must be present on <img src={img.get('src')!r}>",
                        img.sourceline,
                    )
                )
        for tag in soup.find_all(True):
            for name, value in tag.attrs.items():
                values = value if isinstance(value, list) else [value]
                if any(UNSAFE_ATTR_CHARS.search(str(v)) for v in values):
                    messages.append(
                        LintMessage(
                            path,
                            "attr-unsafe-chars",
                            f"The value of attribute [{name}] cannot contain an unsafe char",
                            tag.sourceline,
                        )
                    )

        checker = _TagPairChecker()
        checker.feed(markup)
        checker.close()
        for problem, line in checker.problems:
            messages.append(LintMessage(path, "tag-pair", problem, line))
        return messages

    def lint_scripts(self, paths: list[Path]) -> list[LintMessage]:
        """Run jshint over scripts, if it is installed."""
        existing = [path for path in paths if path.exists()]
        if not existing:
            return []
        jshint = find_executable("jshint", self.project_root)
        if not jshint:
            print("jshint not found; skipping script checks.")
            return []
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / ".jshintrc"
            config_path.write_text(json.dumps(JSHINT_OPTIONS), encoding="utf-8")
            result = subprocess.run(
                [
                    jshint,
                    "--reporter=unix",
                    "--config",
                    str(config_path),
                    *(str(path) for path in existing),
                ],
                capture_output=True,
                text=True,
            )
        messages = []
        for line in result.stdout.splitlines():
            # unix reporter: file:line:col: message
            parts = line.split(":", 3)
            if len(parts) == 4 and parts[1].isdigit():
                messages.append(
                    LintMessage(Path(parts[0]), "jshint", parts[3].strip(), int(parts[1]))
                )
        return messages

    def run(self, html_path: Path, script_paths: list[Path]) -> list[LintMessage]:
        """Lint the page and scripts, printing every finding."""
        messages = []
        if html_path.exists():
            messages.extend(self.lint_html(html_path))
        else:
            print(f"{html_path} not found; build the site before linting.")
        messages.extend(self.lint_scripts(script_paths))
        for message in messages:
            print(message)
        return messages
