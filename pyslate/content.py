"""Include assembly for Pyslate.

The page body is made of Markdown includes listed in the manifest. This module
loads them from ``source/includes`` in manifest order and renders each one.

Key classes:
- IncludeFragment: One rendered include.
- ContentAssembler: Loads and renders the includes named by a BuildConfig.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import BuildConfig
from .errors import IncludeNotFoundError
from .renderers import MarkdownRenderer

INCLUDE_EXTENSION = ".md"


@dataclass(frozen=True)
class IncludeFragment:
    """A rendered include.

    Attributes:
        name: Include name as written in the manifest.
        markdown: Raw Markdown source.
        html: Rendered HTML fragment.
    """

    name: str
    markdown: str
    html: str


class ContentAssembler:
    """Loads and renders manifest includes.

    Attributes:
        includes_dir: Directory holding the include Markdown files.
        renderer: Markdown renderer used for every include.
    """

    def __init__(self, includes_dir: Path, renderer: MarkdownRenderer | None = None):
        self.includes_dir = includes_dir
        self.renderer = renderer or MarkdownRenderer()

    def path_for(self, name: str) -> Path:
        return self.includes_dir / f"{name}{INCLUDE_EXTENSION}"

    def assemble(self, config: BuildConfig) -> list[IncludeFragment]:
        """Render every include of the manifest, in manifest order.

        All include files are located before anything is rendered, so a
        missing include fails the whole assembly and no fragments are returned.

        Args:
            config: Manifest values.

        Returns:
            One IncludeFragment per manifest include, in the same order.

        Raises:
            IncludeNotFoundError: If any include has no Markdown file.
        """
        paths = [self.path_for(name) for name in config.includes]
        missing = [
            name for name, path in zip(config.includes, paths) if not path.is_file()
        ]
        if missing:
            raise IncludeNotFoundError(self.path_for(missing[0]), missing)

        fragments = []
        for name, path in zip(config.includes, paths):
            markdown = path.read_text(encoding="utf-8")
            fragments.append(
                IncludeFragment(
                    name=name, markdown=markdown, html=self.renderer.render(markdown)
                )
            )
        return fragments
