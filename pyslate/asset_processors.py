"""Asset processors for Pyslate.

Each processor turns the text of one asset into new text and handles a single
concern: compiling SCSS, minifying CSS or minifying JavaScript. The asset
pipeline chains them per output file.

Key classes:
- BaseAssetProcessor: Interface shared by all processors.
- SassCompiler: Compiles SCSS to CSS with libsass.
- CSSMinifier: Minifies CSS with rcssmin.
- JSMinifier: Minifies JavaScript with rjsmin.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import rcssmin
import rjsmin
import sass

from .errors import AssetCompileError


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @abstractmethod
    def process(self, text: str, source: Path) -> str:
        """Transform the text of an asset.

        Args:
            text: Current asset text.
            source: Source file the text came from, for error context.

        Returns:
            Transformed text.

        Raises:
            AssetCompileError: If the text cannot be processed.
        """
        ...


class SassCompiler(BaseAssetProcessor):
    """Compiles SCSS to plain CSS.

    ``@import`` statements are resolved relative to the source file's
    directory, so partials such as ``_variables.scss`` live next to it.
    """

    output_style = "expanded"

    def process(self, text: str, source: Path) -> str:
        try:
            return sass.compile(
                string=text,
                include_paths=[str(source.parent)],
                output_style=self.output_style,
            )
        except sass.CompileError as exc:
            raise AssetCompileError(source, f"SCSS compile failed: {exc}", exc) from exc


class CSSMinifier(BaseAssetProcessor):
    def process(self, text: str, source: Path) -> str:
        return rcssmin.cssmin(text)


class JSMinifier(BaseAssetProcessor):
    def process(self, text: str, source: Path) -> str:
        return rjsmin.jsmin(text)
