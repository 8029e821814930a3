"""Asset pipeline for Pyslate.

Builds the site's scripts and stylesheets:
- ``javascripts/all.js``: library scripts, the optional search scripts and the
  application scripts concatenated into one bundle.
- ``stylesheets/*.css``: every ``*.css.scss`` source compiled to CSS.
- ``stylesheets/highlight-{theme}.css``: the Pygments theme for code blocks.

Whether output is minified is decided per call through the ``compress``
argument; the pipeline itself holds no compression state.

Key classes:
- AssetManifest: Ordered script lists for the bundle.
- AssetPipeline: Builds the script bundle, the stylesheets and the theme.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pygments.formatters import HtmlFormatter
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .asset_processors import CSSMinifier, JSMinifier, SassCompiler
from .config import BuildConfig
from .errors import AssetCompileError, ConfigError

BUNDLE_NAME = "all.js"
STYLESHEET_PATTERN = "*.css.scss"
HIGHLIGHT_PREFIX = "highlight-"
HIGHLIGHT_SCOPE = ".highlight"


@dataclass(frozen=True)
class AssetManifest:
    """Script files making up the bundle, relative to the source directory.

    Attributes:
        libs: Third-party libraries, always bundled first.
        search: Search scripts, bundled only when the manifest enables search.
        scripts: Application scripts, always bundled last.
    """

    libs: tuple[str, ...]
    search: tuple[str, ...]
    scripts: tuple[str, ...]

    def script_sources(self, search: bool) -> list[str]:
        """Return the bundle's file list in concatenation order."""
        return [*self.libs, *(self.search if search else ()), *self.scripts]


DEFAULT_MANIFEST = AssetManifest(
    libs=(
        "javascripts/lib/_energize.js",
        "javascripts/lib/_jquery.js",
        "javascripts/lib/_jquery_ui.js",
        "javascripts/lib/_jquery.tocify.js",
        "javascripts/lib/_imagesloaded.min.js",
    ),
    search=(
        "javascripts/lib/_lunr.js",
        "javascripts/lib/_jquery.highlight.js",
        "javascripts/app/_search.js",
    ),
    scripts=(
        "javascripts/app/_lang.js",
        "javascripts/app/_toc.js",
    ),
)


class AssetPipeline:
    """Builds scripts and stylesheets into the output directory.

    Attributes:
        source_dir: Project source directory.
        output_dir: Build output directory.
        manifest: Script lists for the bundle.
    """

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path,
        manifest: AssetManifest = DEFAULT_MANIFEST,
    ):
        self.source_dir = source_dir
        self.output_dir = output_dir
        self.manifest = manifest
        self.sass = SassCompiler()
        self.css_minifier = CSSMinifier()
        self.js_minifier = JSMinifier()

    @property
    def scripts_dir(self) -> Path:
        return self.output_dir / "javascripts"

    @property
    def stylesheets_dir(self) -> Path:
        return self.output_dir / "stylesheets"

    def build_scripts(self, config: BuildConfig, compress: bool = True) -> Path:
        """Concatenate the bundle's scripts into ``javascripts/all.js``.

        Args:
            config: Manifest values; ``search`` selects the search scripts.
            compress: Whether to minify the bundle.

        Returns:
            Path of the written bundle.

        Raises:
            FileNotFoundError: If a listed script does not exist.
        """
        parts = []
        for rel in self.manifest.script_sources(config.search):
            source = self.source_dir / rel
            parts.append(source.read_text(encoding="utf-8"))
        bundle = "\n".join(parts)
        target = self.scripts_dir / BUNDLE_NAME
        if compress:
            bundle = self.js_minifier.process(bundle, target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(bundle, encoding="utf-8")
        return target

    def build_styles(self, compress: bool = True) -> list[Path]:
        """Compile every ``*.css.scss`` stylesheet.

        A file that fails to compile does not stop the others; all failures
        are reported together once every file has been tried.

        Args:
            compress: Whether to minify the compiled CSS.

        Returns:
            Paths of the written stylesheets.

        Raises:
            AssetCompileError: If one or more stylesheets failed.
        """
        written: list[Path] = []
        failures: dict[Path, str] = {}
        source_dir = self.source_dir / "stylesheets"
        for source in sorted(source_dir.glob(STYLESHEET_PATTERN)):
            # screen.css.scss -> screen.css
            target = self.stylesheets_dir / source.stem
            try:
                css = self.sass.process(source.read_text(encoding="utf-8"), source)
            except AssetCompileError as exc:
                print(f"Stylesheet build failed: {exc}")
                failures[source] = exc.message
                continue
            if compress:
                css = self.css_minifier.process(css, source)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(css, encoding="utf-8")
            written.append(target)
        if failures:
            names = ", ".join(path.name for path in failures)
            raise AssetCompileError(
                source_dir,
                f"{len(failures)} stylesheet(s) failed to compile: {names}",
                failures=failures,
            )
        return written

    def build_highlight_theme(self, config: BuildConfig, compress: bool = True) -> Path:
        """Write the Pygments theme named by ``highlight_theme``.

        Args:
            config: Manifest values.
            compress: Whether to minify the stylesheet.

        Returns:
            Path of ``stylesheets/highlight-{theme}.css``.

        Raises:
            ConfigError: If the manifest sets no theme.
            AssetCompileError: If Pygments has no style with that name.
        """
        theme = config.highlight_theme
        if not theme:
            raise ConfigError(None, "Manifest requires 'highlight_theme'")
        try:
            style = get_style_by_name(theme)
        except ClassNotFound as exc:
            raise AssetCompileError(
                None, f"Unknown highlight theme: {theme}", exc
            ) from exc
        css = HtmlFormatter(style=style).get_style_defs(HIGHLIGHT_SCOPE)
        target = self.stylesheets_dir / f"{HIGHLIGHT_PREFIX}{theme}.css"
        if compress:
            css = self.css_minifier.process(css, target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(css, encoding="utf-8")
        return target
