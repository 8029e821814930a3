"""Build targets for Pyslate.

The Orchestrator registers every build step as a node of a TaskGraph:

- clean: Empty the build directory.
- lint: Check the generated page and the application scripts.
- build-fonts, build-images: Copy static files.
- build-js: Bundle the scripts into javascripts/all.js.
- build-css: Compile the SCSS stylesheets.
- build-highlightjs: Write the code highlighting theme.
- build-html: Render the includes into the page templates.
- build-static-site: All six build steps.

``build-uncompressed`` is not a node: it runs build-static-site with
compression turned off for that run only.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from . import __version__
from .assets import DEFAULT_MANIFEST, AssetManifest, AssetPipeline
from .config import MANIFEST_NAME, BuildConfig, load_settings, read_config
from .content import ContentAssembler
from .lint import Linter, LintMessage
from .static import StaticCopier
from .tasks import RunReport, Task, TaskGraph
from .templates import PageContext, PageRenderer, prettify_html
from .utils import ensure_clean_dir

AGGREGATE_TARGET = "build-static-site"
UNCOMPRESSED_TARGET = "build-uncompressed"
SERVE_TARGET = "serve"

BUILD_TASKS = (
    "build-fonts",
    "build-images",
    "build-js",
    "build-css",
    "build-highlightjs",
    "build-html",
)

# Targets that run another target with different options.
TARGET_ALIASES: dict[str, tuple[str, dict[str, Any]]] = {
    UNCOMPRESSED_TARGET: (AGGREGATE_TARGET, {"compress": False}),
}

TARGETS = (
    "clean",
    "lint",
    "build-js",
    "build-css",
    "build-html",
    "build-highlightjs",
    AGGREGATE_TARGET,
    UNCOMPRESSED_TARGET,
    SERVE_TARGET,
)


@dataclass(frozen=True)
class BuildOptions:
    """Options applied to every task of one run.

    Attributes:
        compress: Minify scripts and stylesheets and prettify HTML.
    """

    compress: bool = True


class Orchestrator:
    """Builds the task graph for a project and runs targets on it.

    Attributes:
        project_root: Root directory of the project.
        settings: Project settings (directories, ports).
        source_dir: Directory holding the manifest, templates and assets.
        output_dir: Build directory.
        manifest: Script lists for the bundle, fixed for the orchestrator's life.
    """

    def __init__(
        self,
        project_root: Path,
        settings: dict[str, Any] | None = None,
        manifest: AssetManifest = DEFAULT_MANIFEST,
    ):
        self.project_root = project_root
        self.settings = settings or load_settings(project_root)
        self.source_dir = project_root / self.settings["source_dir"]
        self.output_dir = project_root / self.settings["build_dir"]
        self.manifest = manifest
        self.assets = AssetPipeline(self.source_dir, self.output_dir, manifest)
        self.static = StaticCopier(self.source_dir, self.output_dir)
        self.assembler = ContentAssembler(self.source_dir / "includes")
        self.pages = PageRenderer(self.source_dir)

    @property
    def manifest_path(self) -> Path:
        return self.source_dir / MANIFEST_NAME

    def read_config(self) -> BuildConfig:
        return read_config(self.manifest_path)

    def clean(self) -> None:
        print(f"pyslate v{__version__}")
        ensure_clean_dir(self.output_dir)

    def lint(self) -> list[LintMessage]:
        scripts = [self.source_dir / rel for rel in self.manifest.scripts]
        return Linter(self.project_root).run(self.output_dir / "index.html", scripts)

    def build_js(self, options: BuildOptions) -> Path:
        return self.assets.build_scripts(self.read_config(), compress=options.compress)

    def build_css(self, options: BuildOptions) -> list[Path]:
        return self.assets.build_styles(compress=options.compress)

    def build_highlight_theme(self, options: BuildOptions) -> Path:
        return self.assets.build_highlight_theme(
            self.read_config(), compress=options.compress
        )

    def build_html(self, options: BuildOptions) -> list[Path]:
        """Render every page template into the build directory.

        Every template is rendered before any file is written, so a missing
        include or a broken template leaves existing pages untouched.
        """
        config = self.read_config()
        context = PageContext(config, tuple(self.assembler.assemble(config)))
        rendered = self.pages.render_all(context)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        written = []
        for name, html in rendered.items():
            if options.compress:
                html = prettify_html(html)
            target = self.output_dir / name
            target.write_text(html, encoding="utf-8")
            written.append(target)
        return written

    def graph(self, options: BuildOptions | None = None) -> TaskGraph:
        """Return the task graph with every node bound to ``options``."""
        options = options or BuildOptions()
        return TaskGraph(
            [
                Task("clean", self.clean, description="Empty the build directory"),
                Task(
                    "lint",
                    self.lint,
                    inputs=("javascripts/app/**",),
                    description="Check the built page and application scripts",
                ),
                Task(
                    "build-fonts",
                    lambda: self.static.copy("fonts"),
                    inputs=("fonts/**",),
                    outputs=("fonts/",),
                    description="Copy fonts",
                ),
                Task(
                    "build-images",
                    lambda: self.static.copy("images"),
                    inputs=("images/**",),
                    outputs=("images/",),
                    description="Copy images",
                ),
                Task(
                    "build-js",
                    lambda: self.build_js(options),
                    inputs=(MANIFEST_NAME, "javascripts/**"),
                    outputs=("javascripts/all.js",),
                    description="Bundle the scripts",
                ),
                Task(
                    "build-css",
                    lambda: self.build_css(options),
                    inputs=("stylesheets/**",),
                    outputs=("stylesheets/*.css",),
                    description="Compile the stylesheets",
                ),
                Task(
                    "build-highlightjs",
                    lambda: self.build_highlight_theme(options),
                    inputs=(MANIFEST_NAME,),
                    outputs=("stylesheets/highlight-*.css",),
                    description="Write the code highlighting theme",
                ),
                Task(
                    "build-html",
                    lambda: self.build_html(options),
                    inputs=(MANIFEST_NAME, "*.html", "includes/**"),
                    outputs=("*.html",),
                    description="Render the page",
                ),
                Task(
                    AGGREGATE_TARGET,
                    requires=BUILD_TASKS,
                    description="Build the whole site",
                ),
            ]
        )

    def run(
        self,
        targets: Iterable[str],
        options: BuildOptions | None = None,
        jobs: int | None = None,
    ) -> RunReport:
        """Run build targets.

        Args:
            targets: Target names; aliases such as build-uncompressed are
                resolved to their node with their options applied.
            options: Options for this run.
            jobs: Maximum number of tasks running at once.

        Returns:
            RunReport for the run.
        """
        options = options or BuildOptions()
        names = []
        for target in targets:
            if target in TARGET_ALIASES:
                target, overrides = TARGET_ALIASES[target]
                options = replace(options, **overrides)
            names.append(target)
        return self.graph(options).run(dict.fromkeys(names), jobs=jobs)
