"""Pyslate documentation site generator.

This package turns a YAML manifest, an ordered list of Markdown includes and
Jinja2 page templates into a single-page API documentation site. It bundles the
site's JavaScript, compiles its SCSS stylesheets, extracts a syntax highlighting
theme and runs a development server with live reload.

The main entry point is the CLI module, which exposes each build target
(build-js, build-css, build-html, build-static-site, serve, ...) as a command.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
