"""Error types raised by the Pyslate build pipeline.

Every build error carries the file it relates to so the CLI and the
development server can point the author at the offending source.

Key classes:
- PyslateError: Base class with file context.
- ConfigError: Malformed manifest or missing required fields.
- IncludeNotFoundError: A manifest include has no Markdown file.
- TemplateError: A page template failed to parse or render.
- AssetCompileError: A stylesheet, script or theme could not be processed.
- TaskGraphError: Unknown target or cyclic task dependencies.
"""

from __future__ import annotations

from pathlib import Path


class PyslateError(Exception):
    """Error during a build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        if source_path is None:
            super().__init__(message)
        else:
            super().__init__(f"{source_path}: {message}")


class ConfigError(PyslateError):
    """The manifest could not be parsed or is missing required fields."""


class IncludeNotFoundError(PyslateError):
    """One or more includes named by the manifest do not exist.

    Attributes:
        missing: Include names with no matching Markdown file, in manifest order.
    """

    def __init__(self, source_path: Path, missing: list[str]):
        self.missing = list(missing)
        names = ", ".join(self.missing)
        super().__init__(source_path, f"Include file(s) not found: {names}")


class TemplateError(PyslateError):
    """A page template has a syntax error or failed while rendering."""


class AssetCompileError(PyslateError):
    """An asset could not be compiled, minified or resolved.

    Attributes:
        failures: Mapping of source path to error message, one entry per file.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
        failures: dict[Path, str] | None = None,
    ):
        self.failures = dict(failures or {})
        super().__init__(source_path, message, original_error)


class TaskGraphError(PyslateError):
    """The task graph is inconsistent or a requested target is unknown."""

    def __init__(self, message: str):
        super().__init__(None, message)
