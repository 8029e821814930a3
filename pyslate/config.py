"""Configuration loading for Pyslate.

Two documents configure a project:
- ``source/index.yml``, the manifest: page metadata, the ordered list of
  includes, language tabs, the highlight theme and the search flag. It is read
  again on every build so a running dev server always sees the latest edit.
- ``pyslate.yaml`` (optional), project settings: source and build directories
  and the dev server ports.

Key functions:
- read_config: Parse the manifest into a BuildConfig.
- load_settings: Load project settings with defaults applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

MANIFEST_NAME = "index.yml"
SETTINGS_NAME = "pyslate.yaml"

DEFAULT_SETTINGS = {
    "source_dir": "source",
    "build_dir": "build",
    "port": 4567,
    "ws_port": 35729,
}


@dataclass(frozen=True)
class BuildConfig:
    """Parsed manifest values.

    Attributes:
        includes: Include names, in page order.
        title: Page title, if the manifest sets one.
        language_tabs: Strings or single-key mappings (``{ruby: Ruby}``).
        highlight_theme: Name of the syntax highlighting theme.
        search: Whether the search scripts are bundled.
        data: The whole manifest mapping, passed through to templates.
    """

    includes: tuple[str, ...]
    title: str | None = None
    language_tabs: tuple[Any, ...] = ()
    highlight_theme: str | None = None
    search: bool = False
    data: Mapping[str, Any] = field(default_factory=dict)


def read_config(path: Path) -> BuildConfig:
    """Read and validate the manifest.

    Args:
        path: Path to the manifest file.

    Returns:
        BuildConfig built from the manifest.

    Raises:
        ConfigError: If the YAML is malformed or required fields are missing.
        OSError: If the file cannot be read.
    """
    with open(path, encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(path, f"Invalid YAML: {exc}", exc) from exc

    if not isinstance(loaded, dict):
        raise ConfigError(path, "Manifest must be a mapping")

    includes = loaded.get("includes")
    if not isinstance(includes, list):
        raise ConfigError(path, "Manifest requires an 'includes' list")
    for name in includes:
        if not isinstance(name, str) or not name:
            raise ConfigError(path, f"Include names must be strings, got {name!r}")

    tabs = loaded.get("language_tabs") or []
    if not isinstance(tabs, list):
        raise ConfigError(path, "'language_tabs' must be a list")
    for tab in tabs:
        if isinstance(tab, dict) and tab:
            continue
        if not isinstance(tab, str):
            raise ConfigError(path, f"Invalid language tab: {tab!r}")

    theme = loaded.get("highlight_theme")
    title = loaded.get("title")
    return BuildConfig(
        includes=tuple(includes),
        title=str(title) if title is not None else None,
        language_tabs=tuple(tabs),
        highlight_theme=str(theme) if theme else None,
        search=bool(loaded.get("search", False)),
        data=loaded,
    )


def load_settings(project_root: Path) -> dict[str, Any]:
    """Load project settings from pyslate.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing settings, with defaults applied.
    """
    settings_path = project_root / SETTINGS_NAME
    settings = DEFAULT_SETTINGS.copy()
    if settings_path.exists():
        with open(settings_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                settings.update(loaded)
    return settings
