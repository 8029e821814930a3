"""Executable discovery utilities for Pyslate.

Functions:
    find_executable: Locate an executable in PATH or node_modules.
"""

from __future__ import annotations

import shutil
from pathlib import Path


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or local node_modules.

    Searches the system PATH first, then the project's ``node_modules/.bin``
    directory if a project root is provided.

    Args:
        name: Name of the executable to find (e.g., 'jshint').
        project_root: Optional project root to search for a local install.

    Returns:
        Full path to the executable if found, None otherwise.

    Examples:
        >>> find_executable('jshint', Path('/my/project'))
        '/my/project/node_modules/.bin/jshint'
    """
    found = shutil.which(name)
    if found:
        return found

    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)

    return None
