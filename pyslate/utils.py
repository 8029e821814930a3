"""Utility functions for Pyslate.

Key functions:
    ensure_clean_dir: Ensure a directory exists and is empty.
    matches_pattern: Match a relative POSIX path against a watch pattern.
    relative_posix: Express a path relative to a root, with forward slashes.
"""

from __future__ import annotations

import shutil
from fnmatch import fnmatchcase
from pathlib import Path


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def matches_pattern(rel_path: str, pattern: str) -> bool:
    """Check a relative path against a glob-style pattern.

    ``*`` may cross directory separators only when the pattern itself has a
    directory part, so ``*.html`` matches top-level files only while
    ``includes/**`` matches everything below ``includes``.

    Examples:
        >>> matches_pattern("index.html", "*.html")
        True
        >>> matches_pattern("includes/_errors.md", "*.md")
        False
        >>> matches_pattern("includes/api/_auth.md", "includes/**")
        True
    """
    if "/" not in pattern and "/" in rel_path:
        return False
    return fnmatchcase(rel_path, pattern)


def relative_posix(path: Path, root: Path) -> str | None:
    """Return ``path`` relative to ``root`` as a POSIX string, or None if outside."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return None
