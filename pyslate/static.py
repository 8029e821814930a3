"""Verbatim copying of fonts and images.

Files under ``source/fonts`` and ``source/images`` are copied byte for byte to
the same relative paths under the build directory.
"""

from __future__ import annotations

import shutil
from pathlib import Path

STATIC_KINDS = ("fonts", "images")


class StaticCopier:
    """Copies static subtrees from the source to the build directory."""

    def __init__(self, source_dir: Path, output_dir: Path):
        self.source_dir = source_dir
        self.output_dir = output_dir

    def copy(self, kind: str) -> list[Path]:
        """Copy one static subtree.

        Args:
            kind: ``fonts`` or ``images``.

        Returns:
            Paths of the copied files in the build directory.
        """
        if kind not in STATIC_KINDS:
            raise ValueError(f"Unknown static kind: {kind}")
        source_root = self.source_dir / kind
        if not source_root.exists():
            return []
        target_root = self.output_dir / kind
        copied = []
        for item in sorted(source_root.rglob("*")):
            if item.is_dir():
                continue
            dest = target_root / item.relative_to(source_root)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest)
            copied.append(dest)
        return copied
