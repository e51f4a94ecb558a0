"""Ignore rules that keep originals and the ledger out of commits.

This module provides:
- IgnoreRules: Gitignore-style patterns that must be present in the
  ignore file before anything is pushed
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from chunkpush.core.chunking import is_chunk_name

logger = logging.getLogger(__name__)


class IgnoreRules:
    """Patterns that must never be staged as ordinary content."""

    def __init__(self, patterns: list[str] | None = None) -> None:
        """Initialize with patterns.

        Args:
            patterns: List of gitignore-style patterns.
        """
        self._patterns: list[str] = []
        for pattern in patterns or []:
            self.add_pattern(pattern)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """Add an ignore pattern if not already present."""
        pattern = pattern.strip()
        if pattern and pattern not in self._patterns:
            self._patterns.append(pattern)

    def matches(self, path: Path | str) -> bool:
        """Check whether a path is covered by one of the patterns.

        Patterns without a slash match the file name; patterns with a
        slash match the whole relative path.
        """
        rel_str = str(path).replace("\\", "/").lstrip("/")
        name = rel_str.rsplit("/", 1)[-1]
        for pattern in self._patterns:
            anchored = pattern.lstrip("/")
            if "/" in pattern.rstrip("/"):
                if fnmatch.fnmatch(rel_str, anchored):
                    return True
            elif fnmatch.fnmatch(name, anchored):
                return True
        return False

    def cover(self, path: Path | str) -> bool:
        """Make sure an original file is ignored, adding its name if needed.

        Chunk files are never added; they are what gets committed.

        Returns:
            True if a new pattern was added.
        """
        name = Path(path).name
        if is_chunk_name(name) or self.matches(path):
            return False
        self.add_pattern(name)
        return True

    @staticmethod
    def read_file(path: Path) -> list[str]:
        """Read patterns from an ignore file, skipping comments and blanks."""
        if not path.exists():
            return []
        patterns = []
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)
        return patterns

    def missing_from(self, path: Path) -> list[str]:
        """Return patterns not yet listed in the ignore file."""
        present = set(self.read_file(path))
        return [p for p in self._patterns if p not in present]

    def ensure_in_file(self, path: Path) -> list[str]:
        """Append missing patterns to the ignore file.

        Args:
            path: Ignore file, created if it does not exist.

        Returns:
            Patterns that were appended.
        """
        missing = self.missing_from(path)
        if not missing:
            return []

        needs_newline = path.exists() and path.stat().st_size > 0 and not path.read_bytes().endswith(b"\n")
        with open(path, "a", encoding="utf-8") as f:
            if needs_newline:
                f.write("\n")
            for pattern in missing:
                f.write(f"{pattern}\n")

        logger.info(f"Added {', '.join(missing)} to {path}")
        return missing
