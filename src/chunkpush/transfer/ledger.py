"""Progress ledger of chunks already pushed.

This module provides:
- Ledger: Protocol for membership lookups and appends
- FileLedger: Append-only text file, one chunk identifier per line

The ledger is the only resumability mechanism. Once an identifier is
recorded it is trusted unconditionally; nothing checks the remote.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Ledger(Protocol):
    """Record of chunk identifiers confirmed pushed."""

    def has(self, chunk_id: str) -> bool:
        """Return True if ``chunk_id`` was recorded."""

    def record(self, chunk_id: str) -> None:
        """Append ``chunk_id``."""


class FileLedger:
    """Ledger stored as a plain text file.

    Lookups are exact whole-line matches. ``record`` always appends, so
    duplicate lines are possible and harmless. The file is created empty
    if it does not exist.
    """

    def __init__(self, path: Path) -> None:
        """Open (creating if needed) the ledger file.

        Args:
            path: Location of the ledger file.
        """
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)

    def entries(self) -> list[str]:
        """Return all recorded identifiers in file order, duplicates included."""
        with open(self._path, encoding="utf-8") as f:
            return [line.rstrip("\r\n") for line in f if line.strip()]

    def _ends_with_newline(self) -> bool:
        """True for an empty file or one whose last byte is a newline."""
        with open(self._path, "rb") as f:
            f.seek(0, 2)
            if f.tell() == 0:
                return True
            f.seek(-1, 2)
            return f.read(1) == b"\n"

    def has(self, chunk_id: str) -> bool:
        """Check whether a chunk identifier is recorded."""
        return chunk_id in self.entries()

    def record(self, chunk_id: str) -> None:
        """Append a chunk identifier as a new line."""
        prefix = "" if self._ends_with_newline() else "\n"
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(f"{prefix}{chunk_id}\n")
        logger.debug(f"Recorded {chunk_id} in {self._path}")
