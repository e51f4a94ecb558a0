"""Result dataclasses for transfer operations.

This module provides:
- ChunkResult: Outcome of transferring one chunk
- FileResult: Outcome of transferring every chunk of a source file
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from chunkpush.core.types import ChunkOutcome


@dataclass
class ChunkResult:
    """Result of a single chunk transfer.

    Attributes:
        chunk_id: Ledger identifier of the chunk.
        outcome: What happened to the chunk.
        attempts: Number of push attempts (0 when no push was needed).
    """

    chunk_id: str
    outcome: ChunkOutcome
    attempts: int = 0


@dataclass
class FileResult:
    """Result of transferring the chunks of one source file."""

    source: str
    resplit: bool = False
    chunks: list[ChunkResult] = field(default_factory=list)

    def count(self, outcome: ChunkOutcome) -> int:
        """Count chunks with the given outcome."""
        return sum(1 for c in self.chunks if c.outcome is outcome)

    @property
    def pushed(self) -> int:
        return self.count(ChunkOutcome.PUSHED)

    @property
    def already_pushed(self) -> int:
        return self.count(ChunkOutcome.ALREADY_PUSHED)

    @property
    def nothing_to_commit(self) -> int:
        return self.count(ChunkOutcome.NOTHING_TO_COMMIT)


# Called after each chunk is handled
ChunkCallback = Callable[[ChunkResult], None]

# Called before sleeping after a failed push: (chunk_id, attempt, delay)
RetryCallback = Callable[[str, int, float], None]
