"""Shared types for chunkpush.

This module defines the enums and exceptions used by both the chunking
core and the transfer layer.
"""

from __future__ import annotations

from enum import Enum


class RunMode(str, Enum):
    """Mode selected on the command line.

    PUSH splits and pushes every file. SPLIT_ONLY stops after splitting.
    REWRAP pushes like PUSH and then sweeps untracked stray parts.
    RECOMBINE rebuilds originals from their parts and does nothing else.
    """

    PUSH = "push"
    SPLIT_ONLY = "split"
    REWRAP = "rewrap"
    RECOMBINE = "recombine"

    @property
    def uses_vcs(self) -> bool:
        """Whether this mode stages, commits and pushes."""
        return self in (RunMode.PUSH, RunMode.REWRAP)


class ChunkOutcome(str, Enum):
    """What happened to a single chunk during a transfer."""

    PUSHED = "pushed"
    ALREADY_PUSHED = "already_pushed"  # present in the ledger
    NOTHING_TO_COMMIT = "nothing_to_commit"


class ChunkPushError(Exception):
    """Base exception for chunkpush errors."""


class ConfigError(ChunkPushError):
    """Invalid configuration value."""


class ChunksNotFoundError(ChunkPushError):
    """No parts exist for a file that should be recombined."""


class VcsError(ChunkPushError):
    """A version control operation that must succeed failed.

    Attributes:
        command: The command line that failed.
        output: Combined stdout/stderr of the failed command.
    """

    def __init__(self, message: str, command: list[str] | None = None, output: str = "") -> None:
        super().__init__(message)
        self.command = command or []
        self.output = output
