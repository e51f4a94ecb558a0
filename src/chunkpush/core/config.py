"""Configuration for chunkpush runs.

This module defines PushConfig, the settings shared by the chunker, the
transfer engine and the CLI.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from chunkpush.core.chunking import CHUNK_SIZE
from chunkpush.core.types import ConfigError

DEFAULT_LEDGER_PATH = ".pushed_chunks.log"
DEFAULT_IGNORE_FILE = ".gitignore"
DEFAULT_IGNORE_PATTERNS = ["*.tar.gz", "*.tgz"]

# Environment variables and the PushConfig field each one overrides
ENV_OVERRIDES = {
    "CHUNKPUSH_REMOTE": "remote",
    "CHUNKPUSH_BRANCH": "branch",
    "CHUNKPUSH_LEDGER": "ledger_path",
    "CHUNKPUSH_CHUNK_SIZE": "chunk_size",
}


@dataclass
class PushConfig:
    """Settings for splitting and pushing files.

    Attributes:
        chunk_size: Maximum part size in bytes.
        remote: Remote to push to.
        branch: Branch to push.
        ledger_path: Path of the progress ledger file.
        ignore_file: Path of the ignore-rules file kept up to date.
        ignore_patterns: Patterns for original files that must never be staged.
        initial_delay: Seconds to wait after the first failed push.
        delay_increment: Seconds added to the wait after each failed push.
        max_delay: Upper bound on the wait between pushes.
    """

    chunk_size: int = CHUNK_SIZE
    remote: str = "origin"
    branch: str = "main"
    ledger_path: Path = Path(DEFAULT_LEDGER_PATH)
    ignore_file: Path = Path(DEFAULT_IGNORE_FILE)
    ignore_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    initial_delay: float = 10.0
    delay_increment: float = 5.0
    max_delay: float = 300.0

    def __post_init__(self) -> None:
        """Coerce loosely typed values and validate."""
        try:
            self.chunk_size = int(self.chunk_size)
            self.initial_delay = float(self.initial_delay)
            self.delay_increment = float(self.delay_increment)
            self.max_delay = float(self.max_delay)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e
        self.ledger_path = Path(self.ledger_path)
        self.ignore_file = Path(self.ignore_file)

        if self.chunk_size <= 0:
            raise ConfigError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.initial_delay < 0 or self.delay_increment < 0:
            raise ConfigError("Retry delays must not be negative")
        if self.max_delay < self.initial_delay:
            raise ConfigError(
                f"max_delay ({self.max_delay}) must be >= initial_delay ({self.initial_delay})"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PushConfig:
        """Create from a config-file dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def with_env(self, environ: Mapping[str, str] | None = None) -> PushConfig:
        """Return a copy with CHUNKPUSH_* environment overrides applied."""
        environ = os.environ if environ is None else environ
        overrides = {
            name: environ[var] for var, name in ENV_OVERRIDES.items() if environ.get(var)
        }
        if not overrides:
            return self
        return replace(self, **overrides)
