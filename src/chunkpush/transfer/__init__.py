"""Transfer of chunks to a version-controlled remote.

Architecture:
    Chunker → TransferEngine → VersionControl
                  ↑   ↓
       RewrapScanner  Ledger

Components:
- **TransferEngine**: Stages, commits and pushes chunks one by one
- **LinearBackoff / retry_until_success**: Endless retry of failed pushes
- **FileLedger**: Append-only record of pushed chunks (resume support)
- **RewrapScanner**: Pushes untracked chunks left by interrupted runs
- **IgnoreRules**: Keeps originals and the ledger out of commits
"""

from chunkpush.transfer.engine import TransferEngine
from chunkpush.transfer.ignore import IgnoreRules
from chunkpush.transfer.ledger import FileLedger, Ledger
from chunkpush.transfer.retry import (
    DEFAULT_DELAY_INCREMENT,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_DELAY,
    LinearBackoff,
    retry_until_success,
)
from chunkpush.transfer.rewrap import RewrapScanner
from chunkpush.transfer.types import (
    ChunkCallback,
    ChunkResult,
    FileResult,
    RetryCallback,
)

__all__ = [
    # Engine
    "TransferEngine",
    "RewrapScanner",
    # Ledger
    "FileLedger",
    "Ledger",
    # Ignore rules
    "IgnoreRules",
    # Retry
    "DEFAULT_DELAY_INCREMENT",
    "DEFAULT_INITIAL_DELAY",
    "DEFAULT_MAX_DELAY",
    "LinearBackoff",
    "retry_until_success",
    # Types
    "ChunkCallback",
    "ChunkResult",
    "FileResult",
    "RetryCallback",
]
