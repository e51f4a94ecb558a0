"""Core module - Chunking, configuration and shared types."""

from chunkpush.core.chunking import (
    CHUNK_SIZE,
    ChunkFile,
    chunk_id_for,
    chunk_path,
    expected_part_count,
    find_chunks,
    is_chunk_name,
    prepare_chunks,
    recombine,
    split_file,
)
from chunkpush.core.config import PushConfig
from chunkpush.core.types import (
    ChunkOutcome,
    ChunkPushError,
    ChunksNotFoundError,
    ConfigError,
    RunMode,
    VcsError,
)

__all__ = [
    # Chunking
    "CHUNK_SIZE",
    "ChunkFile",
    "chunk_id_for",
    "chunk_path",
    "expected_part_count",
    "find_chunks",
    "is_chunk_name",
    "prepare_chunks",
    "recombine",
    "split_file",
    # Config
    "PushConfig",
    # Types
    "ChunkOutcome",
    "ChunkPushError",
    "ChunksNotFoundError",
    "ConfigError",
    "RunMode",
    "VcsError",
]
