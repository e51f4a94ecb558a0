"""Fixed-size chunking of large files.

This module provides:
- ChunkFile: A chunk materialized on disk as ``<source>.part.<NNN>``
- expected_part_count: Number of parts a file of a given size splits into
- find_chunks: Locate existing parts of a source file
- prepare_chunks: Split a file unless a complete part set already exists
- split_file: Unconditionally (re)split a file
- recombine: Concatenate parts back into the original file
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from chunkpush.core.types import ChunksNotFoundError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 10 * 1024 * 1024  # 10 MiB
INDEX_WIDTH = 3
PART_MARKER = ".part."

# Copy buffer used while splitting and recombining
COPY_BUFFER_SIZE = 1024 * 1024

# Matches any chunk filename, used when scanning for stray parts
CHUNK_NAME_RE = re.compile(r"\.part\.(\d+)$")


@dataclass(frozen=True)
class ChunkFile:
    """One part of a split source file.

    Attributes:
        source: Path of the original file.
        index: Zero-based position of the part.
        path: Path of the part on disk.
    """

    source: Path
    index: int
    path: Path

    @property
    def chunk_id(self) -> str:
        """Identifier recorded in the ledger and used in commit messages."""
        return chunk_id_for(self.path)

    @property
    def size(self) -> int:
        """Return the size of this part in bytes."""
        return self.path.stat().st_size


def chunk_id_for(path: Path | str) -> str:
    """Normalize a chunk path into its ledger identifier."""
    return Path(os.path.normpath(path)).as_posix()


def chunk_path(source: Path, index: int) -> Path:
    """Build the on-disk path of part ``index`` of ``source``."""
    return source.with_name(f"{source.name}{PART_MARKER}{index:0{INDEX_WIDTH}d}")


def is_chunk_name(name: str) -> bool:
    """Check whether a filename follows the part naming convention."""
    return CHUNK_NAME_RE.search(name) is not None


def expected_part_count(size: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Return ceil(size / chunk_size)."""
    return (size + chunk_size - 1) // chunk_size


def find_chunks(source: Path) -> list[ChunkFile]:
    """Find the existing parts of a source file, in index order.

    Args:
        source: Path of the original file (it need not exist).

    Returns:
        Parts sorted by numeric index.
    """
    source = Path(source)
    pattern = re.compile(re.escape(source.name + PART_MARKER) + r"(\d+)$")
    parent = source.parent
    if not parent.is_dir():
        return []

    chunks = []
    for entry in parent.iterdir():
        match = pattern.match(entry.name)
        if match and entry.is_file():
            chunks.append(ChunkFile(source=source, index=int(match.group(1)), path=entry))
    chunks.sort(key=lambda c: c.index)
    return chunks


def _copy_bytes(src: BinaryIO, dst: BinaryIO, length: int) -> int:
    """Copy up to ``length`` bytes between open binary files."""
    copied = 0
    while copied < length:
        block = src.read(min(COPY_BUFFER_SIZE, length - copied))
        if not block:
            break
        dst.write(block)
        copied += len(block)
    return copied


def split_file(source: Path, chunk_size: int = CHUNK_SIZE) -> list[ChunkFile]:
    """Delete any existing parts of ``source`` and split it again.

    Each part holds exactly ``chunk_size`` bytes except the last one,
    which holds the remainder. An empty file produces no parts.

    Raises:
        FileNotFoundError: If the source file does not exist.
    """
    source = Path(source)
    size = source.stat().st_size

    for stale in find_chunks(source):
        stale.path.unlink()

    chunks = []
    with open(source, "rb") as src:
        for index in range(expected_part_count(size, chunk_size)):
            path = chunk_path(source, index)
            with open(path, "wb") as dst:
                _copy_bytes(src, dst, chunk_size)
            chunks.append(ChunkFile(source=source, index=index, path=path))

    logger.debug(f"Split {source} into {len(chunks)} parts of {chunk_size} bytes")
    return chunks


def is_complete(chunks: list[ChunkFile], expected: int) -> bool:
    """Check that parts are exactly indexes 0..expected-1."""
    return [c.index for c in chunks] == list(range(expected))


def prepare_chunks(
    source: Path, chunk_size: int = CHUNK_SIZE
) -> tuple[list[ChunkFile], bool]:
    """Make sure ``source`` has a complete set of parts on disk.

    Existing parts are kept when their count matches the expected count
    and their indexes are contiguous from zero. Otherwise every existing
    part is discarded and the file is split again.

    Args:
        source: Path of the original file.
        chunk_size: Maximum part size in bytes.

    Returns:
        Tuple of (parts in index order, whether a re-split happened).

    Raises:
        FileNotFoundError: If the source file does not exist.
    """
    source = Path(source)
    expected = expected_part_count(source.stat().st_size, chunk_size)
    existing = find_chunks(source)

    if is_complete(existing, expected):
        return existing, False

    logger.info(
        f"Missing or incorrect chunks for {source} "
        f"({len(existing)} found, {expected} expected). Re-splitting..."
    )
    return split_file(source, chunk_size), True


def recombine(target: Path) -> Path:
    """Concatenate the parts of ``target`` back into ``target``.

    Parts are joined in ascending index order into a temporary file which
    then replaces any existing file at ``target``. The reconstructed size
    is not checked against the original.

    Args:
        target: Path of the original file to rebuild.

    Returns:
        The rebuilt path.

    Raises:
        ChunksNotFoundError: If no parts exist for ``target``.
    """
    target = Path(target)
    chunks = find_chunks(target)
    if not chunks:
        raise ChunksNotFoundError(f"No chunks found for {target}")

    # Use temporary file for atomic write
    tmp_path = target.with_suffix(target.suffix + ".tmp")

    try:
        with open(tmp_path, "wb") as f:
            for chunk in chunks:
                with open(chunk.path, "rb") as part:
                    shutil.copyfileobj(part, f, COPY_BUFFER_SIZE)

        # On Windows, need to remove existing file first
        if target.exists():
            target.unlink()
        tmp_path.rename(target)
    except Exception:
        if tmp_path.exists():
            with contextlib.suppress(OSError):
                tmp_path.unlink()
        raise

    logger.debug(f"Recombined {len(chunks)} parts into {target}")
    return target
