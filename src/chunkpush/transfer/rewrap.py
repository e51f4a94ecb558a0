"""Sweep for chunks left untracked by an interrupted run.

This module provides:
- RewrapScanner: Finds untracked part files and pushes them through the
  TransferEngine with the same retry protocol
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chunkpush.core.chunking import PART_MARKER, is_chunk_name

if TYPE_CHECKING:
    from chunkpush.transfer.engine import TransferEngine
    from chunkpush.transfer.types import ChunkResult
    from chunkpush.vcs import VersionControl

logger = logging.getLogger(__name__)

# Pathspec passed to the collaborator; results are filtered by name afterwards
UNTRACKED_CHUNK_PATHSPEC = f"*{PART_MARKER}*"


class RewrapScanner:
    """Re-feeds stray chunks into the transfer engine.

    A chunk is stray when it exists in the working tree but is neither
    tracked nor ignored, e.g. because a previous run was killed between
    splitting and pushing.
    """

    def __init__(self, vcs: VersionControl, engine: TransferEngine) -> None:
        self._vcs = vcs
        self._engine = engine

    def find_stray_chunks(self) -> list[str]:
        """List untracked files following the part naming convention."""
        untracked = self._vcs.list_untracked(UNTRACKED_CHUNK_PATHSPEC)
        return sorted(p for p in untracked if is_chunk_name(p.rsplit("/", 1)[-1]))

    def sweep(self) -> list[ChunkResult]:
        """Push every stray chunk.

        Returns:
            One ChunkResult per stray chunk, in path order.
        """
        stray = self.find_stray_chunks()
        if not stray:
            logger.info("No untracked chunks found")
            return []

        logger.info(f"Found {len(stray)} untracked chunks")
        results = []
        for chunk_id in stray:
            logger.info(f"Retrying untracked chunk {chunk_id}")
            results.append(self._engine.push_chunk(chunk_id, f"Rewrap commit for {chunk_id}"))
        return results
