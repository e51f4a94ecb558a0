"""Chunk transfer engine.

This module provides:
- TransferEngine: Stages, commits and pushes chunks one at a time,
  retrying failed pushes forever and recording successes in the ledger

Per chunk the engine:
1. Skips the chunk if the ledger already has it.
2. Drops any stale index entry and force-stages the chunk.
3. Commits it. "Nothing to commit" skips the chunk without recording it.
4. Pushes. On failure the commit is undone (mixed reset), the chunk is
   unstaged, and after a backoff delay steps 2-4 run again.
5. Records the chunk in the ledger once a push succeeds.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from chunkpush.core.chunking import ChunkFile, chunk_id_for
from chunkpush.core.types import ChunkOutcome
from chunkpush.transfer.retry import LinearBackoff, retry_until_success
from chunkpush.transfer.types import ChunkCallback, ChunkResult, FileResult, RetryCallback

if TYPE_CHECKING:
    from pathlib import Path

    from chunkpush.transfer.ledger import Ledger
    from chunkpush.vcs import VersionControl

logger = logging.getLogger(__name__)


class _NothingToCommit(Exception):
    """Raised inside an attempt when the commit records nothing."""


class TransferEngine:
    """Publishes chunks through a VersionControl collaborator.

    Strictly sequential: a chunk is fully pushed and recorded before the
    next one is looked at.

    Usage:
        engine = TransferEngine(GitRepository(), FileLedger(path))
        result = engine.push_file(source, chunks)
    """

    def __init__(
        self,
        vcs: VersionControl,
        ledger: Ledger,
        remote: str = "origin",
        branch: str = "main",
        backoff: LinearBackoff | None = None,
        on_chunk: ChunkCallback | None = None,
        on_retry: RetryCallback | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            vcs: Collaborator providing stage/commit/push/rollback.
            ledger: Record of already pushed chunks.
            remote: Remote to push to.
            branch: Branch to push.
            backoff: Delay schedule for failed pushes.
            on_chunk: Optional callback invoked after each chunk is handled.
            on_retry: Optional callback invoked before each backoff sleep.
        """
        self._vcs = vcs
        self._ledger = ledger
        self._remote = remote
        self._branch = branch
        self._backoff = backoff or LinearBackoff()
        self._on_chunk = on_chunk
        self._on_retry = on_retry

    def push_file(self, source: Path, chunks: Iterable[ChunkFile], resplit: bool = False) -> FileResult:
        """Push every chunk of a source file in ascending index order.

        Args:
            source: Original file the chunks belong to.
            chunks: Parts of ``source``.
            resplit: Whether the parts were just regenerated.

        Returns:
            FileResult with one ChunkResult per chunk.
        """
        result = FileResult(source=str(source), resplit=resplit)
        for chunk in sorted(chunks, key=lambda c: c.index):
            message = f"Add chunk {chunk.chunk_id} from {source}"
            result.chunks.append(self.push_chunk(chunk.chunk_id, message))
        return result

    def push_chunk(self, chunk: ChunkFile | str, message: str | None = None) -> ChunkResult:
        """Stage, commit and push a single chunk.

        Args:
            chunk: Chunk or chunk path.
            message: Commit message (default: "Add chunk <id>").

        Returns:
            ChunkResult describing what happened.

        Raises:
            VcsError: If staging or rolling back fails.
        """
        chunk_id = chunk.chunk_id if isinstance(chunk, ChunkFile) else chunk_id_for(chunk)

        if self._ledger.has(chunk_id):
            logger.info(f"Already pushed: {chunk_id}, skipping")
            return self._done(ChunkResult(chunk_id, ChunkOutcome.ALREADY_PUSHED))

        message = message or f"Add chunk {chunk_id}"

        def attempt() -> bool:
            self._stage(chunk_id)
            if not self._vcs.commit(message):
                raise _NothingToCommit(chunk_id)
            logger.info(f"Pushing {chunk_id} to {self._remote}/{self._branch}")
            if self._vcs.push(self._remote, self._branch):
                return True
            logger.info(f"Push failed for {chunk_id}. Rolling back last commit...")
            self._vcs.undo_last_commit()
            self._vcs.unstage(chunk_id)
            return False

        def on_retry(attempt_number: int, delay: float) -> None:
            if self._on_retry:
                self._on_retry(chunk_id, attempt_number, delay)

        try:
            attempts = retry_until_success(
                attempt,
                backoff=self._backoff,
                on_retry=on_retry,
                description=f"Push of {chunk_id}",
            )
        except _NothingToCommit:
            logger.info(f"Nothing to commit for {chunk_id}. Skipping.")
            return self._done(ChunkResult(chunk_id, ChunkOutcome.NOTHING_TO_COMMIT))

        self._ledger.record(chunk_id)
        logger.info(f"Successfully pushed {chunk_id}")
        return self._done(ChunkResult(chunk_id, ChunkOutcome.PUSHED, attempts=attempts))

    def _stage(self, chunk_id: str) -> None:
        self._vcs.remove_cached(chunk_id)
        self._vcs.stage(chunk_id, force=True)

    def _done(self, result: ChunkResult) -> ChunkResult:
        if self._on_chunk:
            self._on_chunk(result)
        return result
