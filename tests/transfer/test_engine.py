"""Tests for the chunk transfer engine."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from chunkpush.core.chunking import find_chunks, split_file
from chunkpush.core.types import ChunkOutcome, VcsError
from chunkpush.transfer.engine import TransferEngine
from chunkpush.transfer.ledger import FileLedger
from chunkpush.transfer.retry import LinearBackoff
from chunkpush.transfer.types import ChunkResult
from chunkpush.vcs import GitRepository


@pytest.fixture
def ledger(tmp_path: Path) -> FileLedger:
    """Create an empty ledger."""
    return FileLedger(tmp_path / ".pushed_chunks.log")


@pytest.fixture
def source(in_tmp_dir: Path) -> Path:
    """Create a 25-byte source file split into 10-byte chunks."""
    path = Path("big.tar.gz")
    path.write_bytes(os.urandom(25))
    split_file(path, chunk_size=10)
    return path


@pytest.fixture
def no_sleep():
    """Skip backoff sleeps, recording requested delays."""
    with patch("chunkpush.transfer.retry.time.sleep") as mock_sleep:
        yield mock_sleep


class TestPushChunk:
    """Tests for pushing a single chunk."""

    def test_push_success(self, fake_vcs, ledger: FileLedger) -> None:
        """Stages, commits, pushes and records the chunk."""
        engine = TransferEngine(fake_vcs, ledger, remote="origin", branch="main")

        result = engine.push_chunk("big.tgz.part.000", "Add chunk big.tgz.part.000 from big.tgz")

        assert result == ChunkResult("big.tgz.part.000", ChunkOutcome.PUSHED, attempts=1)
        assert ledger.has("big.tgz.part.000")
        assert fake_vcs.calls == [
            ("remove_cached", "big.tgz.part.000"),
            ("stage", "big.tgz.part.000"),
            ("commit", "Add chunk big.tgz.part.000 from big.tgz"),
            ("push", "origin", "main"),
        ]

    def test_skips_recorded_chunk(self, fake_vcs, ledger: FileLedger) -> None:
        """A chunk already in the ledger causes no VCS calls."""
        ledger.record("big.tgz.part.000")
        engine = TransferEngine(fake_vcs, ledger)

        result = engine.push_chunk("big.tgz.part.000")

        assert result.outcome is ChunkOutcome.ALREADY_PUSHED
        assert fake_vcs.calls == []

    def test_nothing_to_commit_skips(self, ledger: FileLedger, no_sleep) -> None:
        """A commit with no changes is skipped and not recorded."""
        vcs = MagicMock(spec=GitRepository)
        vcs.commit.return_value = False
        engine = TransferEngine(vcs, ledger)

        result = engine.push_chunk("big.tgz.part.000")

        assert result.outcome is ChunkOutcome.NOTHING_TO_COMMIT
        vcs.push.assert_not_called()
        no_sleep.assert_not_called()
        assert not ledger.has("big.tgz.part.000")

    def test_default_commit_message(self, fake_vcs, ledger: FileLedger) -> None:
        """Without a message, the chunk id is used."""
        TransferEngine(fake_vcs, ledger).push_chunk("./x.part.003")
        assert ("commit", "Add chunk x.part.003") in fake_vcs.calls

    def test_retry_with_backoff(self, ledger: FileLedger, no_sleep, make_fake_vcs) -> None:
        """N failed pushes give N+1 attempts with delays 10, 15, 20, ..."""
        vcs = make_fake_vcs(push_results=[False, False, False])
        engine = TransferEngine(vcs, ledger)

        result = engine.push_chunk("big.tgz.part.000")

        assert result.outcome is ChunkOutcome.PUSHED
        assert result.attempts == 4
        assert len(vcs.ops("push")) == 4
        assert [c.args[0] for c in no_sleep.call_args_list] == [10.0, 15.0, 20.0]
        assert ledger.entries() == ["big.tgz.part.000"]

    def test_failed_push_rolls_back_before_retry(self, ledger: FileLedger, no_sleep, make_fake_vcs) -> None:
        """After a failed push the commit is undone and the chunk unstaged."""
        vcs = make_fake_vcs(push_results=[False])
        engine = TransferEngine(vcs, ledger)

        engine.push_chunk("c.part.000", "msg")

        assert [c[0] for c in vcs.calls] == [
            "remove_cached", "stage", "commit", "push",
            "undo_last_commit", "unstage",
            "remove_cached", "stage", "commit", "push",
        ]
        # Exactly one commit survives and was pushed
        assert len(vcs.commits) == 1
        assert vcs.pushed_commits == 1

    def test_ledger_written_only_after_success(self, ledger: FileLedger) -> None:
        """Nothing is recorded while pushes keep failing."""
        vcs = MagicMock(spec=GitRepository)
        vcs.commit.return_value = True
        vcs.push.side_effect = [False, False, True]
        recorded_before_success: list[bool] = []

        def fake_sleep(_: float) -> None:
            recorded_before_success.append(ledger.has("c.part.000"))

        engine = TransferEngine(vcs, ledger)
        with patch("chunkpush.transfer.retry.time.sleep", side_effect=fake_sleep):
            engine.push_chunk("c.part.000")

        assert recorded_before_success == [False, False]
        assert ledger.has("c.part.000")

    def test_custom_backoff_and_callbacks(self, ledger: FileLedger, no_sleep, make_fake_vcs) -> None:
        """Retry and chunk callbacks are invoked with details."""
        vcs = make_fake_vcs(push_results=[False, False])
        retries: list[tuple[str, int, float]] = []
        chunks: list[ChunkResult] = []
        engine = TransferEngine(
            vcs,
            ledger,
            backoff=LinearBackoff(initial=1, increment=1, maximum=1.5),
            on_chunk=chunks.append,
            on_retry=lambda cid, n, d: retries.append((cid, n, d)),
        )

        engine.push_chunk("c.part.000")

        assert retries == [("c.part.000", 1, 1), ("c.part.000", 2, 1.5)]
        assert [c.outcome for c in chunks] == [ChunkOutcome.PUSHED]

    def test_stage_failure_is_fatal(self, ledger: FileLedger) -> None:
        """A failing stage propagates as VcsError."""
        vcs = MagicMock(spec=GitRepository)
        vcs.stage.side_effect = VcsError("git add failed")
        engine = TransferEngine(vcs, ledger)

        with pytest.raises(VcsError):
            engine.push_chunk("c.part.000")

        assert not ledger.has("c.part.000")


class TestPushFile:
    """Tests for pushing every chunk of a file."""

    def test_pushes_all_chunks_in_order(self, fake_vcs, ledger: FileLedger, source: Path) -> None:
        """Each chunk gets its own commit, in index order."""
        engine = TransferEngine(fake_vcs, ledger)
        chunks = list(reversed(find_chunks(source)))

        result = engine.push_file(source, chunks)

        assert result.pushed == 3
        assert [m for m, _ in fake_vcs.commits] == [
            "Add chunk big.tar.gz.part.000 from big.tar.gz",
            "Add chunk big.tar.gz.part.001 from big.tar.gz",
            "Add chunk big.tar.gz.part.002 from big.tar.gz",
        ]
        assert ledger.entries() == [
            "big.tar.gz.part.000",
            "big.tar.gz.part.001",
            "big.tar.gz.part.002",
        ]

    def test_rerun_performs_no_operations(self, fake_vcs, ledger: FileLedger, source: Path) -> None:
        """With all chunks in the ledger, nothing is staged, committed or pushed."""
        for chunk in find_chunks(source):
            ledger.record(chunk.chunk_id)
        engine = TransferEngine(fake_vcs, ledger)

        result = engine.push_file(source, find_chunks(source))

        assert result.already_pushed == 3
        assert result.pushed == 0
        assert fake_vcs.calls == []

    def test_resplit_chunks_still_skipped(self, fake_vcs, ledger: FileLedger, source: Path) -> None:
        """Regenerated chunks with recorded ids are not pushed again."""
        for i in range(3):
            ledger.record(f"big.tar.gz.part.00{i}")
        chunks = split_file(source, chunk_size=10)
        engine = TransferEngine(fake_vcs, ledger)

        result = engine.push_file(source, chunks, resplit=True)

        assert result.resplit is True
        assert result.already_pushed == 3
        assert fake_vcs.ops("push") == []

    def test_resumes_after_partial_run(self, fake_vcs, ledger: FileLedger, source: Path) -> None:
        """Only chunks missing from the ledger are pushed."""
        ledger.record("big.tar.gz.part.000")
        engine = TransferEngine(fake_vcs, ledger)

        result = engine.push_file(source, find_chunks(source))

        assert [c.outcome for c in result.chunks] == [
            ChunkOutcome.ALREADY_PUSHED,
            ChunkOutcome.PUSHED,
            ChunkOutcome.PUSHED,
        ]
        assert result.nothing_to_commit == 0
        assert len(fake_vcs.ops("push")) == 2
