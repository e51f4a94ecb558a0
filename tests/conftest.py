"""Shared fixtures for chunkpush tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest


class FakeRepository:
    """In-memory VersionControl that records calls.

    Push results are scripted through ``push_results``; once the list is
    exhausted every push succeeds.
    """

    def __init__(self, push_results: list[bool] | None = None) -> None:
        self.push_results = list(push_results or [])
        self.calls: list[tuple[str, ...]] = []
        self.staged: set[str] = set()
        self.tracked: set[str] = set()
        self.commits: list[tuple[str, frozenset[str]]] = []
        self.pushed_commits = 0
        self.untracked: list[str] = []

    def stage(self, path: str, force: bool = True) -> None:
        self.calls.append(("stage", path))
        if path not in self.tracked:
            self.staged.add(path)

    def remove_cached(self, path: str) -> None:
        self.calls.append(("remove_cached", path))

    def commit(self, message: str) -> bool:
        self.calls.append(("commit", message))
        if not self.staged:
            return False
        self.commits.append((message, frozenset(self.staged)))
        self.tracked |= self.staged
        self.staged = set()
        return True

    def push(self, remote: str, branch: str) -> bool:
        self.calls.append(("push", remote, branch))
        ok = self.push_results.pop(0) if self.push_results else True
        if ok:
            self.pushed_commits = len(self.commits)
        return ok

    def undo_last_commit(self) -> None:
        self.calls.append(("undo_last_commit",))
        _, paths = self.commits.pop()
        self.tracked -= paths

    def unstage(self, path: str) -> None:
        self.calls.append(("unstage", path))
        self.staged.discard(path)

    def list_untracked(self, pattern: str) -> list[str]:
        self.calls.append(("list_untracked", pattern))
        return [p for p in self.untracked if p not in self.tracked]

    def ops(self, name: str) -> list[tuple[str, ...]]:
        """Return recorded calls of one operation."""
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_vcs() -> FakeRepository:
    """Create a fake repository where every push succeeds."""
    return FakeRepository()


@pytest.fixture
def in_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run the test with the temporary directory as working directory."""
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture
def make_fake_vcs() -> type[FakeRepository]:
    """Give tests access to FakeRepository for scripted push results."""
    return FakeRepository
