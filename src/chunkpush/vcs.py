"""Version control collaborator used to publish chunks.

This module provides:
- VersionControl: The operations the transfer engine needs from a VCS
- GitRepository: Implementation backed by the ``git`` executable
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from chunkpush.core.types import VcsError

logger = logging.getLogger(__name__)

# Substrings git prints when a commit has no changes to record
NOTHING_TO_COMMIT_MARKERS = (
    "nothing to commit",
    "nothing added to commit",
    "no changes added to commit",
)


class VersionControl(Protocol):
    """Capabilities required to stage, commit and publish chunks."""

    def stage(self, path: str, force: bool = True) -> None:
        """Stage ``path``, bypassing ignore rules when ``force`` is set."""

    def remove_cached(self, path: str) -> None:
        """Drop ``path`` from the index, keeping the file. Never fails."""

    def commit(self, message: str) -> bool:
        """Commit staged changes. Returns False when there was nothing to commit."""

    def push(self, remote: str, branch: str) -> bool:
        """Push ``branch`` to ``remote``. Returns False on failure."""

    def undo_last_commit(self) -> None:
        """Remove the last commit, keeping its changes in the working tree."""

    def unstage(self, path: str) -> None:
        """Remove ``path`` from the index without touching the working tree."""

    def list_untracked(self, pattern: str) -> list[str]:
        """List untracked, non-ignored files matching ``pattern``."""


class GitRepository:
    """VersionControl implementation that shells out to ``git``.

    All commands run with ``root`` as the working directory, so paths are
    interpreted relative to it.
    """

    def __init__(self, root: Path | None = None, git: str = "git") -> None:
        """Initialize the repository wrapper.

        Args:
            root: Working directory for git commands (default: current directory).
            git: Name or path of the git executable.
        """
        self._root = Path(root) if root is not None else Path.cwd()
        self._git = git

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run a git command without raising on a non-zero exit."""
        command = [self._git, *args]
        logger.debug(f"Running {' '.join(command)}")
        try:
            return subprocess.run(
                command,
                cwd=self._root,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise VcsError(f"Failed to run {self._git}: {e}", command) from e

    def _run_checked(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run a git command, raising VcsError on a non-zero exit."""
        result = self._run(*args)
        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            raise VcsError(
                f"git {' '.join(args)} failed: {output}",
                [self._git, *args],
                output,
            )
        return result

    def _has_revision(self, revision: str) -> bool:
        """Check whether a revision resolves to a commit."""
        return self._run("rev-parse", "--verify", "-q", f"{revision}^{{commit}}").returncode == 0

    def stage(self, path: str, force: bool = True) -> None:
        """Stage a file with ``git add``."""
        if force:
            self._run_checked("add", "-f", "--", path)
        else:
            self._run_checked("add", "--", path)

    def remove_cached(self, path: str) -> None:
        """Run ``git rm --cached``, ignoring failures (e.g. untracked path)."""
        result = self._run("rm", "--cached", "-f", "-q", "--", path)
        if result.returncode != 0:
            logger.debug(f"git rm --cached {path} ignored: {result.stderr.strip()}")

    def commit(self, message: str) -> bool:
        """Commit the index.

        Returns:
            True if a commit was created, False if git refused to commit
            (no staged changes, or any other commit failure).
        """
        result = self._run("commit", "-m", message)
        if result.returncode == 0:
            return True

        output = (result.stdout + result.stderr).strip()
        if any(marker in output for marker in NOTHING_TO_COMMIT_MARKERS):
            logger.debug(f"Nothing to commit: {output}")
        else:
            logger.warning(f"git commit failed: {output}")
        return False

    def push(self, remote: str, branch: str) -> bool:
        """Push a branch, reporting failure instead of raising."""
        result = self._run("push", remote, branch)
        if result.returncode != 0:
            logger.info(f"git push {remote} {branch} failed: {result.stderr.strip()}")
            return False
        return True

    def undo_last_commit(self) -> None:
        """Mixed reset to the parent commit.

        When the last commit is the root commit, the branch ref is deleted
        and the index emptied, which is what a mixed reset to an empty
        history would do.
        """
        if self._has_revision("HEAD~1"):
            self._run_checked("reset", "--mixed", "-q", "HEAD~1")
        else:
            self._run_checked("update-ref", "-d", "HEAD")
            self._run_checked("read-tree", "--empty")

    def unstage(self, path: str) -> None:
        """Reset a single path in the index."""
        if self._has_revision("HEAD"):
            self._run_checked("reset", "-q", "--", path)
        else:
            self._run_checked("rm", "--cached", "-q", "--ignore-unmatch", "--", path)

    def list_untracked(self, pattern: str) -> list[str]:
        """List untracked files matching a git pathspec.

        Paths are relative to the repository working directory and
        exclude anything covered by ignore rules.
        """
        result = self._run_checked(
            "ls-files", "-z", "--others", "--exclude-standard", "--", pattern
        )
        return [p for p in result.stdout.split("\0") if p]
