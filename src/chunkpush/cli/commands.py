"""Main command for the chunkpush CLI.

Modes (--recombine overrides the others, which are mutually exclusive):
- --push (default): split each file, then commit and push every chunk
- --split-only: split each file, no version control interaction
- --rewrap: like --push, then push untracked chunks left by earlier runs
- --recombine: rebuild each file from its chunks
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from chunkpush.cli.config import build_push_config, setup_logging
from chunkpush.core.chunking import prepare_chunks, recombine
from chunkpush.core.config import PushConfig
from chunkpush.core.types import (
    ChunkOutcome,
    ChunkPushError,
    ChunksNotFoundError,
    ConfigError,
    RunMode,
)
from chunkpush.transfer import (
    ChunkResult,
    FileLedger,
    IgnoreRules,
    Ledger,
    LinearBackoff,
    RewrapScanner,
    TransferEngine,
)
from chunkpush.vcs import GitRepository

logger = logging.getLogger(__name__)


def _ledger_pattern(ledger_path: Path) -> str | None:
    """Ignore pattern for the ledger, or None if it lives outside the working tree."""
    if not ledger_path.is_absolute():
        return ledger_path.as_posix()
    try:
        return ledger_path.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return None


def build_ignore_rules(config: PushConfig, files: tuple[Path, ...]) -> IgnoreRules:
    """Collect the patterns that keep the ledger and originals out of commits."""
    rules = IgnoreRules()
    ledger_pattern = _ledger_pattern(config.ledger_path)
    if ledger_pattern:
        rules.add_pattern(ledger_pattern)
    for pattern in config.ignore_patterns:
        rules.add_pattern(pattern)
    for path in files:
        rules.cover(path)
    return rules


def echo_chunk_result(result: ChunkResult) -> None:
    """Print one line per handled chunk."""
    if result.outcome is ChunkOutcome.PUSHED:
        click.echo(click.style(f"  ✓ Pushed {result.chunk_id}", fg="green"))
    elif result.outcome is ChunkOutcome.ALREADY_PUSHED:
        click.echo(f"  = Already pushed: {result.chunk_id}")
    else:
        click.echo(click.style(f"  ! Nothing to commit for {result.chunk_id}", fg="yellow"))


def echo_retry(chunk_id: str, attempt: int, delay: float) -> None:
    """Print a notice before waiting to retry a failed push."""
    click.echo(
        click.style(
            f"  ✗ Push failed for {chunk_id} (attempt {attempt}). Retrying in {delay:.0f}s...",
            fg="red",
        )
    )


def resolve_mode(push_mode: bool, split_only: bool, rewrap: bool, recombine: bool) -> RunMode:
    """Pick the run mode from the mode flags.

    --recombine takes precedence over everything else. Of the remaining
    flags at most one may be given; none means push.

    Raises:
        click.UsageError: If --push, --split-only and --rewrap are combined.
    """
    if recombine:
        return RunMode.RECOMBINE
    chosen = [
        mode
        for mode, flag in (
            (RunMode.PUSH, push_mode),
            (RunMode.SPLIT_ONLY, split_only),
            (RunMode.REWRAP, rewrap),
        )
        if flag
    ]
    if len(chosen) > 1:
        raise click.UsageError("--push, --split-only and --rewrap are mutually exclusive.")
    return chosen[0] if chosen else RunMode.PUSH


def run_recombine(files: tuple[Path, ...]) -> None:
    """Rebuild each file from its chunks, reporting missing chunks per file."""
    for path in files:
        click.echo(f"Recombining parts for {path} ...")
        try:
            recombine(path)
        except ChunksNotFoundError as e:
            click.echo(click.style(f"  ✗ {e}", fg="red"), err=True)
            continue
        click.echo(click.style(f"  ✓ Recombined into {path}", fg="green"))


def run_transfer(mode: RunMode, config: PushConfig, ledger: Ledger, files: tuple[Path, ...]) -> None:
    """Split each file and, unless splitting only, push its chunks."""
    engine: TransferEngine | None = None
    repo: GitRepository | None = None
    scanner: RewrapScanner | None = None

    if mode.uses_vcs:
        build_ignore_rules(config, files).ensure_in_file(config.ignore_file)

        repo = GitRepository()
        engine = TransferEngine(
            repo,
            ledger,
            remote=config.remote,
            branch=config.branch,
            backoff=LinearBackoff(
                initial=config.initial_delay,
                increment=config.delay_increment,
                maximum=config.max_delay,
            ),
            on_chunk=echo_chunk_result,
            on_retry=echo_retry,
        )
        if mode is RunMode.REWRAP:
            scanner = RewrapScanner(repo, engine)

    for path in files:
        click.echo(f"Processing {path} ...")
        chunks, resplit = prepare_chunks(path, config.chunk_size)
        if resplit:
            click.echo(f"  Re-split {path} into {len(chunks)} chunks")
            if repo is not None:
                repo.remove_cached(str(path))

        if engine is None:
            click.echo(click.style(f"  ✓ Split complete for {path} ({len(chunks)} chunks)", fg="green"))
            continue

        result = engine.push_file(path, chunks, resplit=resplit)
        click.echo(
            f"Finished {path}: {result.pushed} pushed, "
            f"{result.already_pushed} already pushed, "
            f"{result.nothing_to_commit} unchanged"
        )

        if scanner is not None:
            click.echo("Checking for untracked chunks (rewrap)...")
            swept = scanner.sweep()
            if not swept:
                click.echo("  No untracked chunks.")


@click.command()
@click.option("--push", "push_mode", is_flag=True,
              help="Split, commit and push each file (default).")
@click.option("--split-only", is_flag=True,
              help="Only split files, without any git interaction.")
@click.option("--rewrap", is_flag=True,
              help="Push, then also push untracked chunks left by earlier runs.")
@click.option("--recombine", is_flag=True,
              help="Rebuild each file from its chunks. Overrides the other modes.")
@click.option("--remote", default=None, help="Remote to push to (default: origin).")
@click.option("--branch", default=None, help="Branch to push (default: main).")
@click.option("--ledger", "ledger_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Progress ledger file (default: .pushed_chunks.log).")
@click.option("--chunk-size", type=click.IntRange(min=1), default=None,
              help="Chunk size in bytes (default: 10 MiB).")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="JSON config file (default: ./.chunkpush.json).")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Also write log records to this file.")
@click.option("--verbose", "-v", count=True, help="Show more log output (repeat for debug).")
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.version_option(package_name="chunkpush")
def push(
    push_mode: bool,
    split_only: bool,
    rewrap: bool,
    recombine: bool,
    remote: str | None,
    branch: str | None,
    ledger_path: Path | None,
    chunk_size: int | None,
    config_path: Path | None,
    log_file: Path | None,
    verbose: int,
    files: tuple[Path, ...],
) -> None:
    """Split large FILES into chunks and push them to a git remote.

    Chunks are named <file>.part.000, <file>.part.001, ... and pushed one
    commit at a time. Failed pushes are retried until they succeed.
    Pushed chunks are recorded in a ledger so reruns skip them.
    """
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    setup_logging(level, log_file)

    try:
        config = build_push_config(
            config_path,
            remote=remote,
            branch=branch,
            ledger_path=ledger_path,
            chunk_size=chunk_size,
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    run_mode = resolve_mode(push_mode, split_only, rewrap, recombine)

    try:
        ledger = FileLedger(config.ledger_path)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if run_mode is RunMode.RECOMBINE:
        run_recombine(files)
        return

    try:
        run_transfer(run_mode, config, ledger, files)
    except (OSError, ChunkPushError) as e:
        logger.debug("Aborting", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
