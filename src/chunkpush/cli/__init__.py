"""Command-line interface for chunkpush.

This module provides the main CLI entry point.

Commands:
- chunkpush [--push|--split-only|--rewrap|--recombine] FILE...
"""

from __future__ import annotations

from chunkpush.cli.config import (
    build_push_config,
    get_config_file,
    load_config,
    setup_logging,
)
from chunkpush.cli.commands import push

cli = push


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "build_push_config",
    "get_config_file",
    "load_config",
    "setup_logging",
]
