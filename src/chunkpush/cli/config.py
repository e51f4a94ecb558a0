"""Configuration utilities for the chunkpush CLI.

This module provides config-file loading and logging setup shared by the
CLI commands.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from chunkpush.core.config import PushConfig
from chunkpush.core.types import ConfigError

CONFIG_FILE_NAME = ".chunkpush.json"


def get_config_file() -> Path:
    """Get the path to the project-local config file."""
    return Path.cwd() / CONFIG_FILE_NAME


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load configuration from the config file, if present."""
    config_file = path or get_config_file()
    if not config_file.exists():
        return {}
    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a JSON object")
    return data


def build_push_config(path: Path | None = None, **overrides: object) -> PushConfig:
    """Build the effective configuration.

    Precedence, lowest first: defaults, config file, CHUNKPUSH_*
    environment variables, then non-None ``overrides`` (CLI options).
    """
    config = PushConfig.from_mapping(load_config(path)).with_env()
    options = {k: v for k, v in overrides.items() if v is not None}
    if options:
        config = replace(config, **options)
    return config


def setup_logging(level: int = logging.WARNING, log_path: Path | None = None) -> None:
    """Configure the chunkpush logger to output to stderr and optionally a file.

    Args:
        level: Logging level for the chunkpush logger.
        log_path: Optional path of a log file receiving the same records.
    """
    root_logger = logging.getLogger("chunkpush")
    root_logger.setLevel(level)

    # Remove handlers from a previous call (e.g. repeated CLI invocations in tests)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(stream_handler)

    if log_path is not None:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root_logger.addHandler(file_handler)

    root_logger.propagate = False
