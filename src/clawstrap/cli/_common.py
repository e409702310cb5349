"""Shared utilities for all CLI command modules.

Provides the Rich console, logging setup, and the preflight/profile
helpers that both `install` and `render` go through.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .. import OPENCLAW_HOME, __version__
from ..errors import ProvisionError
from ..models import ConfigurationProfile, load_profile
from ..paths import SYSTEM_UNIT_DIR
from ..preflight import check_privileges

console = Console()

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
LOG_FILE_NAME = "clawstrap.log"

home_option = click.option(
    "--home", default=OPENCLAW_HOME, type=click.Path(), help="Agent config directory.",
)
unit_dir_option = click.option(
    "--unit-dir", default=str(SYSTEM_UNIT_DIR), type=click.Path(),
    help="Directory for the systemd unit.",
)
answers_option = click.option(
    "--answers", default=None, type=click.Path(exists=True, dir_okay=False),
    help="YAML answers file (skips the interview).",
)


def configure_logging(log_dir: Path, verbose: bool = False) -> Path:
    """Send clawstrap's loggers to a file, and to stderr when verbose.

    Safe to call more than once; handlers are only attached once per file.

    Returns:
        Path: The log file in use.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger("clawstrap")
    root.setLevel(logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    known = {getattr(h, "baseFilename", None) for h in root.handlers}
    if str(log_file.resolve()) not in known:
        handler = logging.FileHandler(log_file)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if verbose and not any(getattr(h, "_clawstrap_console", False) for h in root.handlers):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(formatter)
        stream._clawstrap_console = True
        root.addHandler(stream)

    root.info("clawstrap %s logging to %s", __version__, log_file)
    return log_file


def fail(message: str) -> None:
    """Print a fatal diagnostic and exit with status 1."""
    console.print(f"\n  [bold red]ERROR[/] {message}\n")
    sys.exit(1)


def require_unprivileged() -> None:
    """Exit 1 before touching anything when running as root."""
    try:
        check_privileges()
    except ProvisionError as exc:
        fail(str(exc))


def load_answers(answers: Optional[str]) -> Optional[ConfigurationProfile]:
    """Load the answers file if one was given, exiting 1 when invalid."""
    if not answers:
        return None
    try:
        return load_profile(Path(answers))
    except ProvisionError as exc:
        fail(str(exc))
