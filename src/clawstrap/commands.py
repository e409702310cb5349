"""Thin wrappers around subprocess for the external tools we drive.

apt-get, curl pipelines, npm, ollama, systemctl and the agent binary
are all opaque to us: we run them, wait, and look at the exit code.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from typing import Optional, Sequence

from .errors import CommandError

logger = logging.getLogger("clawstrap.commands")

# Package installs and model pulls on a Pi over a slow link take a while.
DEFAULT_TIMEOUT = 3600


def run(
    cmd: Sequence[str],
    check: bool = True,
    timeout: Optional[int] = DEFAULT_TIMEOUT,
    input_text: Optional[str] = None,
    env: Optional[dict] = None,
    capture: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command and wait for it.

    Args:
        cmd: Command and arguments.
        check: Raise CommandError on non-zero exit.
        timeout: Seconds before giving up.
        input_text: Text fed to stdin.
        env: Extra environment variables layered over os.environ.
        capture: Capture stdout/stderr instead of streaming them.

    Returns:
        CompletedProcess with stdout/stderr (empty when not captured).

    Raises:
        CommandError: On non-zero exit with check=True, a missing
            executable, or a timeout.
    """
    full_env = None
    if env:
        full_env = {**os.environ, **env}

    logger.info("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=capture,
            text=True,
            timeout=timeout,
            input=input_text,
            env=full_env,
        )
    except FileNotFoundError as exc:
        raise CommandError(cmd, 127, str(exc)) from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(cmd, -1, f"timed out after {timeout}s") from exc

    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr or "")
    return result


def run_shell(script: str, check: bool = True, timeout: Optional[int] = DEFAULT_TIMEOUT) -> subprocess.CompletedProcess:
    """Run a shell pipeline (used for the curl | sh installers)."""
    return run(["bash", "-o", "pipefail", "-c", script], check=check, timeout=timeout, capture=False)


def sudo(*args: str) -> list[str]:
    """Prefix a command with sudo unless we already are root."""
    if os.geteuid() == 0:
        return list(args)
    return ["sudo", *args]


def have(tool: str) -> bool:
    """Whether ``tool`` resolves on PATH."""
    return shutil.which(tool) is not None


def output_of(cmd: Sequence[str]) -> str:
    """Stdout of a command, or "" when it fails or is missing."""
    try:
        result = run(cmd, check=False, timeout=30)
    except CommandError:
        return ""
    if result.returncode != 0:
        return ""
    return (result.stdout or "").strip()
