"""
Preflight checks. Refuse to touch the host when it is the wrong host.

Fatal before anything is written:
  - running as root (the agent must run as a normal user; we sudo per step)
  - a non-aarch64 machine, unless the operator explicitly overrides

Also provides the small tool probes that phase preconditions use.
"""

from __future__ import annotations

import os
import platform
import re
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from . import commands
from .errors import PreflightError

EXPECTED_ARCH = "aarch64"
REQUIRED_NODE_MAJOR = 22


class ToolStatus(str, Enum):
    """Status of a system tool."""
    INSTALLED = "installed"
    MISSING = "missing"


@dataclass
class ToolCheck:
    """Result of checking a single system tool."""

    name: str
    status: ToolStatus
    version: str = ""
    path: str = ""

    @property
    def installed(self) -> bool:
        return self.status == ToolStatus.INSTALLED


def check_privileges() -> None:
    """Refuse to run as root.

    Raises:
        PreflightError: When the effective uid is 0.
    """
    if os.geteuid() == 0:
        raise PreflightError(
            "Do NOT run this installer as root. Run it as your normal user; "
            "it uses sudo where needed."
        )


def machine_arch() -> str:
    return platform.machine()


def check_architecture(confirm: Callable[[str], bool]) -> str:
    """Verify the CPU architecture, asking before continuing on a mismatch.

    Args:
        confirm: Yes/no prompt used when the arch is unexpected.

    Returns:
        str: The detected architecture.

    Raises:
        PreflightError: When the arch is wrong and the operator declines.
    """
    arch = machine_arch()
    if arch == EXPECTED_ARCH:
        return arch
    if confirm(f"Detected architecture {arch} (expected {EXPECTED_ARCH} for 64-bit Pi OS). Continue anyway?"):
        return arch
    raise PreflightError(f"Unsupported architecture {arch}; installation cancelled.")


def check_tool(name: str, version_args: tuple[str, ...] = ("--version",)) -> ToolCheck:
    """Probe a tool on PATH and read its version line."""
    path = shutil.which(name)
    if not path:
        return ToolCheck(name=name, status=ToolStatus.MISSING)
    version = commands.output_of([name, *version_args]).splitlines()
    return ToolCheck(
        name=name,
        status=ToolStatus.INSTALLED,
        version=version[0][:80] if version else "",
        path=path,
    )


def node_major_version() -> Optional[int]:
    """Major version of the installed Node.js, or None."""
    check = check_tool("node")
    if not check.installed:
        return None
    match = re.match(r"v?(\d+)", check.version)
    return int(match.group(1)) if match else None


def node_ok() -> bool:
    major = node_major_version()
    return major is not None and major >= REQUIRED_NODE_MAJOR
