"""Small-host performance tweaks: file watchers, fd limits, swap.

Each tweak is guarded by a grep-style marker check so repeat runs
leave system files alone. All of them are optional for the agent.
"""

from __future__ import annotations

import getpass
import logging
from pathlib import Path

from . import commands

logger = logging.getLogger("clawstrap.tuning")

SYSCTL_CONF = Path("/etc/sysctl.conf")
LIMITS_CONF = Path("/etc/security/limits.conf")
FSTAB = Path("/etc/fstab")
SWAPFILE = Path("/swapfile")

INOTIFY_LINE = "fs.inotify.max_user_watches=524288"
SWAPPINESS_LINE = "vm.swappiness=10"
NOFILE_LIMIT = 65536
SWAP_SIZE = "2G"


def _contains(path: Path, needle: str) -> bool:
    try:
        return needle in path.read_text(encoding="utf-8")
    except OSError:
        return False


def _append_root_file(path: Path, text: str) -> None:
    commands.run(commands.sudo("tee", "-a", str(path)), input_text=text)


def inotify_done(sysctl_conf: Path = SYSCTL_CONF) -> bool:
    return _contains(sysctl_conf, "fs.inotify.max_user_watches")


def raise_inotify_watches(sysctl_conf: Path = SYSCTL_CONF) -> None:
    """Node's file watchers need far more than the Pi OS default."""
    _append_root_file(sysctl_conf, INOTIFY_LINE + "\n")
    commands.run(commands.sudo("sysctl", "-p"), check=False)


def nofile_done(limits_conf: Path = LIMITS_CONF) -> bool:
    return _contains(limits_conf, "nofile") and _contains(limits_conf, str(NOFILE_LIMIT))


def raise_nofile_limits(limits_conf: Path = LIMITS_CONF) -> None:
    user = getpass.getuser()
    _append_root_file(
        limits_conf,
        f"{user} soft nofile {NOFILE_LIMIT}\n{user} hard nofile {NOFILE_LIMIT}\n",
    )


def swappiness_done(sysctl_conf: Path = SYSCTL_CONF) -> bool:
    return _contains(sysctl_conf, "vm.swappiness")


def lower_swappiness(sysctl_conf: Path = SYSCTL_CONF) -> None:
    _append_root_file(sysctl_conf, SWAPPINESS_LINE + "\n")


def swapfile_done(swapfile: Path = SWAPFILE) -> bool:
    if swapfile.exists():
        return True
    return str(swapfile) in commands.output_of(["swapon", "--show"])


def create_swapfile(swapfile: Path = SWAPFILE, fstab: Path = FSTAB) -> None:
    """2 GB swap keeps 4 GB Pi models from OOMing during npm installs."""
    for cmd in (
        ("fallocate", "-l", SWAP_SIZE, str(swapfile)),
        ("chmod", "600", str(swapfile)),
        ("mkswap", str(swapfile)),
        ("swapon", str(swapfile)),
    ):
        commands.run(commands.sudo(*cmd))
    if not _contains(fstab, str(swapfile)):
        _append_root_file(fstab, f"{swapfile} none swap sw 0 0\n")
    logger.info("Created and enabled %s swap at %s", SWAP_SIZE, swapfile)
