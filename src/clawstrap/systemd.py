"""Systemd service registration for the OpenClaw gateway.

Resolves the agent binary, renders a system-level unit that runs the
gateway as the invoking user, writes it to /etc/systemd/system, and
enables it for boot. The unit is system-owned and regenerated on every
run; starting the service is a separate, operator-confirmed step.

Usage:
    from clawstrap.systemd import build_descriptor, install_service, resolve_binary
    descriptor = build_descriptor(resolve_binary(paths), paths)
    install_service(descriptor, paths.unit_dir)
"""

from __future__ import annotations

import getpass
import grp
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from . import commands
from .errors import BinaryNotFoundError
from .models import ServiceDescriptor
from .paths import BINARY_NAME, SERVICE_NAME, SYSTEM_UNIT_DIR, ProvisionPaths

logger = logging.getLogger("clawstrap.systemd")

SYSTEM_PATH = ["/usr/local/bin", "/usr/bin", "/bin"]


@dataclass
class ServiceStatus:
    """Status of the openclaw systemd service.

    Attributes:
        installed: Whether the unit file exists.
        enabled: Whether the service is enabled at boot.
        active: Whether the service is currently running.
        pid: PID of the running service (0 if not running).
    """

    installed: bool = False
    enabled: bool = False
    active: bool = False
    pid: int = 0


def _systemctl(*args: str, check: bool = True) -> subprocess.CompletedProcess:
    """Run a system-level systemctl command (through sudo when needed)."""
    return commands.run(commands.sudo("systemctl", *args), check=check, timeout=60)


def candidate_paths(paths: ProvisionPaths) -> list[Path]:
    """Well-known install locations tried after the shell lookup."""
    return [
        paths.npm_bin / BINARY_NAME,
        Path("/usr/local/bin") / BINARY_NAME,
        paths.user_home / ".local" / "bin" / BINARY_NAME,
    ]


def resolve_binary(
    paths: ProvisionPaths,
    extra_paths: Optional[Sequence[Path]] = None,
) -> Path:
    """Find the agent binary.

    Search order: PATH lookup, then the npm user prefix,
    /usr/local/bin and ~/.local/bin, then ``extra_paths``.

    Raises:
        BinaryNotFoundError: Nothing downstream can work without it.
    """
    found = shutil.which(BINARY_NAME)
    if found:
        return Path(found)

    for candidate in [*candidate_paths(paths), *(extra_paths or [])]:
        if candidate.is_file() and os.access(candidate, os.X_OK):
            logger.info("Resolved %s at %s (not on PATH)", BINARY_NAME, candidate)
            return candidate

    raise BinaryNotFoundError(
        f"{BINARY_NAME} binary not found on PATH or in "
        + ", ".join(str(p) for p in candidate_paths(paths))
    )


def _primary_group() -> str:
    try:
        return grp.getgrgid(os.getgid()).gr_name
    except KeyError:
        return str(os.getgid())


def build_descriptor(binary: Path, paths: ProvisionPaths) -> ServiceDescriptor:
    """Derive the service descriptor for the invoking user."""
    return ServiceDescriptor(
        binary=binary,
        user=getpass.getuser(),
        group=_primary_group(),
        home=paths.user_home,
        working_directory=paths.user_home,
        env_file=paths.env_file,
        path_entries=[str(paths.npm_bin), *SYSTEM_PATH],
    )


def generate_unit_file(descriptor: ServiceDescriptor) -> str:
    """Render the systemd unit for a descriptor.

    Args:
        descriptor: Binary, identity, paths and limits for the service.

    Returns:
        str: Complete unit file content.
    """
    after = " ".join(descriptor.after)
    path_value = ":".join(descriptor.path_entries)
    return f"""[Unit]
Description={descriptor.description}
After={after}
Wants=network-online.target

[Service]
Type=simple
User={descriptor.user}
Group={descriptor.group}
WorkingDirectory={descriptor.working_directory}
ExecStart={descriptor.exec_start}
Restart=always
RestartSec={descriptor.restart_sec}
Environment=HOME={descriptor.home}
Environment=PATH={path_value}
EnvironmentFile={descriptor.env_file}

# Constrained host: lower priority, generous fd ceiling
Nice={descriptor.nice}
LimitNOFILE={descriptor.limit_nofile}

StandardOutput=journal
StandardError=journal
SyslogIdentifier={descriptor.syslog_identifier}

[Install]
WantedBy=multi-user.target
"""


def write_unit_file(content: str, unit_dir: Path = SYSTEM_UNIT_DIR) -> Path:
    """Write the unit, going through ``sudo tee`` when the dir isn't ours."""
    target = unit_dir / SERVICE_NAME
    if os.access(unit_dir, os.W_OK):
        target.write_text(content, encoding="utf-8")
    else:
        commands.run(commands.sudo("tee", str(target)), input_text=content)
    logger.info("Wrote unit file %s", target)
    return target


def install_service(descriptor: ServiceDescriptor, unit_dir: Path = SYSTEM_UNIT_DIR) -> dict:
    """Write the unit, reload systemd, and enable the service at boot.

    The service is not started.

    Returns:
        dict: Result with 'unit_path', 'installed', 'enabled'.
    """
    unit_path = write_unit_file(generate_unit_file(descriptor), unit_dir)
    _systemctl("daemon-reload")
    _systemctl("enable", SERVICE_NAME)
    logger.info("Enabled %s", SERVICE_NAME)
    return {"unit_path": unit_path, "installed": True, "enabled": True}


def start_service() -> bool:
    """Start the service now.

    Returns:
        bool: True if systemctl start succeeded.
    """
    r = _systemctl("start", SERVICE_NAME, check=False)
    return r.returncode == 0


def service_status(unit_dir: Path = SYSTEM_UNIT_DIR) -> ServiceStatus:
    """Query the current status of the openclaw service."""
    status = ServiceStatus()
    status.installed = (unit_dir / SERVICE_NAME).exists()
    if not status.installed:
        return status

    status.enabled = commands.output_of(["systemctl", "is-enabled", SERVICE_NAME]) == "enabled"
    status.active = commands.output_of(["systemctl", "is-active", SERVICE_NAME]) == "active"

    for line in commands.output_of(["systemctl", "show", SERVICE_NAME, "--property=MainPID"]).splitlines():
        key, _, value = line.partition("=")
        if key == "MainPID":
            try:
                status.pid = int(value)
            except ValueError:
                pass
    return status
