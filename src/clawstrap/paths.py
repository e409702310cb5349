"""Filesystem layout of a provisioned host."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import OPENCLAW_HOME

SYSTEM_UNIT_DIR = Path("/etc/systemd/system")
SERVICE_NAME = "openclaw.service"
BINARY_NAME = "openclaw"


@dataclass
class ProvisionPaths:
    """Where every artifact lives.

    Attributes:
        home: Agent config directory (~/.openclaw).
        user_home: Operator's home directory (shell profiles, npm prefix).
        unit_dir: Directory receiving the systemd unit.
    """

    home: Path
    user_home: Path = field(default_factory=Path.home)
    unit_dir: Path = SYSTEM_UNIT_DIR

    @classmethod
    def resolve(
        cls,
        home: Optional[str] = None,
        unit_dir: Optional[str] = None,
        user_home: Optional[str] = None,
    ) -> "ProvisionPaths":
        """Build paths from CLI options, expanding ``~``."""
        return cls(
            home=Path(home or OPENCLAW_HOME).expanduser(),
            user_home=Path(user_home).expanduser() if user_home else Path.home(),
            unit_dir=Path(unit_dir).expanduser() if unit_dir else SYSTEM_UNIT_DIR,
        )

    @property
    def env_file(self) -> Path:
        return self.home / ".env"

    @property
    def config_file(self) -> Path:
        return self.home / "openclaw.json"

    @property
    def workspace(self) -> Path:
        return self.home / "workspace"

    @property
    def log_dir(self) -> Path:
        return self.home / "logs"

    @property
    def unit_file(self) -> Path:
        return self.unit_dir / SERVICE_NAME

    @property
    def npm_prefix(self) -> Path:
        return self.user_home / ".npm-global"

    @property
    def npm_bin(self) -> Path:
        return self.npm_prefix / "bin"
