"""Exception types raised by the provisioning run.

Everything fatal derives from ProvisionError so the CLI can turn it
into a one-line diagnostic and exit code 1.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class ProvisionError(Exception):
    """Base class for failures that abort the run."""


class PreflightError(ProvisionError):
    """Raised when the host or operator fails an initial precondition."""


class ProfileError(ProvisionError):
    """Raised when an answers file cannot be turned into a profile."""


class BinaryNotFoundError(ProvisionError):
    """Raised when the agent binary cannot be resolved on this host."""


class CommandError(ProvisionError):
    """Raised when an external command exits non-zero."""

    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        msg = f"{' '.join(self.cmd)} exited with {returncode}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class PhaseFailedError(ProvisionError):
    """Raised by the sequencer when a fatal phase fails."""

    def __init__(
        self,
        phase_id: str,
        cause: Optional[BaseException] = None,
        result: Optional[Any] = None,
    ) -> None:
        self.phase_id = phase_id
        self.cause = cause
        self.result = result
        msg = f"phase '{phase_id}' failed"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
