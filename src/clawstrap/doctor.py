"""
Post-install health diagnostics.

Checks every artifact the provisioning run owns and then hands over to
the agent's own `openclaw doctor`. Nothing here writes to disk; a
failing check is reported with a fix, never acted upon.

Usage:
    clawstrap doctor
    clawstrap doctor --json-out
"""

from __future__ import annotations

import json
import stat
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .models import PROVIDER_KEY_FIELDS, SECRET_ENV_NAMES
from .paths import BINARY_NAME, ProvisionPaths
from .personas import PERSONA_TEMPLATES
from .templates import OLLAMA_DEFAULT_MODEL, parse_env

DOCTOR_TIMEOUT = 300

LLM_ENV_NAMES = [SECRET_ENV_NAMES[f] for f in PROVIDER_KEY_FIELDS.values()]


@dataclass
class Check:
    """A single diagnostic check result.

    Attributes:
        name: Short check identifier.
        description: Human-readable description.
        passed: Whether the check passed.
        detail: Extra info (path, mode, output tail, etc.).
        fix: Suggested fix if the check failed.
        category: Grouping (artifacts, service, agent, providers).
    """

    name: str
    description: str
    passed: bool
    detail: str = ""
    fix: str = ""
    category: str = "general"


@dataclass
class DiagnosticReport:
    """Full diagnostic report across all categories."""

    checks: list[Check] = field(default_factory=list)
    home: str = ""

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for c in self.checks if not c.passed)

    @property
    def total_count(self) -> int:
        return len(self.checks)

    @property
    def all_passed(self) -> bool:
        return self.failed_count == 0

    def get(self, name: str) -> Optional[Check]:
        """Look up a check by name."""
        return next((c for c in self.checks if c.name == name), None)

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict.

        Returns:
            dict: Full report data.
        """
        return {
            "home": self.home,
            "passed": self.passed_count,
            "failed": self.failed_count,
            "total": self.total_count,
            "all_passed": self.all_passed,
            "checks": [
                {
                    "name": c.name,
                    "category": c.category,
                    "description": c.description,
                    "passed": c.passed,
                    "detail": c.detail,
                    "fix": c.fix,
                }
                for c in self.checks
            ],
        }


def run_diagnostics(
    paths: ProvisionPaths,
    binary: Optional[Path] = None,
    external: bool = True,
) -> DiagnosticReport:
    """Run all diagnostic checks.

    Args:
        paths: Layout of the provisioned host.
        binary: Resolved agent binary, if known.
        external: Also run `openclaw doctor` when the binary is known.

    Returns:
        DiagnosticReport with results for every check.
    """
    report = DiagnosticReport(home=str(paths.home))

    report.checks.extend(_check_artifacts(paths))
    report.checks.extend(_check_providers(paths))
    report.checks.append(_check_unit(paths))
    report.checks.append(_check_binary(binary))
    if external and binary is not None:
        report.checks.append(run_external_doctor(binary))

    return report


def run_external_doctor(binary: Path) -> Check:
    """Run `<binary> doctor` and turn its exit status into a Check.

    A non-zero exit is a failed check, never an exception: the agent's
    doctor also flags optional things the operator may add later.
    """
    cmd = [str(binary), "doctor"]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=DOCTOR_TIMEOUT)
    except (subprocess.TimeoutExpired, OSError) as exc:
        return Check(
            name="agent:doctor",
            description="openclaw doctor",
            passed=False,
            detail=str(exc),
            fix=f"{BINARY_NAME} doctor",
            category="agent",
        )

    output = (result.stdout or "") + (result.stderr or "")
    tail = " | ".join(line.strip() for line in output.strip().splitlines()[-3:] if line.strip())
    return Check(
        name="agent:doctor",
        description="openclaw doctor",
        passed=result.returncode == 0,
        detail=tail[:200] or f"exit {result.returncode}",
        fix="" if result.returncode == 0 else f"{BINARY_NAME} doctor",
        category="agent",
    )


def _check_artifacts(paths: ProvisionPaths) -> list[Check]:
    """Check the config directory, env file, config and persona docs."""
    checks = [Check(
        name="home:exists",
        description="Config directory",
        passed=paths.home.is_dir(),
        detail=str(paths.home),
        fix="clawstrap install" if not paths.home.is_dir() else "",
        category="artifacts",
    )]

    env_file = paths.env_file
    if env_file.exists():
        mode = stat.S_IMODE(env_file.stat().st_mode)
        private = mode & 0o077 == 0
        checks.append(Check(
            name="env:mode",
            description="Environment file is private",
            passed=private,
            detail=oct(mode),
            fix=f"chmod 600 {env_file}" if not private else "",
            category="artifacts",
        ))
        lines = env_file.read_text(encoding="utf-8").splitlines()
        blank = [ln.split("=", 1)[0] for ln in lines if ln.strip().endswith("=") and not ln.startswith("#")]
        checks.append(Check(
            name="env:values",
            description="No empty secrets in environment file",
            passed=not blank,
            detail=", ".join(blank),
            fix=f"Remove empty entries from {env_file}" if blank else "",
            category="artifacts",
        ))
    else:
        checks.append(Check(
            name="env:mode",
            description="Environment file",
            passed=False,
            detail="missing",
            fix="clawstrap install",
            category="artifacts",
        ))

    config_file = paths.config_file
    if config_file.exists():
        try:
            json.loads(config_file.read_text(encoding="utf-8"))
            checks.append(Check(
                name="config:parse",
                description="Agent config",
                passed=True,
                detail=str(config_file),
                category="artifacts",
            ))
        except (json.JSONDecodeError, OSError) as exc:
            checks.append(Check(
                name="config:parse",
                description="Agent config",
                passed=False,
                detail=f"invalid JSON: {exc}",
                fix=f"Fix or delete {config_file} and run clawstrap install",
                category="artifacts",
            ))
    else:
        checks.append(Check(
            name="config:parse",
            description="Agent config",
            passed=False,
            detail="missing",
            fix="clawstrap install",
            category="artifacts",
        ))

    for name in PERSONA_TEMPLATES:
        doc = paths.workspace / name
        checks.append(Check(
            name=f"persona:{name}",
            description=f"{name} persona document",
            passed=doc.exists(),
            detail=str(doc) if doc.exists() else "missing",
            fix="clawstrap install" if not doc.exists() else "",
            category="artifacts",
        ))

    return checks


def configured_integrations(paths: ProvisionPaths) -> dict[str, bool]:
    """Which integrations the files on disk actually carry.

    Reads the merged env file and the config, so keys kept from an
    earlier run count even when this run skipped the question.

    Returns:
        dict: 'llm', 'discord' and 'search' flags.
    """
    env = parse_env(paths.env_file.read_text(encoding="utf-8")) if paths.env_file.exists() else {}
    return {
        "llm": any(name in env for name in LLM_ENV_NAMES) or _configured_model(paths) == OLLAMA_DEFAULT_MODEL,
        "discord": "DISCORD_BOT_TOKEN" in env,
        "search": "BRAVE_API_KEY" in env,
    }


def _check_providers(paths: ProvisionPaths) -> list[Check]:
    """Report which optional integrations have credentials."""
    present = configured_integrations(paths)
    model = _configured_model(paths)

    has_llm = present["llm"]
    return [
        Check(
            name="provider:llm",
            description="LLM provider configured",
            passed=has_llm,
            detail=model or "",
            fix="" if has_llm else "openclaw configure",
            category="providers",
        ),
        Check(
            name="provider:discord",
            description="Discord integration",
            passed=present["discord"],
            fix="" if present["discord"] else "openclaw configure",
            category="providers",
        ),
        Check(
            name="provider:search",
            description="Brave Search (optional)",
            # Optional integrations never fail the report.
            passed=True,
            detail="configured" if present["search"] else "not configured",
            category="providers",
        ),
    ]


def _configured_model(paths: ProvisionPaths) -> Optional[str]:
    try:
        data = json.loads(paths.config_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    return ((data.get("agents") or {}).get("defaults") or {}).get("model")


def _check_unit(paths: ProvisionPaths) -> Check:
    unit = paths.unit_file
    return Check(
        name="service:unit",
        description="systemd unit",
        passed=unit.exists(),
        detail=str(unit) if unit.exists() else "missing",
        fix="" if unit.exists() else "clawstrap install --start-at service",
        category="service",
    )


def _check_binary(binary: Optional[Path]) -> Check:
    return Check(
        name="agent:binary",
        description="openclaw binary",
        passed=binary is not None,
        detail=str(binary) if binary else "not found",
        fix="" if binary else "npm install -g @openclaw/cli",
        category="agent",
    )
