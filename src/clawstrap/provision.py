"""
The provisioning run: every phase, in order, with its precondition.

  system-packages  apt update/upgrade + core tools           fatal
  chromium         headless browser for the agent            warn
  docker           sandbox runtime                           warn
  nodejs           Node.js 22 from NodeSource                fatal
  npm-prefix       user-level npm global prefix              fatal
  shell-path       PATH fragment in shell profiles           warn
  ollama           local model runtime                       warn
  model-*          small local models                        warn
  openclaw         the agent binary                          fatal
  config           env file, openclaw.json, persona docs     fatal
  service          systemd unit, enabled at boot             fatal
  tune-*           sysctl / limits / swap tweaks             warn
  aliases          oc-* shell aliases                        warn
  health           artifact checks + `openclaw doctor`       warn
"""

from __future__ import annotations

import getpass
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from . import commands, tuning
from .artifacts import (
    ArtifactResult,
    alias_artifacts,
    config_artifacts,
    fragments_present,
    path_fragment_artifacts,
    write_artifacts,
)
from .doctor import DiagnosticReport, run_diagnostics
from .errors import BinaryNotFoundError, CommandError, ProvisionError
from .models import ConfigurationProfile, FailurePolicy
from .paths import ProvisionPaths
from .phases import Phase, PhaseSequencer, SequenceResult
from .preflight import node_ok
from .systemd import build_descriptor, install_service, resolve_binary

logger = logging.getLogger("clawstrap.provision")

# apt package -> binary proving it is installed.
CORE_PACKAGES: dict[str, str] = {
    "git": "git",
    "jq": "jq",
    "ripgrep": "rg",
    "curl": "curl",
    "wget": "wget",
    "build-essential": "make",
    "vim": "vim",
    "gh": "gh",
    "ffmpeg": "ffmpeg",
    "unzip": "unzip",
    "zstd": "zstd",
    "htop": "htop",
    "tmux": "tmux",
    "ca-certificates": "update-ca-certificates",
    "gnupg": "gpg",
    "lsb-release": "lsb_release",
    "apt-transport-https": "apt-get",
    "python3": "python3",
    "python3-pip": "pip3",
    "pv": "pv",
    "rsync": "rsync",
    "dnsutils": "dig",
}

CHROMIUM_PACKAGES = ("chromium-browser", "chromium")
NODESOURCE_SETUP = "https://deb.nodesource.com/setup_22.x"
DOCKER_INSTALL = "https://get.docker.com"
OLLAMA_INSTALL = "https://ollama.com/install.sh"
OPENCLAW_INSTALL = "https://openclaw.bot/install.sh"
OPENCLAW_NPM_PACKAGE = "@openclaw/cli"
LOCAL_MODELS = ("qwen3:1.7b", "gemma3:1b")


@dataclass
class ProvisionContext:
    """State shared between phases of one run.

    Attributes:
        paths: Host layout.
        profile: Interview answers.
        binary: Resolved agent binary, once known.
        artifacts: Outcome of every artifact written this run.
        report: Health report from the final phase.
    """

    paths: ProvisionPaths
    profile: ConfigurationProfile
    binary: Optional[Path] = None
    artifacts: dict[Path, ArtifactResult] = field(default_factory=dict)
    report: Optional[DiagnosticReport] = None

    def ensure_npm_bin_on_path(self) -> None:
        """Make the npm user prefix visible to this process and children."""
        npm_bin = str(self.paths.npm_bin)
        current = os.environ.get("PATH", "")
        if npm_bin not in current.split(os.pathsep):
            os.environ["PATH"] = npm_bin + os.pathsep + current


# ---------------------------------------------------------------------------
# Actions and checks
# ---------------------------------------------------------------------------

def _apt_install(*packages: str) -> None:
    commands.run(commands.sudo("apt-get", "install", "-y", *packages), capture=False)


def packages_present() -> bool:
    return all(commands.have(binary) for binary in CORE_PACKAGES.values())


def install_system_packages() -> None:
    commands.run(commands.sudo("apt-get", "update", "-y"), capture=False)
    commands.run(commands.sudo("apt-get", "upgrade", "-y"), capture=False)
    _apt_install(*CORE_PACKAGES)


def chromium_present() -> bool:
    return any(commands.have(name) for name in CHROMIUM_PACKAGES)


def install_chromium() -> None:
    # The package name differs between Pi OS and Debian proper.
    last: Optional[CommandError] = None
    for package in CHROMIUM_PACKAGES:
        try:
            _apt_install(package)
            return
        except CommandError as exc:
            last = exc
    raise ProvisionError(f"could not install Chromium: {last}")


def install_docker() -> None:
    commands.run_shell(f"curl -fsSL {DOCKER_INSTALL} | sudo sh")
    commands.run(commands.sudo("usermod", "-aG", "docker", getpass.getuser()))
    logger.info("Docker installed; group membership applies after reboot")


def install_nodejs() -> None:
    commands.run_shell(f"curl -fsSL {NODESOURCE_SETUP} | sudo -E bash -")
    _apt_install("nodejs")


def npm_prefix_done(ctx: ProvisionContext) -> bool:
    return commands.output_of(["npm", "config", "get", "prefix"]) == str(ctx.paths.npm_prefix)


def configure_npm_prefix(ctx: ProvisionContext) -> None:
    ctx.paths.npm_prefix.mkdir(parents=True, exist_ok=True)
    commands.run(["npm", "config", "set", "prefix", str(ctx.paths.npm_prefix)])
    ctx.ensure_npm_bin_on_path()


def install_ollama() -> None:
    commands.run_shell(f"curl -fsSL {OLLAMA_INSTALL} | sh")
    # The installer starts ollama.service; give it a moment before pulls.
    time.sleep(3)


def model_present(model: str) -> bool:
    listing = commands.output_of(["ollama", "list"])
    return any(line.split()[0] == model for line in listing.splitlines()[1:] if line.strip())


def pull_model(model: str) -> Callable[[], None]:
    def _pull() -> None:
        commands.run(["ollama", "pull", model], capture=False)
    return _pull


def binary_present(ctx: ProvisionContext) -> bool:
    try:
        ctx.binary = resolve_binary(ctx.paths)
    except BinaryNotFoundError:
        return False
    return True


def install_openclaw(ctx: ProvisionContext) -> None:
    try:
        commands.run_shell(f"curl -fsSL {OPENCLAW_INSTALL} | bash")
    except CommandError as exc:
        logger.warning("Official installer failed (%s); trying npm global install", exc)
        commands.run(["npm", "install", "-g", OPENCLAW_NPM_PACKAGE], capture=False)
    ctx.ensure_npm_bin_on_path()
    ctx.binary = resolve_binary(ctx.paths)
    logger.info("OpenClaw installed at %s", ctx.binary)


def write_config(ctx: ProvisionContext) -> None:
    ctx.paths.workspace.mkdir(parents=True, exist_ok=True)
    ctx.artifacts.update(write_artifacts(config_artifacts(ctx.paths), ctx.profile))


def register_service(ctx: ProvisionContext) -> None:
    if ctx.binary is None:
        ctx.binary = resolve_binary(ctx.paths)
    install_service(build_descriptor(ctx.binary, ctx.paths), ctx.paths.unit_dir)


def write_fragments(ctx: ProvisionContext, build: Callable) -> Callable[[], None]:
    def _write() -> None:
        ctx.artifacts.update(write_artifacts(build(ctx.paths), ctx.profile))
    return _write


def verify_health(ctx: ProvisionContext) -> None:
    if ctx.binary is None:
        # Resumed runs skip the phase that resolves it.
        binary_present(ctx)
    ctx.report = run_diagnostics(ctx.paths, binary=ctx.binary)
    failed = [c.description for c in ctx.report.checks if not c.passed]
    if failed:
        raise ProvisionError("health check reported issues: " + ", ".join(failed))


# ---------------------------------------------------------------------------
# Phase list
# ---------------------------------------------------------------------------

def build_phases(ctx: ProvisionContext) -> list[Phase]:
    """Every provisioning phase for a context, in execution order."""
    warn = FailurePolicy.WARN
    phases = [
        Phase("system-packages", "System update & core dependencies",
              install_system_packages, packages_present),
        Phase("chromium", "Chromium (headless browser)", install_chromium, chromium_present,
              policy=warn, remedy="sudo apt-get install -y chromium"),
        Phase("docker", "Docker", install_docker, lambda: commands.have("docker"),
              policy=warn, remedy=f"curl -fsSL {DOCKER_INSTALL} | sudo sh"),
        Phase("nodejs", "Node.js 22.x", install_nodejs, node_ok),
        Phase("npm-prefix", "npm user prefix",
              lambda: configure_npm_prefix(ctx), lambda: npm_prefix_done(ctx)),
        Phase("shell-path", "PATH in shell profiles",
              write_fragments(ctx, path_fragment_artifacts),
              lambda: fragments_present(path_fragment_artifacts(ctx.paths)), policy=warn,
              remedy="echo 'export PATH=\"$HOME/.npm-global/bin:$PATH\"' >> ~/.bashrc"),
        Phase("ollama", "Ollama", install_ollama, lambda: commands.have("ollama"),
              policy=warn, remedy=f"curl -fsSL {OLLAMA_INSTALL} | sh"),
    ]
    for model in LOCAL_MODELS:
        phases.append(Phase(
            f"model-{model.split(':')[0]}", f"Local model {model}",
            pull_model(model), lambda m=model: model_present(m),
            policy=warn, remedy=f"ollama pull {model}",
        ))
    phases += [
        Phase("openclaw", "OpenClaw agent", lambda: install_openclaw(ctx), lambda: binary_present(ctx),
              remedy=f"npm install -g {OPENCLAW_NPM_PACKAGE}"),
        Phase("config", "Configuration & persona", lambda: write_config(ctx)),
        Phase("service", "systemd service", lambda: register_service(ctx)),
        Phase("tune-inotify", "File watcher limit", tuning.raise_inotify_watches, tuning.inotify_done,
              policy=warn),
        Phase("tune-nofile", "Open file limit", tuning.raise_nofile_limits, tuning.nofile_done,
              policy=warn),
        Phase("tune-swappiness", "Swappiness", tuning.lower_swappiness, tuning.swappiness_done,
              policy=warn),
        Phase("tune-swapfile", "2GB swap file", tuning.create_swapfile, tuning.swapfile_done,
              policy=warn),
        Phase("aliases", "Convenience aliases", write_fragments(ctx, alias_artifacts),
              lambda: fragments_present(alias_artifacts(ctx.paths)), policy=warn),
        Phase("health", "Health check", lambda: verify_health(ctx),
              policy=warn, remedy="openclaw doctor"),
    ]
    return phases


def run_provisioning(
    ctx: ProvisionContext,
    start_at: Optional[str] = None,
    on_phase_start: Optional[Callable[[Phase], None]] = None,
) -> SequenceResult:
    """Run every phase for ``ctx``.

    Raises:
        PhaseFailedError: When a fatal phase fails.
    """
    ctx.paths.home.mkdir(parents=True, exist_ok=True)
    ctx.ensure_npm_bin_on_path()
    sequencer = PhaseSequencer(build_phases(ctx), on_phase_start=on_phase_start)
    return sequencer.run(start_at=start_at)
