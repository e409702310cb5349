"""
Generated artifacts and the policies that decide how they are written.

  create-if-absent        config + persona docs; an existing file is the
                          operator's and is never touched
  append-if-missing-line  shell profile blocks; appended once, detected by
                          a marker string on later runs
  merge-keys              the env file; rewritten each run, keyed by name
  overwrite               system-owned files (the systemd unit)
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .models import ConfigurationProfile, WritePolicy
from .paths import ProvisionPaths
from .personas import PERSONA_TEMPLATES
from .templates import render_config, render_env, render_persona

logger = logging.getLogger("clawstrap.artifacts")

SECRET_FILE_MODE = 0o600
PLAIN_FILE_MODE = 0o644

PATH_MARKER = ".npm-global/bin"
PATH_BLOCK = 'export PATH="$HOME/.npm-global/bin:$PATH"\n'

ALIAS_MARKER = "OpenClaw Aliases"
ALIAS_BLOCK = """\
# ── OpenClaw Aliases ──
alias oc="openclaw"
alias oc-status="openclaw gateway status"
alias oc-logs="journalctl -u openclaw -f"
alias oc-restart="sudo systemctl restart openclaw"
alias oc-stop="sudo systemctl stop openclaw"
alias oc-start="sudo systemctl start openclaw"
alias oc-config="openclaw configure"
alias oc-doctor="openclaw doctor"
alias oc-dash="openclaw dashboard"
"""

# Profiles that get each block. ~/.bashrc is always created if missing.
PATH_PROFILES = (".bashrc", ".zshrc", ".profile")
ALIAS_PROFILES = (".bashrc", ".zshrc")
ALWAYS_PROFILE = ".bashrc"

Renderer = Callable[[ConfigurationProfile, Optional[str]], str]


class ArtifactResult(str, Enum):
    """What write_artifact did."""

    WRITTEN = "written"
    APPENDED = "appended"
    SKIPPED = "skipped"


@dataclass
class GeneratedArtifact:
    """A file produced from the profile.

    Attributes:
        path: Target file.
        render: Callable(profile, existing_text) -> content.
        policy: How an existing file is treated.
        mode: Permission bits applied after writing, if any.
        marker: Line fragment that proves an appended block is present.
    """

    path: Path
    render: Renderer
    policy: WritePolicy
    mode: Optional[int] = None
    marker: Optional[str] = None

    def __post_init__(self) -> None:
        if self.policy == WritePolicy.APPEND_IF_MISSING_LINE and not self.marker:
            raise ValueError(f"append artifact {self.path} needs a marker")


def _read(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def _write_atomic(path: Path, content: str, mode: Optional[int]) -> None:
    """Write via a temp file in the same directory, then rename.

    The temp file gets ``mode`` before any content lands in it, so a
    secrets file is never world-readable, even briefly. Without a mode
    the file gets PLAIN_FILE_MODE rather than mkstemp's 0600.
    """
    if mode is None:
        mode = PLAIN_FILE_MODE
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        os.chmod(tmp_name, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    os.chmod(path, mode)


def write_artifact(artifact: GeneratedArtifact, profile: ConfigurationProfile) -> ArtifactResult:
    """Write one artifact according to its policy.

    Args:
        artifact: What to write and how.
        profile: Answers fed to the renderer.

    Returns:
        ArtifactResult describing the effect on disk.
    """
    existing = _read(artifact.path)

    if artifact.policy == WritePolicy.CREATE_IF_ABSENT:
        if existing is not None:
            logger.info("Existing %s found, preserving it", artifact.path)
            return ArtifactResult.SKIPPED
        _write_atomic(artifact.path, artifact.render(profile, None), artifact.mode)
        logger.info("Wrote %s", artifact.path)
        return ArtifactResult.WRITTEN

    if artifact.policy == WritePolicy.APPEND_IF_MISSING_LINE:
        if existing is not None and artifact.marker in existing:
            logger.info("%s already contains '%s'", artifact.path, artifact.marker)
            return ArtifactResult.SKIPPED
        block = artifact.render(profile, existing)
        artifact.path.parent.mkdir(parents=True, exist_ok=True)
        with artifact.path.open("a", encoding="utf-8") as fh:
            if existing and not existing.endswith("\n"):
                fh.write("\n")
            fh.write("\n" + block)
        logger.info("Appended block '%s' to %s", artifact.marker, artifact.path)
        return ArtifactResult.APPENDED

    # merge-keys and overwrite both rewrite the file; merge-keys renderers
    # fold the existing content in themselves.
    _write_atomic(artifact.path, artifact.render(profile, existing), artifact.mode)
    logger.info("Wrote %s (%s)", artifact.path, artifact.policy.value)
    return ArtifactResult.WRITTEN


# ---------------------------------------------------------------------------
# Artifact sets
# ---------------------------------------------------------------------------

def env_artifact(paths: ProvisionPaths) -> GeneratedArtifact:
    return GeneratedArtifact(
        path=paths.env_file,
        render=lambda profile, existing: render_env(profile, existing=existing),
        policy=WritePolicy.MERGE_KEYS,
        mode=SECRET_FILE_MODE,
    )


def config_artifact(paths: ProvisionPaths) -> GeneratedArtifact:
    return GeneratedArtifact(
        path=paths.config_file,
        render=lambda profile, _existing: render_config(profile),
        policy=WritePolicy.CREATE_IF_ABSENT,
    )


def _persona_renderer(template: str) -> Renderer:
    return lambda profile, _existing: render_persona(template, profile)


def persona_artifacts(paths: ProvisionPaths) -> list[GeneratedArtifact]:
    return [
        GeneratedArtifact(
            path=paths.workspace / name,
            render=_persona_renderer(template),
            policy=WritePolicy.CREATE_IF_ABSENT,
        )
        for name, template in PERSONA_TEMPLATES.items()
    ]


def config_artifacts(paths: ProvisionPaths) -> list[GeneratedArtifact]:
    """Env file, structured config and persona docs, in write order."""
    return [env_artifact(paths), config_artifact(paths), *persona_artifacts(paths)]


def _profile_targets(paths: ProvisionPaths, names: tuple[str, ...]) -> list[Path]:
    targets = []
    for name in names:
        path = paths.user_home / name
        if name == ALWAYS_PROFILE or path.exists():
            targets.append(path)
    return targets


def _block(content: str, marker: str, path: Path) -> GeneratedArtifact:
    return GeneratedArtifact(
        path=path,
        render=lambda _profile, _existing: content,
        policy=WritePolicy.APPEND_IF_MISSING_LINE,
        marker=marker,
    )


def path_fragment_artifacts(paths: ProvisionPaths) -> list[GeneratedArtifact]:
    """PATH extension for the npm user prefix, one per shell profile."""
    return [_block(PATH_BLOCK, PATH_MARKER, p) for p in _profile_targets(paths, PATH_PROFILES)]


def alias_artifacts(paths: ProvisionPaths) -> list[GeneratedArtifact]:
    """Convenience `oc-*` aliases, one per interactive shell profile."""
    return [_block(ALIAS_BLOCK, ALIAS_MARKER, p) for p in _profile_targets(paths, ALIAS_PROFILES)]


def fragments_present(artifacts: list[GeneratedArtifact]) -> bool:
    """Whether every appended block is already in place."""
    for artifact in artifacts:
        existing = _read(artifact.path)
        if existing is None or artifact.marker not in existing:
            return False
    return True


def write_artifacts(
    artifacts: list[GeneratedArtifact],
    profile: ConfigurationProfile,
) -> dict[Path, ArtifactResult]:
    """Write a set of artifacts in order and report each outcome."""
    return {a.path: write_artifact(a, profile) for a in artifacts}
