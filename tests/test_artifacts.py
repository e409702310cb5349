"""Tests for artifact write policies against a temporary home."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from clawstrap.artifacts import (
    ALIAS_MARKER,
    PATH_MARKER,
    ArtifactResult,
    GeneratedArtifact,
    alias_artifacts,
    config_artifacts,
    fragments_present,
    path_fragment_artifacts,
    write_artifact,
    write_artifacts,
)
from clawstrap.models import ConfigurationProfile, WritePolicy


class TestGeneratedArtifact:

    def test_append_requires_marker(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            GeneratedArtifact(
                path=tmp_path / "x",
                render=lambda p, e: "",
                policy=WritePolicy.APPEND_IF_MISSING_LINE,
            )


class TestConfigArtifacts:

    def test_first_run_writes_everything(self, paths, full_profile) -> None:
        results = write_artifacts(config_artifacts(paths), full_profile)
        assert set(results.values()) == {ArtifactResult.WRITTEN}
        assert paths.env_file.exists()
        assert json.loads(paths.config_file.read_text())["agents"]["defaults"]["model"]
        for name in ("SOUL.md", "USER.md", "AGENTS.md"):
            assert "Pebble" in (paths.workspace / name).read_text()

    def test_env_file_is_private(self, paths, full_profile) -> None:
        write_artifacts(config_artifacts(paths), full_profile)
        assert stat.S_IMODE(paths.env_file.stat().st_mode) == 0o600

    def test_plain_artifacts_are_world_readable(self, paths, full_profile) -> None:
        write_artifacts(config_artifacts(paths), full_profile)
        assert stat.S_IMODE(paths.config_file.stat().st_mode) == 0o644
        assert stat.S_IMODE((paths.workspace / "SOUL.md").stat().st_mode) == 0o644

    def test_env_file_mode_restored(self, paths, full_profile) -> None:
        paths.home.mkdir(parents=True)
        paths.env_file.write_text("OLD=1\n")
        paths.env_file.chmod(0o644)
        write_artifacts(config_artifacts(paths), full_profile)
        assert stat.S_IMODE(paths.env_file.stat().st_mode) == 0o600
        assert "OLD=1" in paths.env_file.read_text()

    def test_existing_config_and_persona_preserved(self, paths, full_profile) -> None:
        paths.workspace.mkdir(parents=True)
        paths.config_file.write_text('{"custom": true}\n')
        (paths.workspace / "SOUL.md").write_text("my own soul\n")

        results = write_artifacts(config_artifacts(paths), full_profile)

        assert results[paths.config_file] == ArtifactResult.SKIPPED
        assert results[paths.workspace / "SOUL.md"] == ArtifactResult.SKIPPED
        assert results[paths.env_file] == ArtifactResult.WRITTEN
        assert paths.config_file.read_text() == '{"custom": true}\n'
        assert (paths.workspace / "SOUL.md").read_text() == "my own soul\n"

    def test_second_run_changes_only_env_timestamp(self, paths, full_profile) -> None:
        write_artifacts(config_artifacts(paths), full_profile)
        config_before = paths.config_file.read_text()
        env_before = paths.env_file.read_text().splitlines()

        write_artifacts(config_artifacts(paths), full_profile)

        assert paths.config_file.read_text() == config_before
        env_after = paths.env_file.read_text().splitlines()
        changed = [a for a, b in zip(env_before, env_after) if a != b]
        assert all(line.startswith("# Generated") for line in changed)

    def test_no_temp_files_left(self, paths, empty_profile) -> None:
        write_artifacts(config_artifacts(paths), empty_profile)
        assert not [p for p in paths.home.iterdir() if p.name.startswith(".env.")]


class TestShellFragments:

    def test_bashrc_always_targeted(self, paths) -> None:
        targets = [a.path.name for a in path_fragment_artifacts(paths)]
        assert targets == [".bashrc"]

    def test_existing_profiles_targeted(self, paths) -> None:
        (paths.user_home / ".zshrc").write_text("")
        (paths.user_home / ".profile").write_text("")
        assert [a.path.name for a in path_fragment_artifacts(paths)] == [".bashrc", ".zshrc", ".profile"]
        assert [a.path.name for a in alias_artifacts(paths)] == [".bashrc", ".zshrc"]

    def test_append_is_idempotent(self, paths, empty_profile) -> None:
        bashrc = paths.user_home / ".bashrc"
        bashrc.write_text("# existing line")

        first = write_artifacts(path_fragment_artifacts(paths), empty_profile)
        second = write_artifacts(path_fragment_artifacts(paths), empty_profile)

        assert first[bashrc] == ArtifactResult.APPENDED
        assert second[bashrc] == ArtifactResult.SKIPPED
        text = bashrc.read_text()
        assert text.startswith("# existing line\n")
        assert text.count(PATH_MARKER) == 1

    def test_aliases_written_once(self, paths, empty_profile) -> None:
        write_artifacts(alias_artifacts(paths), empty_profile)
        write_artifacts(alias_artifacts(paths), empty_profile)
        text = (paths.user_home / ".bashrc").read_text()
        assert text.count(ALIAS_MARKER) == 1
        assert 'alias oc-logs="journalctl -u openclaw -f"' in text

    def test_fragments_present(self, paths, empty_profile) -> None:
        assert not fragments_present(alias_artifacts(paths))
        write_artifacts(alias_artifacts(paths), empty_profile)
        assert fragments_present(alias_artifacts(paths))


class TestWriteArtifact:

    def test_overwrite_replaces(self, tmp_path: Path) -> None:
        target = tmp_path / "unit"
        target.write_text("old")
        artifact = GeneratedArtifact(
            path=target, render=lambda p, e: "new", policy=WritePolicy.OVERWRITE,
        )
        assert write_artifact(artifact, ConfigurationProfile()) == ArtifactResult.WRITTEN
        assert target.read_text() == "new"
