"""Shared test fixtures for clawstrap."""

from __future__ import annotations

from pathlib import Path

import pytest

from clawstrap.models import ConfigurationProfile, LLMProvider
from clawstrap.paths import ProvisionPaths


@pytest.fixture
def paths(tmp_path: Path) -> ProvisionPaths:
    """Provide a host layout rooted entirely under tmp_path."""
    user_home = tmp_path / "home"
    user_home.mkdir()
    unit_dir = tmp_path / "systemd"
    unit_dir.mkdir()
    return ProvisionPaths(home=user_home / ".openclaw", user_home=user_home, unit_dir=unit_dir)


@pytest.fixture
def empty_profile() -> ConfigurationProfile:
    """Every optional section skipped."""
    return ConfigurationProfile()


@pytest.fixture
def full_profile() -> ConfigurationProfile:
    """Anthropic + Discord with guild and owner + Brave."""
    return ConfigurationProfile(
        provider=LLMProvider.ANTHROPIC,
        anthropic_api_key="sk-ant-test",
        discord_bot_token="discord-token",
        discord_guild_id="111",
        discord_owner_id="222",
        brave_api_key="brave-key",
        bot_name="Pebble",
    )


@pytest.fixture
def answers_file(tmp_path: Path) -> Path:
    """A search-only answers file."""
    path = tmp_path / "answers.yaml"
    path.write_text("provider: skip\nbrave_api_key: brave-only\n", encoding="utf-8")
    return path
