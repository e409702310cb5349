"""Tests for config composition, env rendering and persona substitution."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone

from clawstrap.models import ConfigurationProfile, LLMProvider
from clawstrap.personas import PERSONA_TEMPLATES
from clawstrap.templates import (
    ANTHROPIC_DEFAULT_MODEL,
    OLLAMA_DEFAULT_MODEL,
    OPENAI_DEFAULT_MODEL,
    OPENROUTER_DEFAULT_MODEL,
    PERSONA_PLACEHOLDER,
    PLACEHOLDER_MODEL,
    build_config,
    parse_env,
    render_config,
    render_env,
    render_persona,
    select_default_model,
)

FIXED = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestSelectDefaultModel:

    def test_ollama(self) -> None:
        assert select_default_model(ConfigurationProfile(provider=LLMProvider.OLLAMA)) == OLLAMA_DEFAULT_MODEL

    def test_each_cloud_provider(self) -> None:
        cases = [
            (LLMProvider.ANTHROPIC, "anthropic_api_key", ANTHROPIC_DEFAULT_MODEL),
            (LLMProvider.OPENAI, "openai_api_key", OPENAI_DEFAULT_MODEL),
            (LLMProvider.OPENROUTER, "openrouter_api_key", OPENROUTER_DEFAULT_MODEL),
        ]
        for provider, field_name, model in cases:
            profile = ConfigurationProfile(provider=provider, **{field_name: "k"})
            assert select_default_model(profile) == model

    def test_nothing_configured_uses_placeholder(self) -> None:
        assert select_default_model(ConfigurationProfile()) == PLACEHOLDER_MODEL

    def test_primary_cloud_beats_aggregator(self) -> None:
        # Skips validation, which normally allows only one credential.
        profile = ConfigurationProfile.model_construct(
            provider=LLMProvider.OPENROUTER,
            anthropic_api_key="sk-ant",
            openrouter_api_key="or-key",
        )
        assert select_default_model(profile) == ANTHROPIC_DEFAULT_MODEL

    def test_local_model_beats_cloud_key(self) -> None:
        profile = ConfigurationProfile.model_construct(
            provider=LLMProvider.OLLAMA,
            anthropic_api_key="sk-ant",
        )
        assert select_default_model(profile) == OLLAMA_DEFAULT_MODEL


class TestBuildConfig:

    def test_minimal_config(self, empty_profile) -> None:
        config = build_config(empty_profile)
        assert config["gateway"] == {"bind": "localhost", "port": 18789}
        assert "discord" not in config["channels"]
        assert config["channels"]["webchat"] == {"enabled": True}
        assert "webSearch" not in config
        assert config["browser"] == {"headless": True}
        assert config["agents"]["defaults"]["model"] == PLACEHOLDER_MODEL
        assert config["agents"]["defaults"]["sandbox"]["browser"]["headless"] is True

    def test_full_config(self, full_profile) -> None:
        config = build_config(full_profile)
        discord = config["channels"]["discord"]
        assert discord["token"] == "discord-token"
        assert discord["dm"]["allowFrom"] == ["222"]
        assert discord["guilds"] == {"111": {"requireMention": False, "users": ["222"]}}
        assert discord["groupPolicy"] == "open"
        assert config["webSearch"] == {
            "enabled": True,
            "provider": "brave",
            "brave": {"apiKey": "brave-key"},
        }
        assert config["agents"]["defaults"]["model"] == ANTHROPIC_DEFAULT_MODEL

    def test_discord_token_only(self) -> None:
        config = build_config(ConfigurationProfile(discord_bot_token="t"))
        discord = config["channels"]["discord"]
        assert discord["guilds"] == {}
        assert discord["dm"]["allowFrom"] == []

    def test_guild_without_owner(self) -> None:
        config = build_config(ConfigurationProfile(discord_bot_token="t", discord_guild_id="9"))
        assert config["channels"]["discord"]["guilds"] == {"9": {"requireMention": False, "users": []}}

    def test_search_only(self) -> None:
        config = build_config(ConfigurationProfile(brave_api_key="b"))
        assert config["webSearch"]["brave"]["apiKey"] == "b"
        assert "discord" not in config["channels"]

    def test_render_is_valid_json(self, full_profile) -> None:
        text = render_config(full_profile)
        assert text.endswith("\n")
        assert json.loads(text) == build_config(full_profile)

    def test_secrets_never_blank(self, empty_profile) -> None:
        assert '""' not in render_config(empty_profile)


class TestRenderEnv:

    def test_every_assignment_is_one_non_empty_line(self, full_profile) -> None:
        existing = "# comment\nCUSTOM_VAR=keep\nEMPTY=\n"
        text = render_env(full_profile, existing=existing, now=FIXED)
        body = [ln for ln in text.splitlines() if not ln.startswith("#")]
        assert body
        assert all(re.match(r"^[A-Z_]+=.+$", ln) for ln in body), body

    def test_only_captured_values(self) -> None:
        text = render_env(ConfigurationProfile(brave_api_key="b"), now=FIXED)
        assert "BRAVE_API_KEY=b" in text
        assert "ANTHROPIC_API_KEY" not in text
        assert "DISCORD_BOT_TOKEN" not in text
        assert "# Generated 2026-01-02T03:04:05Z" in text

    def test_no_empty_assignments(self, empty_profile) -> None:
        text = render_env(empty_profile, now=FIXED)
        body = [ln for ln in text.splitlines() if not ln.startswith("#")]
        assert body == []

    def test_canonical_order(self, full_profile) -> None:
        text = render_env(full_profile, now=FIXED)
        keys = [ln.split("=")[0] for ln in text.splitlines() if not ln.startswith("#")]
        assert keys == ["ANTHROPIC_API_KEY", "DISCORD_BOT_TOKEN", "BRAVE_API_KEY"]

    def test_merge_keeps_existing_and_new_wins(self) -> None:
        existing = "# old header\nDISCORD_BOT_TOKEN=old\nCUSTOM_VAR=keep\nEMPTY=\n"
        profile = ConfigurationProfile(discord_bot_token="new", brave_api_key="b")
        values = parse_env(render_env(profile, existing=existing, now=FIXED))
        assert values == {"DISCORD_BOT_TOKEN": "new", "BRAVE_API_KEY": "b", "CUSTOM_VAR": "keep"}

    def test_rerun_differs_only_in_timestamp(self, full_profile) -> None:
        first = render_env(full_profile, now=FIXED)
        later = datetime(2026, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
        second = render_env(full_profile, existing=first, now=later)
        diff = [(a, b) for a, b in zip(first.splitlines(), second.splitlines()) if a != b]
        assert len(diff) == 1
        assert diff[0][0].startswith("# Generated")


class TestParseEnv:

    def test_ignores_comments_and_blanks(self) -> None:
        assert parse_env("# c\n\nA=1\nB=\n C = 3 \nnoequals\n") == {"A": "1", "C": "3"}


class TestRenderPersona:

    def test_bot_name_substituted(self) -> None:
        profile = ConfigurationProfile(bot_name="Pebble")
        for template in PERSONA_TEMPLATES.values():
            text = render_persona(template, profile)
            assert PERSONA_PLACEHOLDER not in text
        assert "Pebble" in render_persona(PERSONA_TEMPLATES["SOUL.md"], profile)
