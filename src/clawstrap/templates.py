"""
Configuration templates for the agent's config, env file, and persona docs.

The structured config is composed from typed fragments, each gated on
the profile field it needs:

  - provider   -> agents.defaults.model (fixed precedence table)
  - discord    -> channels.discord, only with a bot token
                  guilds{} only with a guild id, allow-lists only with an owner id
  - web search -> webSearch, only with a Brave key

Serialising the composed model guarantees valid JSON whatever subset
of answers the operator gave.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import SECRET_ENV_NAMES, ConfigurationProfile, LLMProvider

OLLAMA_DEFAULT_MODEL = "ollama:qwen3:1.7b"
ANTHROPIC_DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
OPENAI_DEFAULT_MODEL = "gpt-4o"
OPENROUTER_DEFAULT_MODEL = "anthropic/claude-sonnet-4-5-20250929"
# Written when the operator skipped the provider; `openclaw configure` fixes it later.
PLACEHOLDER_MODEL = ANTHROPIC_DEFAULT_MODEL

# First configured credential wins, in this order.
CLOUD_MODEL_PRECEDENCE: list[tuple[str, str]] = [
    ("anthropic_api_key", ANTHROPIC_DEFAULT_MODEL),
    ("openai_api_key", OPENAI_DEFAULT_MODEL),
    ("openrouter_api_key", OPENROUTER_DEFAULT_MODEL),
]

GATEWAY_BIND = "localhost"
GATEWAY_PORT = 18789
PERSONA_PLACEHOLDER = "{{BOT_NAME}}"


class _Fragment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GatewaySettings(_Fragment):
    bind: str = GATEWAY_BIND
    port: int = GATEWAY_PORT


class DiscordDM(_Fragment):
    enabled: bool = True
    allow_from: list[str] = Field(default_factory=list, alias="allowFrom")


class DiscordGuild(_Fragment):
    require_mention: bool = Field(default=False, alias="requireMention")
    users: list[str] = Field(default_factory=list)


class DiscordChannel(_Fragment):
    enabled: bool = True
    token: str
    dm: DiscordDM = Field(default_factory=DiscordDM)
    guilds: dict[str, DiscordGuild] = Field(default_factory=dict)
    group_policy: str = Field(default="open", alias="groupPolicy")


class WebchatChannel(_Fragment):
    enabled: bool = True


class Channels(_Fragment):
    discord: Optional[DiscordChannel] = None
    webchat: WebchatChannel = Field(default_factory=WebchatChannel)


class BraveSettings(_Fragment):
    api_key: str = Field(alias="apiKey")


class WebSearch(_Fragment):
    enabled: bool = True
    provider: str = "brave"
    brave: BraveSettings


class BrowserSettings(_Fragment):
    headless: bool = True


class SandboxSettings(_Fragment):
    browser: BrowserSettings = Field(default_factory=BrowserSettings)


class AgentDefaults(_Fragment):
    model: str
    sandbox: SandboxSettings = Field(default_factory=SandboxSettings)


class Agents(_Fragment):
    defaults: AgentDefaults


class OpenClawConfig(_Fragment):
    """Top-level structure of openclaw.json."""

    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    channels: Channels = Field(default_factory=Channels)
    web_search: Optional[WebSearch] = Field(default=None, alias="webSearch")
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    agents: Agents


def select_default_model(profile: ConfigurationProfile) -> str:
    """Pick the agent's default model identifier.

    Local model choice beats any cloud key; among cloud keys the first
    one captured in (anthropic, openai, openrouter) order wins. With
    nothing configured the placeholder model is returned.
    """
    if profile.provider == LLMProvider.OLLAMA:
        return OLLAMA_DEFAULT_MODEL
    for field_name, model in CLOUD_MODEL_PRECEDENCE:
        if getattr(profile, field_name):
            return model
    return PLACEHOLDER_MODEL


def discord_fragment(profile: ConfigurationProfile) -> Optional[DiscordChannel]:
    """Discord channel block, or None when no bot token was captured."""
    if not profile.discord_bot_token:
        return None

    owners = [profile.discord_owner_id] if profile.discord_owner_id else []
    guilds: dict[str, DiscordGuild] = {}
    if profile.discord_guild_id:
        guilds[profile.discord_guild_id] = DiscordGuild(users=list(owners))

    return DiscordChannel(
        token=profile.discord_bot_token,
        dm=DiscordDM(allow_from=list(owners)),
        guilds=guilds,
    )


def search_fragment(profile: ConfigurationProfile) -> Optional[WebSearch]:
    """Web search block, or None when no Brave key was captured."""
    if not profile.brave_api_key:
        return None
    return WebSearch(brave=BraveSettings(api_key=profile.brave_api_key))


def build_config(profile: ConfigurationProfile) -> dict:
    """Compose the full openclaw.json structure for a profile."""
    config = OpenClawConfig(
        channels=Channels(discord=discord_fragment(profile)),
        web_search=search_fragment(profile),
        agents=Agents(defaults=AgentDefaults(model=select_default_model(profile))),
    )
    return config.model_dump(by_alias=True, exclude_none=True)


def render_config(profile: ConfigurationProfile) -> str:
    """openclaw.json text for a profile."""
    return json.dumps(build_config(profile), indent=2) + "\n"


# ---------------------------------------------------------------------------
# Environment file
# ---------------------------------------------------------------------------

def parse_env(text: str) -> dict[str, str]:
    """Parse KEY=VALUE lines, ignoring comments, blanks and empty values."""
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if key and value:
            values[key] = value
    return values


def render_env(
    profile: ConfigurationProfile,
    existing: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Render the env file for a profile.

    Keys from an existing file that this run did not capture are kept;
    freshly captured values win. Only non-empty values are ever written.

    Args:
        profile: Answers from this run.
        existing: Current env file text, if any.
        now: Timestamp for the header (defaults to the current UTC time).

    Returns:
        str: Complete env file content.
    """
    merged = parse_env(existing) if existing else {}
    merged.update(profile.secret_env())

    order = [name for name in SECRET_ENV_NAMES.values() if name in merged]
    order += [name for name in merged if name not in order]

    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    lines = [
        "# OpenClaw environment, managed by clawstrap",
        f"# Generated {stamp}",
    ]
    lines += [f"{name}={merged[name]}" for name in order]
    return "\n".join(lines) + "\n"


def render_persona(template: str, profile: ConfigurationProfile) -> str:
    """Substitute the bot name into a persona template."""
    return template.replace(PERSONA_PLACEHOLDER, profile.bot_name)
