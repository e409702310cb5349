"""
Pydantic models for everything the interview captures and the
provisioning run derives from it.

A field on the profile is either absent (None) or a real value.
Blank answers never survive validation, so "not configured" has
exactly one representation all the way down to the env file.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ProfileError

DEFAULT_BOT_NAME = "OpenClaw"


class LLMProvider(str, Enum):
    """Which model backend the agent should talk to."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    SKIP = "skip"


class FailurePolicy(str, Enum):
    """What the sequencer does when a phase action fails."""

    FATAL = "fatal"
    WARN = "warn"


class WritePolicy(str, Enum):
    """How a generated artifact treats a file that already exists."""

    CREATE_IF_ABSENT = "create-if-absent"
    APPEND_IF_MISSING_LINE = "append-if-missing-line"
    MERGE_KEYS = "merge-keys"
    OVERWRITE = "overwrite"


# Credential slot per provider. Ollama and skip carry no secret.
PROVIDER_KEY_FIELDS: dict[LLMProvider, str] = {
    LLMProvider.ANTHROPIC: "anthropic_api_key",
    LLMProvider.OPENAI: "openai_api_key",
    LLMProvider.OPENROUTER: "openrouter_api_key",
}

# Canonical order of secrets in the env file.
SECRET_ENV_NAMES: dict[str, str] = {
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "openrouter_api_key": "OPENROUTER_API_KEY",
    "discord_bot_token": "DISCORD_BOT_TOKEN",
    "brave_api_key": "BRAVE_API_KEY",
}

_OPTIONAL_FIELDS = (
    "anthropic_api_key",
    "openai_api_key",
    "openrouter_api_key",
    "discord_bot_token",
    "discord_guild_id",
    "discord_owner_id",
    "brave_api_key",
)


class ConfigurationProfile(BaseModel):
    """The operator's answers from the interview.

    Attributes:
        provider: Menu choice for the LLM backend.
        anthropic_api_key: Anthropic credential (only with provider=anthropic).
        openai_api_key: OpenAI credential (only with provider=openai).
        openrouter_api_key: OpenRouter credential (only with provider=openrouter).
        discord_bot_token: Discord bot token; gates the whole Discord block.
        discord_guild_id: Server id for the per-guild block.
        discord_owner_id: User id for the owner allow-list.
        brave_api_key: Brave Search key, independent of everything else.
        bot_name: Display name substituted into the persona documents.
    """

    model_config = ConfigDict(extra="forbid")

    provider: LLMProvider = LLMProvider.SKIP
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    discord_bot_token: Optional[str] = None
    discord_guild_id: Optional[str] = None
    discord_owner_id: Optional[str] = None
    brave_api_key: Optional[str] = None
    bot_name: str = DEFAULT_BOT_NAME

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        # Values land one per line in the env file; no line breaks or controls.
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in text):
            raise ValueError("must be a single line without control characters")
        return text or None

    @field_validator("bot_name", mode="before")
    @classmethod
    def _default_bot_name(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        return text or DEFAULT_BOT_NAME

    @model_validator(mode="after")
    def _check_slots(self) -> "ConfigurationProfile":
        filled = [f for f in PROVIDER_KEY_FIELDS.values() if getattr(self, f)]
        if len(filled) > 1:
            raise ValueError(f"only one LLM credential may be set, got {', '.join(filled)}")
        if filled and PROVIDER_KEY_FIELDS.get(self.provider) != filled[0]:
            raise ValueError(f"{filled[0]} does not match provider '{self.provider.value}'")
        if not self.discord_bot_token and (self.discord_guild_id or self.discord_owner_id):
            raise ValueError("discord guild/owner ids require a discord bot token")
        return self

    @property
    def has_llm_credential(self) -> bool:
        """Whether a cloud LLM key was captured."""
        return any(getattr(self, f) for f in PROVIDER_KEY_FIELDS.values())

    @property
    def has_llm(self) -> bool:
        """Whether the agent has any usable model backend."""
        return self.has_llm_credential or self.provider == LLMProvider.OLLAMA

    @property
    def has_discord(self) -> bool:
        return self.discord_bot_token is not None

    @property
    def has_search(self) -> bool:
        return self.brave_api_key is not None

    def secret_env(self) -> dict[str, str]:
        """Captured secrets as env var name -> value, absent ones omitted."""
        return {
            env_name: getattr(self, field_name)
            for field_name, env_name in SECRET_ENV_NAMES.items()
            if getattr(self, field_name)
        }


def load_profile(path: Path) -> ConfigurationProfile:
    """Load a profile from a YAML answers file.

    Args:
        path: YAML mapping whose keys are ConfigurationProfile fields.

    Returns:
        The validated profile.

    Raises:
        ProfileError: If the file is missing, not a mapping, or invalid.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ProfileError(f"cannot read answers file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ProfileError(f"answers file {path} must contain a mapping")

    try:
        return ConfigurationProfile.model_validate(data)
    except ValidationError as exc:
        raise ProfileError(f"invalid answers in {path}: {exc}") from exc


class ServiceDescriptor(BaseModel):
    """Everything needed to render the systemd unit for the agent.

    Derived fresh on every run; the unit file is system-owned.
    """

    binary: Path
    user: str
    group: str
    home: Path
    working_directory: Path
    env_file: Path
    path_entries: list[str] = Field(default_factory=list)
    description: str = "OpenClaw AI Agent Gateway"
    after: list[str] = Field(
        default_factory=lambda: ["network-online.target", "ollama.service"],
    )
    restart_sec: int = 10
    nice: int = 5
    limit_nofile: int = 65536
    syslog_identifier: str = "openclaw"

    @property
    def exec_start(self) -> str:
        return f"{self.binary} gateway start --daemon=false"
