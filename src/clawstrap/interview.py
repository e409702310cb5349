"""The operator interview: LLM provider, Discord, web search, bot name.

Only values that cannot be auto-detected are asked for. Every answer
lands in a typed ConfigurationProfile; skipped sections stay None.
"""

from __future__ import annotations

from rich.panel import Panel

from .models import DEFAULT_BOT_NAME, PROVIDER_KEY_FIELDS, ConfigurationProfile, LLMProvider
from .prompts import collect_choice, collect_confirmation, collect_secret, collect_text, console

PROVIDER_MENU: list[tuple[LLMProvider, str]] = [
    (LLMProvider.ANTHROPIC, "Anthropic Claude (API key)"),
    (LLMProvider.OPENAI, "OpenAI / ChatGPT (API key)"),
    (LLMProvider.OPENROUTER, "OpenRouter (API key, multi-model access)"),
    (LLMProvider.OLLAMA, "Ollama (local models, free but less capable)"),
    (LLMProvider.SKIP, "Skip for now (configure later via 'openclaw configure')"),
]

KEY_PROMPTS: dict[LLMProvider, tuple[str, str]] = {
    LLMProvider.ANTHROPIC: (
        "https://console.anthropic.com/settings/keys",
        "Enter your Anthropic API key (sk-ant-...):",
    ),
    LLMProvider.OPENAI: (
        "https://platform.openai.com/api-keys",
        "Enter your OpenAI API key (sk-...):",
    ),
    LLMProvider.OPENROUTER: (
        "https://openrouter.ai/keys",
        "Enter your OpenRouter API key:",
    ),
}

DISCORD_HELP = """\
If you don't have a bot token yet:
  1. Go to https://discord.com/developers/applications
  2. New Application -> Bot -> Reset Token -> copy the token
  3. Enable the Message Content, Server Members and Presence intents
  4. OAuth2 -> URL Generator: scopes bot + applications.commands
  5. Open the generated URL to invite the bot to your server"""


def ask_provider() -> dict:
    """Provider menu plus the matching credential, as profile fields."""
    console.print("\n[bold]── LLM Provider ──[/]")
    console.print("OpenClaw needs an LLM to power the agent. Anthropic Claude is recommended.\n")

    choice = collect_choice("Choose provider", [label for _, label in PROVIDER_MENU], default=1)
    if choice is None:
        console.print("[yellow]Unrecognised choice; no provider configured.[/]")
        return {"provider": LLMProvider.SKIP}

    provider = PROVIDER_MENU[choice - 1][0]
    fields: dict = {"provider": provider}

    if provider in KEY_PROMPTS:
        url, question = KEY_PROMPTS[provider]
        console.print(f"\nGet your key from: {url}")
        fields[PROVIDER_KEY_FIELDS[provider]] = collect_secret(question)
    elif provider == LLMProvider.OLLAMA:
        console.print("[green]Ollama selected[/]: local models, qwen3:1.7b as default.")
    else:
        console.print("[yellow]Skipping LLM setup; run 'openclaw configure' later.[/]")
    return fields


def ask_discord() -> dict:
    """Discord token, then optional guild and owner ids."""
    console.print("\n[bold]── Discord Integration ──[/]")
    console.print(DISCORD_HELP + "\n")

    if not collect_confirmation("Do you have a Discord bot token ready?"):
        console.print("[yellow]Skipping Discord setup; run 'openclaw configure' later.[/]")
        return {}

    fields = {"discord_bot_token": collect_secret("Enter your Discord bot token:")}
    console.print("\nEnable Developer Mode in Discord, then right-click your server -> Copy Server ID")
    fields["discord_guild_id"] = collect_text("Enter your Discord Server (Guild) ID")
    console.print("Right-click your own username -> Copy User ID")
    fields["discord_owner_id"] = collect_text("Enter your Discord User ID (for owner allowlist)")
    return fields


def ask_search() -> dict:
    console.print("\n[bold]── Web Search (Brave Search API) ──[/]")
    console.print("Free tier: 2,000 queries/month, https://brave.com/search/api/\n")
    if not collect_confirmation("Do you have a Brave Search API key?"):
        return {}
    return {"brave_api_key": collect_secret("Enter your Brave Search API key:")}


def run_interview() -> ConfigurationProfile:
    """Ask every question and return the validated profile."""
    console.print()
    console.print(Panel(
        "Now I need a few values that can't be auto-detected.\n"
        "[dim]Secrets are typed blind and only written to ~/.openclaw/.env (mode 600).[/]",
        title="Configuration",
        border_style="cyan",
    ))

    fields: dict = {}
    fields.update(ask_provider())
    fields.update(ask_discord())
    fields.update(ask_search())

    console.print("\n[bold]── Agent Personality ──[/]")
    fields["bot_name"] = collect_text("What should your agent be named?", default=DEFAULT_BOT_NAME)

    return ConfigurationProfile(**fields)
