"""Terminal input primitives for the interview.

All reads go through rich's Prompt so masking, defaults, and styling
behave the same everywhere. Nothing here persists anything.
"""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Prompt

console = Console()

YES_ANSWERS = {"y", "yes"}


def collect_secret(prompt: str) -> str:
    """Ask for a secret with masked input, retrying until non-empty.

    The value is never echoed back to the terminal.

    Args:
        prompt: Question shown to the operator.

    Returns:
        str: The non-empty secret, stripped of surrounding whitespace.
    """
    while True:
        value = Prompt.ask(f"[bold cyan]\\[?][/] {prompt}", password=True, console=console)
        value = (value or "").strip()
        if value:
            return value
        console.print("[yellow]This field cannot be empty. Please try again.[/]")


def collect_text(prompt: str, default: Optional[str] = None) -> str:
    """Ask for free text, falling back to ``default`` on empty input.

    Args:
        prompt: Question shown to the operator.
        default: Value used when the operator just presses Enter.

    Returns:
        str: The answer, the default, or "" when neither exists.
    """
    label = f"[bold cyan]\\[?][/] {prompt}"
    if default:
        value = Prompt.ask(label, default=default, show_default=True, console=console)
    else:
        value = Prompt.ask(label, default="", show_default=False, console=console)
    value = (value or "").strip()
    if not value and default:
        return default
    return value


def collect_confirmation(prompt: str) -> bool:
    """Ask a yes/no question. Only y/yes (any case) counts as yes.

    Invalid or empty answers are a "no"; there is no re-prompt.
    """
    value = Prompt.ask(f"[bold cyan]\\[?][/] {prompt} (y/n)", default="", show_default=False, console=console)
    return (value or "").strip().lower() in YES_ANSWERS


def collect_choice(prompt: str, options: Sequence[str], default: int = 1) -> Optional[int]:
    """Show a numbered menu and return the 1-based choice.

    Empty input selects ``default``. Anything that is not a listed
    number returns None, which callers treat as "configure nothing".
    """
    for number, label in enumerate(options, start=1):
        console.print(f"  {number}) {label}")
    console.print()
    raw = collect_text(prompt, default=str(default))
    try:
        choice = int(raw)
    except ValueError:
        return None
    if 1 <= choice <= len(options):
        return choice
    return None
