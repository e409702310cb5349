"""
End-of-run summary: what got installed, where the artifacts live,
and what still needs the operator, each gap with the command that
closes it.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel

from .artifacts import ArtifactResult
from .doctor import configured_integrations
from .phases import SequenceResult
from .provision import ProvisionContext

QUICK_COMMANDS = [
    ("oc-start", "Start the OpenClaw service"),
    ("oc-stop", "Stop the OpenClaw service"),
    ("oc-restart", "Restart the OpenClaw service"),
    ("oc-status", "Check gateway status"),
    ("oc-logs", "Tail live logs"),
    ("oc-config", "Open configuration TUI"),
    ("oc-doctor", "Run health check"),
    ("oc-dash", "Open web dashboard"),
]


def gather_gaps(ctx: ProvisionContext, result: Optional[SequenceResult] = None) -> list[dict]:
    """List everything left unconfigured, with a remedy for each.

    An integration counts as configured when this run captured it or
    the env file and config already carry it from an earlier run.

    Returns:
        list[dict]: Items with 'item', 'remedy' and 'optional' keys.
    """
    profile = ctx.profile
    on_disk = configured_integrations(ctx.paths)
    gaps: list[dict] = []

    if not (profile.has_llm or on_disk["llm"]):
        gaps.append({"item": "No LLM provider configured", "remedy": "openclaw configure", "optional": False})
    if not (profile.has_discord or on_disk["discord"]):
        gaps.append({"item": "Discord not configured", "remedy": "openclaw configure", "optional": False})
    if not (profile.has_search or on_disk["search"]):
        gaps.append({"item": "Brave Search not configured", "remedy": "openclaw configure", "optional": True})

    if ctx.artifacts.get(ctx.paths.config_file) == ArtifactResult.SKIPPED and profile.secret_env():
        gaps.append({
            "item": f"Existing {ctx.paths.config_file.name} preserved; new keys went to "
                    f"{ctx.paths.env_file} only",
            "remedy": "openclaw configure",
            "optional": True,
        })

    if result is not None:
        for warning in result.warnings:
            gaps.append({
                "item": f"{warning.title} failed: {warning.detail}",
                "remedy": warning.remedy or "re-run clawstrap install",
                "optional": False,
            })
    return gaps


def gather_summary(ctx: ProvisionContext, result: Optional[SequenceResult] = None) -> dict:
    """Everything the summary screen shows, as plain data."""
    return {
        "bot_name": ctx.profile.bot_name,
        "binary": str(ctx.binary) if ctx.binary else None,
        "completed": result.completed if result else [],
        "skipped": result.skipped if result else [],
        "artifacts": {str(path): outcome.value for path, outcome in ctx.artifacts.items()},
        "paths": {
            "config": str(ctx.paths.config_file),
            "env": str(ctx.paths.env_file),
            "workspace": str(ctx.paths.workspace),
            "unit": str(ctx.paths.unit_file),
        },
        "gaps": gather_gaps(ctx, result),
    }


def show_summary(console: Console, summary: dict) -> None:
    """Print the final panel."""
    lines = ["[bold]Phases:[/]"]
    for phase_id in summary["completed"]:
        lines.append(f"  [green]✓[/] {phase_id}")
    for phase_id in summary["skipped"]:
        lines.append(f"  [dim]• {phase_id} (already done)[/]")

    paths = summary["paths"]
    lines += [
        "",
        "[bold]Configuration:[/]",
        f"  Config:      {paths['config']}",
        f"  Env:         {paths['env']}",
        f"  Workspace:   {paths['workspace']}",
        f"  Service:     {paths['unit']}",
        "",
        "[bold]Quick commands:[/]",
    ]
    lines += [f"  [cyan]{name:<12}[/] {desc}" for name, desc in QUICK_COMMANDS]

    gaps = summary["gaps"]
    if gaps:
        lines += ["", "[bold]Still to do:[/]"]
        for gap in gaps:
            colour = "dim" if gap["optional"] else "yellow"
            suffix = " (optional)" if gap["optional"] else ""
            lines.append(f"  [{colour}]⚠ {gap['item']}{suffix}[/]")
            lines.append(f"      run: [cyan]{gap['remedy']}[/]")
    else:
        lines += ["", "[green]Everything is configured.[/]"]

    lines += [
        "",
        "[bold]Next steps:[/]",
        "  1. Reboot to apply all changes:  [cyan]sudo reboot[/]",
        "  2. After reboot, OpenClaw starts automatically",
        "  3. Check status:  [cyan]oc-status[/]",
    ]

    console.print()
    console.print(Panel(
        "\n".join(lines),
        title=f"{summary['bot_name']} is ready to hatch",
        border_style="green" if not gaps else "yellow",
        padding=(1, 2),
    ))
    console.print()
