"""Install commands: install (full provisioning run), render (artifacts only)."""

from __future__ import annotations

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from ._common import (
    answers_option,
    configure_logging,
    console,
    fail,
    home_option,
    load_answers,
    require_unprivileged,
    unit_dir_option,
)

INTRO = """\
[bold]This will:[/]
  1. Update the system & install all dependencies
  2. Install Node.js 22.x and Chromium (headless browser)
  3. Install Ollama + lightweight local models
  4. Install & configure OpenClaw
  5. Set up Discord, LLM provider and optional Brave Search
  6. Enable the systemd service for 24/7 operation
  7. Run openclaw doctor to verify everything

[yellow]Estimated time: 15-30 minutes depending on Pi model & internet speed[/]"""


def register_install_commands(main: click.Group) -> None:
    """Register the install and render commands."""

    @main.command()
    @home_option
    @unit_dir_option
    @answers_option
    @click.option("--start-at", default=None, help="Resume from this phase id.")
    @click.option("--yes", "-y", is_flag=True, help="Skip the 'Ready to begin?' confirmation.")
    @click.option("--start/--no-start", "start_now", default=None,
                  help="Start the service at the end without asking.")
    @click.option("--verbose", "-v", is_flag=True, help="Also log to stderr.")
    def install(
        home: str,
        unit_dir: str,
        answers: Optional[str],
        start_at: Optional[str],
        yes: bool,
        start_now: Optional[bool],
        verbose: bool,
    ):
        """Provision this host as an always-on OpenClaw agent.

        Safe to re-run: finished phases are detected and skipped, and an
        existing openclaw.json or persona document is never overwritten.
        """
        from ..errors import PhaseFailedError, PreflightError, ProvisionError
        from ..interview import run_interview
        from ..paths import ProvisionPaths
        from ..preflight import check_architecture
        from ..prompts import collect_confirmation
        from ..provision import ProvisionContext, run_provisioning
        from ..summary import gather_summary, show_summary
        from ..systemd import start_service

        require_unprivileged()
        profile = load_answers(answers)

        console.print()
        console.print(Panel(INTRO, title="OpenClaw Raspberry Pi Installer", border_style="cyan"))

        try:
            check_architecture(collect_confirmation)
            if not yes and not collect_confirmation("Ready to begin installation?"):
                raise PreflightError("Installation cancelled.")
        except PreflightError as exc:
            fail(str(exc))
        except EOFError:
            fail("No input available; installation cancelled.")

        paths = ProvisionPaths.resolve(home=home, unit_dir=unit_dir)
        log_file = configure_logging(paths.log_dir, verbose)
        console.print(f"  [dim]Log: {log_file}[/]")

        if profile is None:
            try:
                profile = run_interview()
            except EOFError:
                fail("Input closed during the interview; nothing was installed.")

        ctx = ProvisionContext(paths=paths, profile=profile)

        def banner(phase):
            console.print(f"\n[bold cyan]━━ {phase.title}[/] [dim]({phase.phase_id})[/]")

        try:
            result = run_provisioning(ctx, start_at=start_at, on_phase_start=banner)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--start-at")
        except PhaseFailedError as exc:
            fail(f"Phase '{exc.phase_id}' failed: {exc.cause}\n  Log: {log_file}")
        except ProvisionError as exc:
            fail(str(exc))

        for warning in result.warnings:
            console.print(f"  [yellow]WARN[/] {warning.title}: {warning.detail}")

        show_summary(console, gather_summary(ctx, result))

        if start_now is None:
            try:
                start_now = collect_confirmation("Would you like to start OpenClaw now?")
            except EOFError:
                start_now = False

        if start_now:
            if start_service():
                console.print("  [green]OpenClaw is running![/] Check logs with: oc-logs\n")
            else:
                console.print("  [yellow]Start failed.[/] Try: sudo systemctl start openclaw\n")
        else:
            console.print("  You can start it later with: [cyan]sudo systemctl start openclaw[/]")
            console.print("  Or just reboot; it will start automatically.\n")

    @main.command()
    @home_option
    @answers_option
    @click.option("--verbose", "-v", is_flag=True, help="Also log to stderr.")
    def render(home: str, answers: Optional[str], verbose: bool):
        """Write config, env and persona files only.

        No packages, no systemd. Existing openclaw.json and persona
        documents are left as they are.
        """
        from ..artifacts import config_artifacts, write_artifacts
        from ..interview import run_interview
        from ..paths import ProvisionPaths

        require_unprivileged()
        profile = load_answers(answers)

        paths = ProvisionPaths.resolve(home=home)
        configure_logging(paths.log_dir, verbose)

        if profile is None:
            try:
                profile = run_interview()
            except EOFError:
                fail("Input closed during the interview; nothing was written.")

        results = write_artifacts(config_artifacts(paths), profile)

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Outcome")
        table.add_column("File")
        for path, outcome in results.items():
            colour = "green" if outcome.value == "written" else "dim"
            table.add_row(f"[{colour}]{outcome.value}[/]", str(path))

        console.print()
        console.print(table)
        console.print()
