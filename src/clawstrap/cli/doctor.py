"""Doctor command: read-only health report for a provisioned host."""

from __future__ import annotations

import json

import click

from ._common import console, home_option, unit_dir_option

CATEGORY_LABELS = {
    "artifacts": "Artifacts",
    "providers": "Providers",
    "service": "Service",
    "agent": "Agent",
}


def register_doctor_commands(main: click.Group) -> None:
    """Register the doctor command."""

    @main.command()
    @home_option
    @unit_dir_option
    @click.option("--json-out", is_flag=True, help="Output as machine-readable JSON.")
    @click.option("--no-external", is_flag=True, help="Skip running `openclaw doctor`.")
    def doctor(home: str, unit_dir: str, json_out: bool, no_external: bool):
        """Diagnose the provisioned agent host. Never changes anything."""
        from ..doctor import run_diagnostics
        from ..errors import BinaryNotFoundError
        from ..paths import ProvisionPaths
        from ..systemd import resolve_binary

        paths = ProvisionPaths.resolve(home=home, unit_dir=unit_dir)
        try:
            binary = resolve_binary(paths)
        except BinaryNotFoundError:
            binary = None

        report = run_diagnostics(paths, binary=binary, external=not no_external)

        if json_out:
            click.echo(json.dumps(report.to_dict(), indent=2))
            return

        console.print()
        categories: dict = {}
        for check in report.checks:
            categories.setdefault(check.category, []).append(check)

        for cat_key, label in CATEGORY_LABELS.items():
            checks = categories.get(cat_key, [])
            if not checks:
                continue
            console.print(f"  [bold]{label}[/]")
            for c in checks:
                icon = "[green]✓[/]" if c.passed else "[red]✗[/]"
                detail = f" [dim]({c.detail})[/]" if c.detail else ""
                console.print(f"    {icon} {c.description}{detail}")
                if not c.passed and c.fix:
                    console.print(f"      [yellow]Fix: {c.fix}[/]")
            console.print()

        if report.all_passed:
            console.print(f"  [bold green]✓ All {report.total_count} checks passed.[/]")
        else:
            console.print(
                f"  [bold green]{report.passed_count}[/] passed, "
                f"[bold red]{report.failed_count}[/] failed "
                f"out of {report.total_count} checks."
            )
        console.print()
