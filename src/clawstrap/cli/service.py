"""Service commands: status, start, and unit preview."""

from __future__ import annotations

import json

import click

from ._common import console, fail, home_option, unit_dir_option


def register_service_commands(main: click.Group) -> None:
    """Register the service command group."""

    @main.group()
    def service():
        """The openclaw systemd service."""

    @service.command("status")
    @unit_dir_option
    @click.option("--json-out", is_flag=True, help="Output as JSON.")
    def service_status_cmd(unit_dir: str, json_out: bool):
        """Show whether the service is installed, enabled and running."""
        from pathlib import Path

        from ..systemd import service_status

        status = service_status(Path(unit_dir))
        if json_out:
            click.echo(json.dumps(status.__dict__, indent=2))
            return

        def flag(value: bool) -> str:
            return "[green]yes[/]" if value else "[red]no[/]"

        console.print()
        console.print(f"  Installed: {flag(status.installed)}")
        console.print(f"  Enabled:   {flag(status.enabled)}")
        console.print(f"  Active:    {flag(status.active)}" + (f"  [dim](PID {status.pid})[/]" if status.pid else ""))
        console.print()

    @service.command("start")
    def service_start():
        """Start the service now (it also starts at boot)."""
        from ..systemd import start_service

        if not start_service():
            fail("systemctl start openclaw failed; see: journalctl -u openclaw")
        console.print("\n  [green]OpenClaw started.[/]\n")

    @service.command("unit")
    @home_option
    def service_unit(home: str):
        """Print the unit file this host would get, without writing it."""
        from ..errors import BinaryNotFoundError
        from ..paths import ProvisionPaths
        from ..systemd import build_descriptor, generate_unit_file, resolve_binary

        paths = ProvisionPaths.resolve(home=home)
        try:
            binary = resolve_binary(paths)
        except BinaryNotFoundError as exc:
            fail(str(exc))
        click.echo(generate_unit_file(build_descriptor(binary, paths)), nl=False)
