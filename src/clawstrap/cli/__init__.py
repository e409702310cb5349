"""
clawstrap CLI: provision an OpenClaw agent host.

The main Click group is defined here; each command group lives in its
own module and is attached through a register function.

Entry point: clawstrap.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="clawstrap")
def main():
    """clawstrap: turn a fresh Pi into an always-on OpenClaw agent."""


from .install import register_install_commands
from .doctor import register_doctor_commands
from .service import register_service_commands

register_install_commands(main)
register_doctor_commands(main)
register_service_commands(main)
