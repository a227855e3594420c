"""Entry point for the ``sdlc`` command line."""

import click

from sdlc_orchestrator import __version__
from sdlc_orchestrator.cli.commands.run import run
from sdlc_orchestrator.cli.commands.status import status
from sdlc_orchestrator.cli.commands.test import test


@click.group()
@click.version_option(__version__, prog_name="sdlc")
def cli():
    """Deploy, verify and self-heal infrastructure-as-code projects."""


cli.add_command(run)
cli.add_command(test)
cli.add_command(status)


if __name__ == "__main__":
    cli()
