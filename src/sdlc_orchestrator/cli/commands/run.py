"""Run command: drive one deploy/verify/self-heal session to a terminal status."""

import click

from sdlc_orchestrator.config import load_config
from sdlc_orchestrator.errors import SdlcError
from sdlc_orchestrator.models.run import RunStatus
from sdlc_orchestrator.services.sdlc_service import create_orchestrator
from sdlc_orchestrator.utils.logging import setup_logging


@click.command()
@click.option("--repository", required=True, help="Git repository URL to deploy")
@click.option("--branch", required=True, help="Initial branch to deploy")
@click.option("--root-folder", help="Project root inside the repository (relative path)")
@click.option("--session-id", help="Session identifier (default: auto-generated)")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="JSON config file (env vars override it)",
)
def run(repository, branch, root_folder, session_id, config_path):
    """Deploy a branch, test it, and let the fixer repair failures until success or timeout."""
    try:
        cfg = load_config(config_path)
    except SdlcError as e:
        raise click.ClickException(str(e))
    setup_logging(cfg["LOG_LEVEL"])

    with create_orchestrator(cfg) as orchestrator:
        result = orchestrator.start(
            repository, branch, custom_root_folder=root_folder, session_id=session_id
        )

    click.echo(f"Session: {result.session_id}")
    click.echo(f"Final status: {result.status.value} (attempts: {result.attempt}, branch: {result.branch})")
    latest = orchestrator.status_log.latest(result.session_id)
    if latest and latest.error:
        click.echo(f"Error: {latest.error}", err=True)

    click.get_current_context().exit(0 if result.status == RunStatus.SUCCESS else 1)
