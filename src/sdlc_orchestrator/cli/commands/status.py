"""Status command: show the progress of a run from the status log."""

import click

from sdlc_orchestrator.clients.status_log import StatusLog
from sdlc_orchestrator.config import load_config
from sdlc_orchestrator.errors import SdlcError


@click.command()
@click.argument("session_id")
@click.option("--logs", "show_logs", is_flag=True, help="Also print the run's log lines")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="JSON config file")
def status(session_id, show_logs, config_path):
    """Print the latest status of SESSION_ID."""
    try:
        cfg = load_config(config_path)
    except SdlcError as e:
        raise click.ClickException(str(e))

    status_log = StatusLog(cfg["STATUS_DIR"])
    latest = status_log.latest(session_id)
    if latest is None:
        raise click.ClickException(f"No status records for session '{session_id}'")

    click.echo(f"Session: {latest.session_id}")
    click.echo(f"Status: {latest.status.value}")
    click.echo(f"Repository: {latest.repository}")
    click.echo(f"Branch: {latest.branch}")
    if latest.attempt_number is not None:
        click.echo(f"Attempt: {latest.attempt_number}")
    if latest.message:
        click.echo(f"Message: {latest.message}")
    if latest.error:
        click.echo(f"Error: {latest.error}")

    if show_logs:
        click.echo("")
        for line in status_log.logs(session_id):
            click.echo(line)
