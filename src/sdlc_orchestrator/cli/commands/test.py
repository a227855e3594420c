"""Test command: execute a sanity test plan against a base URL."""

import json
from pathlib import Path

import click
from pydantic import ValidationError

from sdlc_orchestrator.config import load_config
from sdlc_orchestrator.engine.executor import TestExecutor
from sdlc_orchestrator.errors import SdlcError
from sdlc_orchestrator.models.test_plan import TestPlan
from sdlc_orchestrator.models.verdicts import SanityReport
from sdlc_orchestrator.utils.logging import setup_logging


def load_test_plan(path: Path) -> TestPlan:
    """Read a plan file holding either ``{"tests": [...]}`` or a bare list of tests."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in test plan {path}: {e}")
    if isinstance(data, list):
        data = {"tests": data}
    try:
        return TestPlan.model_validate(data)
    except ValidationError as e:
        raise click.ClickException(f"Invalid test plan {path}: {e}")


@click.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--base-url", required=True, help="Base URL of the deployed API")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the full JSON report to this file",
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="JSON config file")
def test(plan_file, base_url, output, config_path):
    """Execute PLAN_FILE step by step and report PASS/FAIL per test."""
    try:
        cfg = load_config(config_path)
    except SdlcError as e:
        raise click.ClickException(str(e))
    setup_logging(cfg["LOG_LEVEL"])

    plan = load_test_plan(plan_file)
    results = TestExecutor(timeout=cfg["TEST_REQUEST_TIMEOUT_SECONDS"]).execute(plan, base_url)
    report = SanityReport.from_results(results)

    for result in results:
        mark = "PASS" if result.passed else "FAIL"
        line = f"{mark} {result.test_name} ({result.duration_ms} ms)"
        if result.error:
            line += f": {result.error}"
        click.echo(line)
    click.echo(report.message)

    if output:
        output.write_text(json.dumps(report.to_wire(), indent=2), encoding="utf-8")

    click.get_current_context().exit(0 if report.succeeded else 1)
