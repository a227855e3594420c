"""SDLC orchestrator: deploy, verify, and self-heal until success or the deadline.

One run moves through ``pending -> deploying -> {testing | fixing} -> {success |
failed | timeout}``. Each iteration deploys the current branch, waits for the
analysis verdict, runs the generated sanity tests and, on any failure, hands the
failure context to the fixer and retries with the branch it produces.

The run deadline is checked only before a new attempt starts, so an attempt already
in flight may overrun it. Nothing is cached across attempts except the branch and
the attempt counter.
"""

import logging
import time
from typing import Any, Optional

import httpx

from sdlc_orchestrator.clients.api import ApiClient
from sdlc_orchestrator.clients.status_log import StatusLog
from sdlc_orchestrator.constants import MAX_ATTEMPTS, RUN_TIMEOUT_SECONDS
from sdlc_orchestrator.engine.executor import TestExecutor
from sdlc_orchestrator.errors import ConfigurationError, SdlcError
from sdlc_orchestrator.models.run import DeploymentAttempt, Run, RunStatus
from sdlc_orchestrator.models.verdicts import DeploymentVerdict, SanityReport
from sdlc_orchestrator.services.deployment_poller import DeploymentPoller
from sdlc_orchestrator.services.remediation_waiter import RemediationWaiter
from sdlc_orchestrator.utils.stack import (
    extract_base_url,
    generate_session_id,
    validate_root_folder,
)

logger = logging.getLogger(__name__)


class SdlcOrchestrator:
    def __init__(
        self,
        api,
        status_log: StatusLog,
        executor: Optional[TestExecutor] = None,
        poller: Optional[DeploymentPoller] = None,
        waiter: Optional[RemediationWaiter] = None,
        timeout: float = RUN_TIMEOUT_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.api = api
        self.status_log = status_log
        self.executor = executor or TestExecutor()
        self.poller = poller or DeploymentPoller(api)
        self.waiter = waiter or RemediationWaiter(api)
        self.timeout = timeout
        # 0 disables the cap; the run is then bounded by the deadline only
        self.max_attempts = max_attempts

    # ── Public API ──────────────────────────────────────────────────────

    def start(
        self,
        repository: str,
        branch: str,
        custom_root_folder: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Run:
        """Create a run, record it as pending and drive it to a terminal status."""
        run = Run(
            session_id=session_id or generate_session_id(),
            repository=repository,
            branch=branch,
            custom_root_folder=custom_root_folder or None,
        )
        self.status_log.update_status(run, "SDLC run created")
        return self.run(run)

    def run(self, run: Run) -> Run:
        """Drive ``run`` to a terminal status. Never raises for collaborator failures."""
        start = time.monotonic()
        deadline = start + self.timeout
        logger.info(f"Starting SDLC run {run.session_id} for {run.repository}@{run.branch}")

        try:
            validate_root_folder(run.custom_root_folder)

            run.transition(RunStatus.DEPLOYING)
            self.status_log.update_status(
                run,
                "Starting SDLC deployment cycle...",
                logs=[
                    "SDLC Manager initialized",
                    f"Repository: {run.repository}",
                    f"Branch: {run.branch}"
                    + (f", Custom Root: {run.custom_root_folder}" if run.custom_root_folder else ""),
                    f"Timeout: {self.timeout} seconds",
                ],
            )

            while True:
                elapsed = time.monotonic() - start
                if time.monotonic() >= deadline:
                    self._log(run, f"Timeout reached after {elapsed:.1f} seconds")
                    return self._finish(
                        run,
                        RunStatus.TIMEOUT,
                        f"SDLC deployment timed out after {self.timeout} seconds",
                        error=f"Timeout: deployment did not complete within {self.timeout} seconds",
                    )

                if self.max_attempts and run.attempt >= self.max_attempts:
                    return self._finish(
                        run,
                        RunStatus.FAILED,
                        f"SDLC deployment failed: maximum attempts reached ({self.max_attempts})",
                        error=f"Maximum attempts reached ({self.max_attempts})",
                    )

                run.attempt += 1
                self._log(run, f"=== Attempt {run.attempt} ===")
                self._log(run, f"Current branch: {run.branch}")
                self._log(run, f"Time elapsed: {elapsed:.1f}s")

                attempt = self._deploy(run)
                verdict = attempt.verdict

                if not verdict.succeeded:
                    failure_detail = _describe_deploy_failure(verdict)
                    self._log(run, failure_detail)
                    self._log(run, "Deployment failed. Triggering Fixer module...")
                    if self._remediate(
                        run,
                        attempt,
                        verdict.fix_instructions,
                        verdict.stack_details,
                        failure="Deployment failed",
                        failure_detail=failure_detail,
                        unresolved="SDLC deployment failed: Fixer could not resolve deployment issue",
                    ):
                        continue
                    return run

                report = self._run_sanity_tests(run, attempt)
                if report.succeeded:
                    self._log(run, "SDLC deployment completed successfully!")
                    return self._finish(
                        run,
                        RunStatus.SUCCESS,
                        "SDLC deployment completed successfully",
                        deployment_session_id=attempt.deployment_session_id,
                        sanity_result=report.to_wire(),
                    )

                self._log(run, "Sanity tests failed. Triggering Fixer module...")
                if self._remediate(
                    run,
                    attempt,
                    report.primary_error,
                    verdict.deployed_resources,
                    failure="Sanity tests failed",
                    failure_detail=report.primary_error,
                    unresolved="SDLC deployment failed: Fixer could not resolve sanity test issues",
                    sanity_result=report.to_wire(),
                ):
                    continue
                return run

        except SdlcError as e:
            logger.error(f"SDLC run {run.session_id} failed: {e}")
            return self._fail(run, e)
        except Exception as e:
            logger.exception(f"SDLC run {run.session_id} crashed: {e}")
            return self._fail(run, e)

    # ── Stages ──────────────────────────────────────────────────────────

    def _deploy(self, run: Run) -> DeploymentAttempt:
        self._log(run, "Step 1: Initiating deployment via IaC Deployer...")
        deployment_session_id = self.api.trigger_deploy(
            run.repository, run.branch, run.custom_root_folder
        )
        self._log(run, f"Deployment initiated with session ID: {deployment_session_id}")
        self.status_log.update_status(
            run,
            "Deployment in progress...",
            deployment_session_id=deployment_session_id,
            attempt_number=run.attempt,
        )

        self._log(run, "Step 2: Polling Status Analyzer...")
        verdict = self.poller.poll(deployment_session_id, report=self._reporter(run))
        self._log(run, f"Deployment status: {verdict.status}")

        return DeploymentAttempt(
            attempt_number=run.attempt,
            branch=run.branch,
            deployment_session_id=deployment_session_id,
            verdict=verdict,
        )

    def _run_sanity_tests(self, run: Run, attempt: DeploymentAttempt) -> SanityReport:
        self._log(run, "Step 3: Deployment successful. Running sanity tests...")
        run.transition(RunStatus.TESTING)
        self.status_log.update_status(
            run,
            "Running sanity tests...",
            deployment_session_id=attempt.deployment_session_id,
            attempt_number=run.attempt,
        )

        verdict = attempt.verdict
        base_url = extract_base_url(verdict.stack_details) or extract_base_url(
            verdict.deployed_resources
        )
        if not base_url:
            raise ConfigurationError(
                "Could not extract base URL from stack details. "
                "Please provide a valid stack with API endpoint information."
            )
        self._log(run, f"Detected base URL: {base_url}")

        try:
            plan = self.api.generate_test_plan(
                run.repository,
                run.branch,
                run.custom_root_folder,
                verdict.stack_details or verdict.deployed_resources,
            )
        except (httpx.HTTPError, ValueError) as e:
            self._log(run, f"Failed to generate sanity tests: {e}")
            return SanityReport.from_error(str(e))

        self._log(run, f"Generated {len(plan.tests)} sanity tests")
        if not plan.tests:
            logger.warning(f"Empty test plan for run {run.session_id}; nothing to verify")

        report = SanityReport.from_results(self.executor.execute(plan, base_url))
        self._log(
            run,
            f"Tests completed: {report.passed_count} passed, {report.failed_count} failed",
        )
        return report

    def _remediate(
        self,
        run: Run,
        attempt: DeploymentAttempt,
        fix_instructions: str,
        stack_details: Any,
        failure: str,
        unresolved: str,
        failure_detail: Optional[str] = None,
        sanity_result: Optional[dict] = None,
    ) -> bool:
        """Hand the failure to the fixer. Returns True when a new branch is ready to deploy."""
        run.transition(RunStatus.FIXING)
        self.status_log.update_status(
            run,
            f"{failure}, initiating fix...",
            deployment_session_id=attempt.deployment_session_id,
            error=failure_detail,
            sanity_result=sanity_result,
            attempt_number=run.attempt,
        )

        fixer_session_id = self.api.trigger_fix(
            run.repository,
            run.branch,
            fix_instructions,
            custom_root_folder=run.custom_root_folder,
            stack_details=stack_details,
        )
        self._log(run, f"Fixer initiated with session ID: {fixer_session_id}")

        outcome = self.waiter.wait(fixer_session_id, report=self._reporter(run))
        self._log(run, f"Fixer completed with status: {outcome.status}")

        if outcome.succeeded:
            if outcome.new_branch == run.branch:
                logger.warning(f"Fixer returned the branch already deployed: {run.branch}")
            run.branch = outcome.new_branch
            self._log(run, f"Fixer created new branch: {run.branch}")
            run.transition(RunStatus.DEPLOYING)
            self.status_log.update_status(
                run,
                "Retrying deployment with fixes...",
                sanity_result=sanity_result,
                fixer_session_id=fixer_session_id,
                attempt_number=run.attempt,
            )
            return True

        if outcome.timed_out:
            self._log(run, f"Gave up waiting for Fixer: {outcome.error}")
        else:
            self._log(run, f"Fixer failed to create a fix: {outcome.error}")
        self._finish(
            run,
            RunStatus.FAILED,
            unresolved,
            deployment_session_id=attempt.deployment_session_id,
            sanity_result=sanity_result,
            fixer_session_id=fixer_session_id,
            error=outcome.error or "Fixer failed to create a fix",
        )
        return False

    # ── Status helpers ──────────────────────────────────────────────────

    def _log(self, run: Run, message: str) -> None:
        self.status_log.add_log(run, message)

    def _reporter(self, run: Run):
        return lambda message: self._log(run, message)

    def _finish(self, run: Run, status: RunStatus, message: str, **fields: Any) -> Run:
        run.transition(status)
        self.status_log.update_status(run, message, attempt_number=run.attempt, **fields)
        logger.info(f"SDLC run {run.session_id} finished: {status.value} - {message}")
        return run

    def _fail(self, run: Run, error: Exception) -> Run:
        if run.status.is_terminal:
            return run
        message = str(error) or type(error).__name__
        return self._finish(run, RunStatus.FAILED, "SDLC deployment failed", logs=[message], error=message)

    def close(self) -> None:
        self.api.close()

    def __enter__(self) -> "SdlcOrchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_orchestrator(cfg: dict) -> SdlcOrchestrator:
    """Build the full orchestrator graph from a config loaded by ``load_config``."""
    api = ApiClient(cfg["API_BASE_URL"], timeout=cfg["HTTP_TIMEOUT_SECONDS"])
    return SdlcOrchestrator(
        api,
        StatusLog(cfg["STATUS_DIR"]),
        executor=TestExecutor(timeout=cfg["TEST_REQUEST_TIMEOUT_SECONDS"]),
        poller=DeploymentPoller(
            api,
            max_attempts=cfg["DEPLOY_POLL_MAX_ATTEMPTS"],
            poll_interval=cfg["DEPLOY_POLL_INTERVAL_SECONDS"],
        ),
        waiter=RemediationWaiter(
            api,
            poll_interval=cfg["FIXER_POLL_INTERVAL_SECONDS"],
            timeout=cfg["FIXER_TIMEOUT_SECONDS"],
        ),
        timeout=cfg["RUN_TIMEOUT_SECONDS"],
        max_attempts=cfg["MAX_ATTEMPTS"],
    )


def _describe_deploy_failure(verdict: DeploymentVerdict) -> str:
    """Say whether the analyzer reported the failure or the poller gave up waiting."""
    detail = verdict.summary or verdict.root_cause or "no details"
    if verdict.synthesized:
        return f"No deployment verdict, gave up waiting: {detail}"
    return f"Status Analyzer reported deployment failure: {detail}"
