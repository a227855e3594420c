"""Time-bounded wait on the remediation (fixer) collaborator."""

import logging
import time
from typing import Callable, Optional

import httpx

from sdlc_orchestrator.constants import FIXER_POLL_INTERVAL_SECONDS, FIXER_TIMEOUT_SECONDS
from sdlc_orchestrator.models.verdicts import RemediationOutcome

logger = logging.getLogger(__name__)


class RemediationWaiter:
    """Polls ``GET /status/{id}`` until the fixer finishes or ``timeout`` seconds elapse.

    Request errors are reported and retried until the timeout.
    """

    def __init__(
        self,
        api,
        poll_interval: float = FIXER_POLL_INTERVAL_SECONDS,
        timeout: float = FIXER_TIMEOUT_SECONDS,
        report: Optional[Callable[[str], None]] = None,
    ):
        self.api = api
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._report = report or logger.info

    def wait(
        self, fixer_session_id: str, report: Optional[Callable[[str], None]] = None
    ) -> RemediationOutcome:
        report = report or self._report
        start = time.monotonic()

        while time.monotonic() - start < self.timeout:
            try:
                status = self.api.get_fixer_status(fixer_session_id)
                if not isinstance(status, dict):
                    raise ValueError(f"unexpected fixer status response: {status!r:.200}")
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Fixer status request failed for {fixer_session_id}: {e}")
                report(f"Error polling fixer status: {e}")
                time.sleep(self.poll_interval)
                continue

            state = status.get("status")
            report(f"Fixer status: {state}")

            if state == "success":
                job = status.get("deploymentJob") or {}
                branch = job.get("branch") if isinstance(job, dict) else None
                if not branch:
                    return RemediationOutcome(
                        status="failed", error="Fixer reported success without a branch"
                    )
                return RemediationOutcome(status="success", new_branch=branch)

            if state == "failed":
                return RemediationOutcome(
                    status="failed", error=status.get("error") or "Fixer failed to create a fix"
                )

            report(f"Fixer still working. Waiting {self.poll_interval} seconds...")
            time.sleep(self.poll_interval)

        return RemediationOutcome(
            status="failed",
            error=f"Timeout waiting for fixer to complete after {self.timeout} seconds",
            timed_out=True,
        )
