"""Bounded polling of the deployment analysis collaborator."""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from sdlc_orchestrator.constants import DEPLOY_POLL_INTERVAL_SECONDS, DEPLOY_POLL_MAX_ATTEMPTS
from sdlc_orchestrator.models.verdicts import DeploymentVerdict

logger = logging.getLogger(__name__)

TERMINAL_DEPLOY_STATUSES = ("success", "failed")


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _to_verdict(analysis: Dict[str, Any]) -> DeploymentVerdict:
    """Build a verdict from a terminal analysis, stringifying fields of unexpected shape."""
    try:
        return DeploymentVerdict.model_validate(analysis)
    except ValidationError as e:
        logger.warning(f"Malformed deployment analysis: {e}")
        return DeploymentVerdict(
            status=analysis["status"],
            summary=_as_text(analysis.get("summary")),
            root_cause=_as_text(analysis.get("rootCause")),
            errors=analysis.get("errors"),
            deployed_resources=analysis.get("deployedResources"),
            stack_details=analysis.get("stackDetails"),
        )


class DeploymentPoller:
    """Polls ``GET /analyze/{id}`` until a terminal status or the attempt budget runs out.

    Non-terminal statuses and request errors both consume an attempt. The poller
    always returns a verdict; an exhausted budget yields a synthesized failure.
    """

    def __init__(
        self,
        api,
        max_attempts: int = DEPLOY_POLL_MAX_ATTEMPTS,
        poll_interval: float = DEPLOY_POLL_INTERVAL_SECONDS,
        report: Optional[Callable[[str], None]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.api = api
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self._report = report or logger.info

    def poll(
        self, deployment_session_id: str, report: Optional[Callable[[str], None]] = None
    ) -> DeploymentVerdict:
        report = report or self._report
        for attempt in range(1, self.max_attempts + 1):
            report(f"Polling attempt {attempt}/{self.max_attempts}...")
            is_last = attempt >= self.max_attempts

            try:
                analysis = self.api.get_deployment_analysis(deployment_session_id)
                if not isinstance(analysis, dict):
                    raise ValueError(f"unexpected analysis response: {analysis!r:.200}")
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Deployment status request failed for {deployment_session_id}: {e}")
                report(f"Error polling status: {e}")
                if is_last:
                    return DeploymentVerdict(
                        status="failed",
                        summary=(
                            f"Failed to get deployment status after {self.max_attempts} attempts"
                        ),
                        root_cause=str(e),
                        synthesized=True,
                    )
                time.sleep(self.poll_interval)
                continue

            status = analysis.get("status")
            report(f"Status: {status}")

            if status in TERMINAL_DEPLOY_STATUSES:
                return _to_verdict(analysis)

            if not is_last:
                report(
                    f"Deployment still in progress. Waiting {self.poll_interval} seconds..."
                )
                time.sleep(self.poll_interval)

        return DeploymentVerdict(
            status="failed",
            summary=f"Deployment did not complete within {self.max_attempts} attempts",
            root_cause="Timeout waiting for deployment to complete",
            synthesized=True,
        )
