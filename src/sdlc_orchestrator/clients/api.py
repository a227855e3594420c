"""HTTP client for the deploy, analysis, fixer and test-plan collaborators."""

import logging
from typing import Any, Dict, Optional

import httpx

from sdlc_orchestrator.constants import HTTP_TIMEOUT_SECONDS
from sdlc_orchestrator.errors import CollaboratorError
from sdlc_orchestrator.models.test_plan import TestPlan

logger = logging.getLogger(__name__)


def _without_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


class ApiClient:
    """Thin wrapper over the collaborator REST API.

    Trigger calls raise ``CollaboratorError``. Status reads let ``httpx.HTTPError``
    propagate so the polling components decide whether to retry.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def _start_session(self, what: str, path: str, payload: Dict[str, Any]) -> str:
        try:
            r = self._client.post(path, json=_without_none(payload))
            r.raise_for_status()
            session_id = r.json().get("sessionId")
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorError(f"Failed to trigger {what}: {e}") from e
        if not session_id:
            raise CollaboratorError(f"Failed to trigger {what}: response has no sessionId")
        return str(session_id)

    def trigger_deploy(
        self, repository: str, branch: str, project_root: Optional[str] = None
    ) -> str:
        return self._start_session(
            "deployment",
            "/deploy",
            {"repository": repository, "branch": branch, "projectRoot": project_root or None},
        )

    def get_deployment_analysis(self, session_id: str) -> Dict[str, Any]:
        r = self._client.get(f"/analyze/{session_id}")
        r.raise_for_status()
        return r.json()

    def trigger_fix(
        self,
        repository: str,
        branch: str,
        fix_instructions: str,
        custom_root_folder: Optional[str] = None,
        stack_details: Optional[Dict[str, Any]] = None,
    ) -> str:
        return self._start_session(
            "fixer",
            "/fix",
            {
                "repository": repository,
                "branch": branch,
                "customRootFolder": custom_root_folder or None,
                "fixInstructions": fix_instructions,
                "stackDetails": stack_details,
            },
        )

    def get_fixer_status(self, session_id: str) -> Dict[str, Any]:
        r = self._client.get(f"/status/{session_id}")
        r.raise_for_status()
        return r.json()

    def generate_test_plan(
        self,
        repository: str,
        branch: str,
        custom_root_folder: Optional[str] = None,
        stack_details: Optional[Dict[str, Any]] = None,
    ) -> TestPlan:
        """Ask the discovery collaborator for a sanity test plan of the deployed stack."""
        r = self._client.post(
            "/test-plan",
            json=_without_none(
                {
                    "repository": repository,
                    "branch": branch,
                    "customRootFolder": custom_root_folder or None,
                    "stackDetails": stack_details,
                }
            ),
        )
        r.raise_for_status()
        plan = TestPlan.model_validate(r.json())
        logger.info(f"Received test plan with {len(plan.tests)} tests")
        return plan

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
