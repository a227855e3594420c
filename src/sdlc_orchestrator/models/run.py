"""Run lifecycle models."""

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from sdlc_orchestrator.errors import RunStateError
from sdlc_orchestrator.models.base import CamelModel
from sdlc_orchestrator.models.verdicts import DeploymentVerdict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    """Lifecycle status of a run."""

    PENDING = "pending"
    DEPLOYING = "deploying"
    TESTING = "testing"
    FIXING = "fixing"
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.SUCCESS, RunStatus.FAILED, RunStatus.TIMEOUT)


class Run(CamelModel):
    """One end-to-end orchestration session, owned by the orchestrator."""

    session_id: str
    repository: str
    branch: str
    custom_root_folder: Optional[str] = None
    status: RunStatus = RunStatus.PENDING
    attempt: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def transition(self, status: RunStatus) -> None:
        """Move to ``status``. Runs that reached a terminal status are frozen."""
        if self.status.is_terminal:
            raise RunStateError(
                f"Run {self.session_id} already finished with status '{self.status.value}'"
            )
        self.status = status
        self.updated_at = _utcnow()


class DeploymentAttempt(CamelModel):
    """One deploy and verify cycle within a run."""

    attempt_number: int
    branch: str
    deployment_session_id: str
    verdict: Optional[DeploymentVerdict] = None


class StatusRecord(CamelModel):
    """Append-only status record read by external observers of a run."""

    session_id: str
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    status: RunStatus
    repository: str
    branch: str
    custom_root_folder: Optional[str] = None
    message: Optional[str] = None
    logs: Optional[List[str]] = None
    deployment_session_id: Optional[str] = None
    sanity_result: Optional[Dict[str, Any]] = None
    fixer_session_id: Optional[str] = None
    error: Optional[str] = None
    attempt_number: Optional[int] = None
