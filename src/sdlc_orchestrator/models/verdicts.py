"""Verdicts returned by the polling and execution components.

A verdict is always returned, never raised: collaborators that fail, time out or
cannot be reached are folded into ``status="failed"`` with context attached.
"""

from typing import Any, List, Literal, Optional

from pydantic import Field

from sdlc_orchestrator.models.base import CamelModel
from sdlc_orchestrator.models.test_plan import TestResult

VerdictStatus = Literal["success", "failed"]


class DeploymentVerdict(CamelModel):
    status: VerdictStatus
    summary: Optional[str] = None
    root_cause: Optional[str] = None
    errors: Any = None
    deployed_resources: Any = None
    stack_details: Any = None
    # True when we gave up waiting, as opposed to the analyzer reporting a failure
    synthesized: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def fix_instructions(self) -> str:
        return self.root_cause or self.summary or "Fix deployment errors"


class RemediationOutcome(CamelModel):
    status: VerdictStatus
    new_branch: Optional[str] = None
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == "success" and bool(self.new_branch)


class SanityReport(CamelModel):
    """Aggregate verdict over one execution of a test plan."""

    status: VerdictStatus
    message: str
    error: Optional[str] = None
    passed_count: int = 0
    failed_count: int = 0
    tests: List[TestResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def primary_error(self) -> str:
        return self.error or self.message or "Fix sanity test failures"

    @classmethod
    def from_results(cls, results: List[TestResult]) -> "SanityReport":
        failed = [r for r in results if not r.passed]
        passed_count = len(results) - len(failed)
        if not failed:
            return cls(
                status="success",
                message=f"All {passed_count} sanity tests passed successfully",
                passed_count=passed_count,
                tests=results,
            )

        message = f"{len(failed)} out of {len(results)} tests failed"
        details = [f"- {r.test_name}: {r.error}" for r in failed]
        return cls(
            status="failed",
            message=message,
            error="\n".join([message, *details]),
            passed_count=passed_count,
            failed_count=len(failed),
            tests=results,
        )

    @classmethod
    def from_error(cls, error: str) -> "SanityReport":
        """Report for a plan that could not be produced or run at all."""
        return cls(status="failed", message=f"Sanity tests failed: {error}", error=error)
