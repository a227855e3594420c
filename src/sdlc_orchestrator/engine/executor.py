"""Sanity test execution engine.

Runs an ordered suite of HTTP test steps against a deployed stack. Tests and steps
execute strictly in declared order; later steps may use variables captured by
earlier ones. Execution never raises: transport errors and validation
mismatches are recorded on the step result and the remaining tests still run.
"""

import logging
import time
from typing import Any, Iterable, List, Optional, Union

import httpx

from sdlc_orchestrator.constants import DEFAULT_REQUEST_HEADERS, TEST_REQUEST_TIMEOUT_SECONDS
from sdlc_orchestrator.engine.validation import matches_expected
from sdlc_orchestrator.engine.variables import VariableStore, to_text
from sdlc_orchestrator.models.test_plan import (
    RequestRecord,
    ResponseRecord,
    SanityTest,
    StepResult,
    TestPlan,
    TestResult,
    TestStep,
)

logger = logging.getLogger(__name__)


def build_url(base_url: str, endpoint: str) -> str:
    """Join ``base_url`` (trailing slash stripped) with ``endpoint`` (leading slash enforced)."""
    clean_base = base_url[:-1] if base_url.endswith("/") else base_url
    clean_endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return clean_base + clean_endpoint


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _response_data(response: httpx.Response) -> Any:
    if not response.content:
        return ""
    try:
        return response.json()
    except (ValueError, RecursionError):
        return response.text


class TestExecutor:
    """Executes test plans; each ``execute`` call gets its own variable store."""

    __test__ = False

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = TEST_REQUEST_TIMEOUT_SECONDS,
    ):
        self._client = client
        self._timeout = timeout

    def execute(
        self, tests: Union[TestPlan, Iterable[SanityTest]], base_url: str
    ) -> List[TestResult]:
        """Run every test in order against ``base_url`` and return one result per test."""
        if isinstance(tests, TestPlan):
            tests = tests.tests

        variables = VariableStore()
        results: List[TestResult] = []

        owns_client = self._client is None
        client = self._client or httpx.Client(timeout=self._timeout)
        try:
            for test in tests:
                logger.info(f"Executing test: {test.name}")
                result = self._execute_test(client, test, base_url, variables)
                results.append(result)
                if result.passed:
                    logger.info(f"Test passed: {test.name}")
                else:
                    logger.error(f"Test failed: {test.name}: {result.error}")
        finally:
            if owns_client:
                client.close()

        return results

    def _execute_test(
        self,
        client: httpx.Client,
        test: SanityTest,
        base_url: str,
        variables: VariableStore,
    ) -> TestResult:
        start = time.monotonic()
        step_results: List[StepResult] = []
        error = None

        for number, step in enumerate(test.steps, start=1):
            logger.info(f"  Step {number}: {step.action or step.endpoint}")
            step_result = self._execute_step(client, step, number, base_url, variables)
            step_results.append(step_result)
            if not step_result.passed:
                error = f"Step {number} failed: {step_result.error}"
                break

        return TestResult(
            test_name=test.name,
            passed=error is None,
            duration_ms=_elapsed_ms(start),
            steps=step_results,
            error=error,
        )

    def _execute_step(
        self,
        client: httpx.Client,
        step: TestStep,
        number: int,
        base_url: str,
        variables: VariableStore,
    ) -> StepResult:
        start = time.monotonic()
        request = None
        try:
            endpoint = variables.substitute(step.endpoint)
            headers = variables.substitute(step.headers) if step.headers else None
            body = variables.substitute(step.body) if step.body is not None else None
            url = build_url(base_url, endpoint)
            request = RequestRecord(method=step.method.value, url=url, headers=headers, body=body)

            merged_headers = {**DEFAULT_REQUEST_HEADERS, **(headers or {})}
            merged_headers = {key: to_text(value) for key, value in merged_headers.items()}
            kwargs: dict = {"headers": merged_headers, "timeout": self._timeout}
            if isinstance(body, str):
                kwargs["content"] = body
            elif body is not None:
                kwargs["json"] = body

            # Any status code is a valid response here; validation decides pass/fail
            response = client.request(step.method.value, url, **kwargs)
        except Exception as e:
            logger.warning(f"    Request failed: {e}")
            return StepResult(
                step_number=number,
                action=step.action,
                passed=False,
                duration_ms=_elapsed_ms(start),
                request=request,
                error=str(e) or type(e).__name__,
            )

        data = _response_data(response)
        try:
            error = self._validate(step, response.status_code, data)
            if error is None and step.store_variables:
                self._capture(step.store_variables, data, variables)
        except Exception as e:
            logger.warning(f"    Validating response failed: {e!r}")
            error = f"Could not validate response: {type(e).__name__}: {e}"

        return StepResult(
            step_number=number,
            action=step.action,
            passed=error is None,
            duration_ms=_elapsed_ms(start),
            request=request,
            response=ResponseRecord(status=response.status_code, data=data),
            error=error,
        )

    @staticmethod
    def _validate(step: TestStep, status_code: int, data: Any) -> Optional[str]:
        if status_code != step.expected_status:
            return f"Expected status {step.expected_status}, got {status_code}"
        if step.expected_response is not None and not matches_expected(data, step.expected_response):
            return "Response data does not match expected response"
        return None

    @staticmethod
    def _capture(store_variables: dict, data: Any, variables: VariableStore) -> None:
        for name, path in store_variables.items():
            if variables.capture(name, data, path):
                logger.info(f"    Stored variable: {name} = {variables.get(name)}")
            else:
                logger.warning(f"    Variable {name}: nothing at path '{path}'")
