"""Unit tests for the deployment status poller."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from sdlc_orchestrator.services.deployment_poller import DeploymentPoller


def make_poller(responses, max_attempts=5):
    api = MagicMock()
    api.get_deployment_analysis.side_effect = responses
    return DeploymentPoller(api, max_attempts=max_attempts, poll_interval=60), api


@patch("sdlc_orchestrator.services.deployment_poller.time")
class TestDeploymentPoller:
    def test_success_after_four_deploying(self, mock_time):
        poller, api = make_poller([{"status": "deploying"}] * 4 + [{"status": "success"}])

        verdict = poller.poll("dep-1")

        assert verdict.status == "success"
        assert verdict.synthesized is False
        assert api.get_deployment_analysis.call_count == 5
        api.get_deployment_analysis.assert_called_with("dep-1")
        assert mock_time.sleep.call_count == 4
        mock_time.sleep.assert_called_with(60)

    def test_terminal_status_stops_immediately(self, mock_time):
        poller, api = make_poller(
            [
                {
                    "status": "failed",
                    "summary": "stack rolled back",
                    "rootCause": "bad template",
                    "stackDetails": {"StackName": "s"},
                }
            ]
        )

        verdict = poller.poll("dep-1")

        assert verdict.status == "failed"
        assert verdict.root_cause == "bad template"
        assert verdict.stack_details == {"StackName": "s"}
        assert verdict.fix_instructions == "bad template"
        assert verdict.synthesized is False
        assert api.get_deployment_analysis.call_count == 1
        mock_time.sleep.assert_not_called()

    def test_success_carries_deployed_resources(self, mock_time):
        poller, _ = make_poller(
            [{"status": "success", "deployedResources": {"apiUrl": "https://x"}}]
        )

        verdict = poller.poll("dep-1")

        assert verdict.deployed_resources == {"apiUrl": "https://x"}

    def test_budget_exhausted_synthesizes_failure(self, mock_time):
        poller, api = make_poller([{"status": "deploying"}] * 5)

        verdict = poller.poll("dep-1")

        assert verdict.status == "failed"
        assert verdict.synthesized is True
        assert "did not complete within 5 attempts" in verdict.summary
        assert api.get_deployment_analysis.call_count == 5
        # no sleep after the final attempt
        assert mock_time.sleep.call_count == 4

    def test_transient_error_consumes_attempt_and_retries(self, mock_time):
        poller, api = make_poller(
            [httpx.ConnectError("boom"), {"status": "deploying"}, {"status": "success"}]
        )

        verdict = poller.poll("dep-1")

        assert verdict.status == "success"
        assert api.get_deployment_analysis.call_count == 3
        assert mock_time.sleep.call_count == 2

    def test_error_on_last_attempt_becomes_failure(self, mock_time):
        poller, api = make_poller(
            [{"status": "deploying"}, httpx.ReadTimeout("slow")], max_attempts=2
        )

        verdict = poller.poll("dep-1")

        assert verdict.status == "failed"
        assert verdict.synthesized is True
        assert "after 2 attempts" in verdict.summary
        assert verdict.root_cause == "slow"

    def test_reports_progress(self, mock_time):
        poller, _ = make_poller([{"status": "success"}])
        messages = []

        poller.poll("dep-1", report=messages.append)

        assert messages == ["Polling attempt 1/5...", "Status: success"]


class TestDeploymentPollerConfig:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            DeploymentPoller(MagicMock(), max_attempts=0)


@patch("sdlc_orchestrator.services.deployment_poller.time")
class TestMalformedAnalysis:
    def test_terminal_payload_with_odd_fields_still_yields_verdict(self, mock_time):
        poller, _ = make_poller(
            [{"status": "failed", "rootCause": {"type": "iam"}, "summary": ["a", "b"], "stackDetails": {"s": 1}}]
        )

        verdict = poller.poll("dep-1")

        assert verdict.status == "failed"
        assert verdict.synthesized is False
        assert verdict.root_cause == '{"type": "iam"}'
        assert verdict.summary == '["a", "b"]'
        assert verdict.stack_details == {"s": 1}
        mock_time.sleep.assert_not_called()

    @pytest.mark.parametrize("body", [None, ["success"], "success"])
    def test_non_object_body_consumes_an_attempt(self, mock_time, body):
        poller, api = make_poller([body, {"status": "success"}], max_attempts=3)

        verdict = poller.poll("dep-1")

        assert verdict.status == "success"
        assert api.get_deployment_analysis.call_count == 2
        mock_time.sleep.assert_called_once_with(60)

    def test_non_object_body_on_last_attempt_fails(self, mock_time):
        poller, _ = make_poller([{"status": "deploying"}, None], max_attempts=2)

        verdict = poller.poll("dep-1")

        assert verdict.status == "failed"
        assert verdict.synthesized is True
        assert "unexpected analysis response" in verdict.root_cause
