"""Unit tests for the collaborator API client."""

import json

import httpx
import pytest

from sdlc_orchestrator.clients.api import ApiClient
from sdlc_orchestrator.errors import CollaboratorError


def make_client(handler):
    return ApiClient("http://collab", transport=httpx.MockTransport(handler))


class TestTriggers:
    def test_trigger_deploy_posts_payload(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"sessionId": "dep-1"})

        with make_client(handler) as api:
            session_id = api.trigger_deploy("https://git/repo", "main", "infra/app")

        assert session_id == "dep-1"
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/deploy"
        assert json.loads(seen[0].content) == {
            "repository": "https://git/repo",
            "branch": "main",
            "projectRoot": "infra/app",
        }

    def test_trigger_deploy_omits_empty_project_root(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"sessionId": "dep-1"})

        make_client(handler).trigger_deploy("repo", "main", "")

        assert "projectRoot" not in seen[0]

    def test_trigger_fix_sends_context(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202, json={"sessionId": "fix-1"})

        api = make_client(handler)
        session_id = api.trigger_fix(
            "repo", "main", "missing handler", custom_root_folder="app", stack_details={"StackName": "s"}
        )

        assert session_id == "fix-1"
        assert seen[0].url.path == "/fix"
        assert json.loads(seen[0].content) == {
            "repository": "repo",
            "branch": "main",
            "customRootFolder": "app",
            "fixInstructions": "missing handler",
            "stackDetails": {"StackName": "s"},
        }

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="boom"),
            httpx.Response(200, json={"other": "x"}),
            httpx.Response(200, text="not json"),
        ],
    )
    def test_trigger_failures_raise_collaborator_error(self, response):
        api = make_client(lambda request: response)

        with pytest.raises(CollaboratorError, match="Failed to trigger deployment"):
            api.trigger_deploy("repo", "main")

    def test_connection_error_raises_collaborator_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CollaboratorError, match="Failed to trigger fixer: refused"):
            make_client(handler).trigger_fix("repo", "main", "fix it")


class TestStatusReads:
    def test_get_deployment_analysis(self):
        api = make_client(
            lambda request: httpx.Response(200, json={"status": "deploying", "path": request.url.path})
        )

        assert api.get_deployment_analysis("dep-1") == {"status": "deploying", "path": "/analyze/dep-1"}

    def test_get_fixer_status(self):
        api = make_client(
            lambda request: httpx.Response(200, json={"status": "working", "path": request.url.path})
        )

        assert api.get_fixer_status("fix-1")["path"] == "/status/fix-1"

    def test_http_errors_propagate(self):
        api = make_client(lambda request: httpx.Response(503))

        with pytest.raises(httpx.HTTPStatusError):
            api.get_deployment_analysis("dep-1")
        with pytest.raises(httpx.HTTPStatusError):
            api.get_fixer_status("fix-1")


class TestGenerateTestPlan:
    def test_returns_parsed_plan(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "tests": [
                        {
                            "name": "health",
                            "steps": [{"endpoint": "/health", "method": "get", "expectedStatus": 200}],
                        }
                    ]
                },
            )

        plan = make_client(handler).generate_test_plan("repo", "main", None, {"apiUrl": "https://x"})

        assert seen[0] == {"repository": "repo", "branch": "main", "stackDetails": {"apiUrl": "https://x"}}
        assert len(plan.tests) == 1
        assert plan.tests[0].steps[0].method.value == "GET"

    def test_http_error_propagates(self):
        api = make_client(lambda request: httpx.Response(500))

        with pytest.raises(httpx.HTTPStatusError):
            api.generate_test_plan("repo", "main")
