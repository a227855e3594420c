"""Unit tests for stack helpers."""

import uuid

import pytest

from sdlc_orchestrator.errors import ConfigurationError
from sdlc_orchestrator.utils.stack import (
    extract_base_url,
    generate_session_id,
    validate_root_folder,
)


class TestExtractBaseUrl:
    def test_top_level_key(self):
        assert extract_base_url({"apiUrl": "https://a", "url": "https://b"}) == "https://a"

    def test_key_priority_order(self):
        assert extract_base_url({"url": "https://b", "endpoint": "https://e"}) == "https://e"

    def test_nested_outputs_mapping(self):
        assert extract_base_url({"outputs": {"ApiGatewayUrl": "https://gw"}}) == "https://gw"

    def test_cloudformation_outputs_list(self):
        stack = {
            "Outputs": [
                {"OutputKey": "TableName", "OutputValue": "notes"},
                {"OutputKey": "ApiEndpoint", "OutputValue": "https://cf"},
            ]
        }
        assert extract_base_url(stack) == "https://cf"

    def test_top_level_wins_over_outputs(self):
        stack = {"baseUrl": "https://top", "outputs": {"apiUrl": "https://nested"}}
        assert extract_base_url(stack) == "https://top"

    @pytest.mark.parametrize(
        "stack",
        [None, "https://x", {}, {"apiUrl": ""}, {"apiUrl": 42}, {"Outputs": [{"OutputKey": "Other", "OutputValue": "x"}]}],
    )
    def test_nothing_found(self, stack):
        assert extract_base_url(stack) is None


class TestValidateRootFolder:
    @pytest.mark.parametrize("folder", [None, "", "app", "infra/app-1", "my_service/"])
    def test_valid(self, folder):
        validate_root_folder(folder)

    @pytest.mark.parametrize("folder", ["../secrets", "app/../..", "/etc", "app name", "app;rm", "app\\win"])
    def test_invalid(self, folder):
        with pytest.raises(ConfigurationError, match="Invalid custom root folder"):
            validate_root_folder(folder)


def test_generate_session_id_is_unique_uuid():
    first, second = generate_session_id(), generate_session_id()
    assert first != second
    assert uuid.UUID(first).version == 4
