"""Helpers for deployed stack details and run preconditions."""

import re
import uuid
from pathlib import PurePosixPath
from typing import Any, Mapping, Optional

from sdlc_orchestrator.constants import BASE_URL_KEYS
from sdlc_orchestrator.errors import ConfigurationError

ROOT_FOLDER_PATTERN = re.compile(r"^[a-zA-Z0-9_\-/]+$")


def generate_session_id() -> str:
    return str(uuid.uuid4())


def extract_base_url(stack_details: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Find the deployed API's base URL in stack details.

    Fixed-priority lookup: top-level keys, then a nested ``outputs`` mapping, then a
    CloudFormation-style ``Outputs`` list of ``{OutputKey, OutputValue}`` pairs.
    """
    if not isinstance(stack_details, Mapping):
        return None

    for key in BASE_URL_KEYS:
        value = stack_details.get(key)
        if isinstance(value, str) and value:
            return value

    outputs = stack_details.get("outputs")
    if isinstance(outputs, Mapping):
        for key in BASE_URL_KEYS:
            value = outputs.get(key)
            if isinstance(value, str) and value:
                return value

    output_list = stack_details.get("Outputs")
    if isinstance(output_list, list):
        for output in output_list:
            if not isinstance(output, Mapping):
                continue
            value = output.get("OutputValue")
            if output.get("OutputKey") in BASE_URL_KEYS and isinstance(value, str) and value:
                return value

    return None


def validate_root_folder(root_folder: Optional[str]) -> None:
    """Reject custom root folders that are absolute, escape the repo, or use odd characters."""
    if not root_folder:
        return
    if ".." in root_folder or PurePosixPath(root_folder).is_absolute():
        raise ConfigurationError(
            f"Invalid custom root folder '{root_folder}': must be a relative path without '..'"
        )
    if not ROOT_FOLDER_PATTERN.match(root_folder):
        raise ConfigurationError(
            f"Invalid custom root folder '{root_folder}': only letters, digits, '_', '-' and '/' are allowed"
        )
