"""Layered configuration: hardcoded defaults < JSON file < environment variables.

Empty environment variables are treated as unset. The loaded config is a flat dict
keyed by environment variable name.
"""

import json
import os
from pathlib import Path
from typing import Mapping, Optional, Union

from sdlc_orchestrator import constants
from sdlc_orchestrator.errors import ConfigurationError

VALID_TOP_LEVEL_KEYS = frozenset({
    "api_base_url", "status_dir", "log_level", "limits", "deploy", "fixer", "http", "tests",
})
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# (json_dotted_path, env_var_name, hardcoded_default, value_type)
_CONFIG_KEYS: list[tuple[str, str, object, type]] = [
    ("api_base_url",                    "API_BASE_URL",                  constants.API_BASE_URL,                  str),
    ("status_dir",                      "STATUS_DIR",                    str(constants.STATUS_DIR),               str),
    ("log_level",                       "LOG_LEVEL",                     constants.LOG_LEVEL,                     str),
    ("limits.run_timeout_seconds",      "RUN_TIMEOUT_SECONDS",           constants.RUN_TIMEOUT_SECONDS,           int),
    ("limits.max_attempts",             "MAX_ATTEMPTS",                  constants.MAX_ATTEMPTS,                  int),
    ("deploy.poll_max_attempts",        "DEPLOY_POLL_MAX_ATTEMPTS",      constants.DEPLOY_POLL_MAX_ATTEMPTS,      int),
    ("deploy.poll_interval_seconds",    "DEPLOY_POLL_INTERVAL_SECONDS",  constants.DEPLOY_POLL_INTERVAL_SECONDS,  int),
    ("fixer.poll_interval_seconds",     "FIXER_POLL_INTERVAL_SECONDS",   constants.FIXER_POLL_INTERVAL_SECONDS,   int),
    ("fixer.timeout_seconds",           "FIXER_TIMEOUT_SECONDS",         constants.FIXER_TIMEOUT_SECONDS,         int),
    ("http.timeout_seconds",            "HTTP_TIMEOUT_SECONDS",          constants.HTTP_TIMEOUT_SECONDS,          int),
    ("tests.request_timeout_seconds",   "TEST_REQUEST_TIMEOUT_SECONDS",  constants.TEST_REQUEST_TIMEOUT_SECONDS,  int),
]

# Settings that must be >= 1; the rest of the int settings must be >= 0
_POSITIVE_KEYS = frozenset({
    "DEPLOY_POLL_MAX_ATTEMPTS", "HTTP_TIMEOUT_SECONDS", "TEST_REQUEST_TIMEOUT_SECONDS",
})


def _get_json_value(data: dict, dotted_key: str) -> object | None:
    """Retrieve a value from nested JSON using dotted key (e.g., 'limits.max_attempts')."""
    obj: object = data
    for part in dotted_key.split("."):
        if not isinstance(obj, dict) or part not in obj:
            return None
        obj = obj[part]
    return obj


def _coerce(value: object, typ: type, source: str) -> object:
    if typ is int:
        if isinstance(value, bool):
            raise ConfigurationError(f"{source}: expected an integer, got {value!r}")
        try:
            return int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ConfigurationError(f"{source}: expected an integer, got {value!r}")
    return str(value)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict:
    """Load config from an optional JSON file plus env vars plus defaults.

    Raises ConfigurationError for a missing or malformed file, unknown top-level
    keys, and values of the wrong type or range.
    """
    if environ is None:
        environ = os.environ

    json_data: dict = {}
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {config_path}")
        try:
            json_data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}")
        if not isinstance(json_data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a JSON object")

        unknown = set(json_data.keys()) - VALID_TOP_LEVEL_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    cfg: dict = {}
    for json_path, env_var, default, typ in _CONFIG_KEYS:
        value = default
        json_val = _get_json_value(json_data, json_path)
        if json_val is not None:
            value = _coerce(json_val, typ, json_path)
        env_val = environ.get(env_var)
        if env_val is not None and env_val != "":
            value = _coerce(env_val, typ, env_var)
        cfg[env_var] = value

    for _, env_var, _, typ in _CONFIG_KEYS:
        if typ is not int:
            continue
        minimum = 1 if env_var in _POSITIVE_KEYS else 0
        if cfg[env_var] < minimum:
            raise ConfigurationError(f"{env_var} must be >= {minimum}, got {cfg[env_var]}")

    cfg["LOG_LEVEL"] = cfg["LOG_LEVEL"].upper()
    if cfg["LOG_LEVEL"] not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid LOG_LEVEL '{cfg['LOG_LEVEL']}'. Valid: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )
    if not cfg["API_BASE_URL"].strip():
        raise ConfigurationError("API_BASE_URL is empty")

    return cfg
