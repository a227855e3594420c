"""Variable threading between test steps.

Values captured from one response are substituted into later requests through
``${name}`` placeholders. Unknown placeholders are left verbatim and a missing
extraction path yields an unset variable; neither raises.
"""

import json
import re
from typing import Any, Dict, Mapping, Optional

PLACEHOLDER_PATTERN = re.compile(r"\$\{(\w+)\}")

_ABSENT = object()


def to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class VariableStore:
    """Run-scoped mapping of captured values, shared by every test of one execution."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def unset(self, name: str) -> None:
        self._values.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def substitute(self, value: Any) -> Any:
        return substitute(value, self)

    def capture(self, name: str, body: Any, path: str) -> bool:
        """Store the value at ``path`` in ``body``; unset ``name`` when the path is absent.

        Returns True when a value was captured.
        """
        found = _lookup(body, path)
        if found is _ABSENT:
            self.unset(name)
            return False
        self.set(name, found)
        return True


def substitute(value: Any, variables: VariableStore) -> Any:
    """Return a copy of ``value`` with ``${name}`` placeholders resolved recursively."""
    if isinstance(value, str):

        def _replace(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name in variables:
                return to_text(variables.get(name))
            return match.group(0)

        return PLACEHOLDER_PATTERN.sub(_replace, value)
    if isinstance(value, Mapping):
        return {key: substitute(item, variables) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [substitute(item, variables) for item in value]
    return value


def _lookup(body: Any, path: str) -> Any:
    current = body
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _ABSENT
        current = current[part]
    return current


def extract_value(body: Any, path: str) -> Optional[Any]:
    """Walk a dot-separated ``path`` (e.g. ``data.id``) through nested mappings.

    Returns None when a component is missing or the current value is not a mapping.
    """
    found = _lookup(body, path)
    return None if found is _ABSENT else found
