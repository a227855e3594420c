"""Structural subset matching of response bodies."""

from typing import Any, Mapping, Sequence


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _scalar_equal(actual: Any, expected: Any) -> bool:
    # True == 1 in Python but not in JSON
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    return actual == expected


def matches_expected(actual: Any, expected: Any) -> bool:
    """Return True when ``actual`` structurally contains ``expected``.

    Every key of an expected mapping must be present in the actual mapping and match
    recursively; extra keys in ``actual`` are ignored. Expected arrays match index-wise
    against a prefix of the actual array. Scalars must be exactly equal.
    """
    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            return False
        for key, value in expected.items():
            if key not in actual:
                return False
            if not matches_expected(actual[key], value):
                return False
        return True

    if _is_sequence(expected):
        if not _is_sequence(actual) or len(actual) < len(expected):
            return False
        return all(matches_expected(a, e) for a, e in zip(actual, expected))

    return _scalar_equal(actual, expected)
