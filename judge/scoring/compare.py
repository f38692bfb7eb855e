"""Normalization and comparison of produced vs expected outputs."""

import json
from typing import Any


def normalize_value(value: Any) -> Any:
    """Decode JSON-looking strings; leave everything else as is."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def canonical(value: Any) -> str:
    """Canonical JSON text used for comparisons and display."""
    try:
        return json.dumps(normalize_value(value), sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return repr(value)


def outputs_match(actual: Any, expected: Any) -> bool:
    return canonical(actual) == canonical(expected)
