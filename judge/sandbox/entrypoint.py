"""Locate the callable a submission should be judged on."""

import re
from typing import Optional

from .errors import EntryPointNotFound

# Top-level function declarations only; nested helpers and methods are indented.
_DEF_PATTERN = re.compile(r"^(?:async\s+)?def\s+([A-Za-z_][A-Za-z0-9_]*)\s*\(", re.MULTILINE)


def find_entry_point(source_text: str) -> Optional[str]:
    """Return the name of the first top-level function declared in source_text."""
    match = _DEF_PATTERN.search(source_text or "")
    return match.group(1) if match else None


def resolve_entry_point(source_text: str, entry_point_name: Optional[str] = None) -> str:
    """
    Pick the entry point for a submission.

    An explicitly supplied name wins; it is checked against the loaded code
    later, since it may be bound by assignment rather than ``def``. Otherwise
    the first top-level ``def`` is used.

    Raises:
        EntryPointNotFound: no name was given and none could be inferred
    """
    if entry_point_name:
        if not entry_point_name.isidentifier():
            raise EntryPointNotFound(f"Invalid entry point name '{entry_point_name}'")
        return entry_point_name

    name = find_entry_point(source_text)
    if name is None:
        raise EntryPointNotFound("No function declaration found in submission")
    return name
