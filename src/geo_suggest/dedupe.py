"""
Filtering of suggestions against tags already applied to a file.
"""

from collections.abc import Iterable, Sequence
from typing import Any


def suggestion_key(candidate: Any) -> str:
    """
    Identifier a suggestion is compared by.

    Categories compare by name, subjects by entity id. Accepts model objects
    and plain dicts.
    """
    if isinstance(candidate, dict):
        key = candidate.get("name", candidate.get("id"))
    else:
        key = getattr(candidate, "name", None) or getattr(candidate, "id", None)
    if key is None:
        raise TypeError(f"Suggestion has neither a name nor an id: {candidate!r}")
    return key


def filter_new(candidates: Sequence[Any], existing: Iterable[str]) -> list[Any]:
    """Drop candidates already in existing, preserving order."""
    existing = set(existing)
    return [c for c in candidates if suggestion_key(c) not in existing]
