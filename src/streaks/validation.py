"""Structural checks on inferred headers.

A failed check never raises: the loader turns it into a
``should_redirect_to_settings`` flag so the UI can still render what it
has while sending the user to fix the structure.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from streaks.models import HeaderDescriptor, InputType


def is_structure_valid(headers: Sequence[HeaderDescriptor]) -> bool:
    """Return True if the headers can back a log.

    A log needs a temporal axis, so at least one column must be a date.
    Duplicate names are not considered here.
    """
    return any(h.value_type == InputType.date for h in headers)


def find_duplicate_headers(headers: Sequence[HeaderDescriptor]) -> list[str]:
    """Return header names that occur more than once, in first-seen order."""
    counts = Counter(h.name for h in headers)
    seen: list[str] = []
    for h in headers:
        if counts[h.name] > 1 and h.name not in seen:
            seen.append(h.name)
    return seen
