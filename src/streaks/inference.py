"""Header and column-type inference over a raw row grid."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from streaks.models import HeaderDescriptor, InputType
from streaks.values import is_empty, parser_for

DEFAULT_SAMPLE_ROWS = 20

# Order matters: the first type that parses a majority of samples wins.
SNIFF_PRECEDENCE = (InputType.date, InputType.number, InputType.boolean)


def infer_headers(
    grid: Sequence[Sequence[Any]],
    declared_types: Mapping[str, InputType] | None = None,
    *,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
) -> list[HeaderDescriptor]:
    """Derive one header descriptor per column of *grid*.

    Declared metadata always wins over sniffing, so a type chosen when
    the project was created survives later changes in row content.

    Args:
        grid: Raw rows; row 0 holds the header names.
        declared_types: Column name to declared input type.
        sample_rows: Number of data rows (after the header) to sniff.

    Returns:
        Header descriptors in column order.  Empty when the grid has no
        header row.
    """
    if not grid:
        return []

    declared_types = declared_types or {}
    samples_window = grid[1:1 + max(sample_rows, 0)]
    headers: list[HeaderDescriptor] = []

    for index, raw_name in enumerate(grid[0]):
        name = _header_name(raw_name)
        declared = declared_types.get(name)
        if declared is not None:
            headers.append(HeaderDescriptor(
                name=name,
                value_type=declared,
                column_index=index,
                declared=True,
            ))
            continue

        samples = [
            row[index]
            for row in samples_window
            if index < len(row) and not is_empty(row[index])
        ]
        headers.append(HeaderDescriptor(
            name=name,
            value_type=sniff_column_type(samples),
            column_index=index,
        ))

    return headers


def sniff_column_type(samples: Sequence[Any]) -> InputType:
    """Pick the input type matching a strict majority of non-empty samples.

    Exactly half is not a majority, so ties fall through to ``text``.
    """
    if not samples:
        return InputType.text

    for candidate in SNIFF_PRECEDENCE:
        parse = parser_for(candidate)
        matched = sum(1 for value in samples if parse(value) is not None)
        if matched * 2 > len(samples):
            return candidate
    return InputType.text


def _header_name(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip()
