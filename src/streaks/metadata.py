"""Column-type metadata persisted on the log document.

When a project is created, each column's input type is written to the
document's key/value properties as ``column_type:<column name>``.  This
module reads those properties back into a ``{name: InputType}`` map.
"""

from __future__ import annotations

from collections.abc import Mapping

from streaks.models import InputType

COLUMN_TYPE_PREFIX = "column_type:"


def extract_column_types(properties: Mapping[str, str] | None) -> dict[str, InputType]:
    """Reconstruct declared column types from document properties.

    Unknown keys, empty column names and unrecognised type values are
    skipped; a column without metadata is left to content sniffing.

    Args:
        properties: Persisted document properties (may be ``None`` for
            documents created before metadata existed).

    Returns:
        Dict mapping column names to their declared input types.
    """
    if not properties:
        return {}

    types: dict[str, InputType] = {}
    for key, raw in properties.items():
        if not isinstance(key, str) or not key.startswith(COLUMN_TYPE_PREFIX):
            continue
        name = key[len(COLUMN_TYPE_PREFIX):].strip()
        if not name or not isinstance(raw, str):
            continue
        try:
            types[name] = InputType(raw.strip().lower())
        except ValueError:
            continue
    return types


def column_type_properties(types: Mapping[str, InputType]) -> dict[str, str]:
    """Build the document properties that persist *types*."""
    return {
        f"{COLUMN_TYPE_PREFIX}{name}": InputType(value_type).value
        for name, value_type in types.items()
    }
