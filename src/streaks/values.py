"""Cell value parsers shared by type sniffing and history building.

Each ``parse_*`` function returns ``None`` when the value does not parse
under that type.  ``coerce_cell`` applies a column type to a raw cell
and maps failures to ``InvalidValue``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timezone
from typing import Any

from streaks.models import InputType, InvalidValue

_ISO_DATE_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?"
    r"(?:Z|[+-]\d{2}:?\d{2})?$"
)

# Spreadsheet UIs in US locale render dates like 1/31/2024 13:05:00
_SLASH_DATE_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

TRUE_STRINGS = frozenset({"true", "yes"})
FALSE_STRINGS = frozenset({"false", "no"})


def is_empty(value: Any) -> bool:
    """True for ``None`` and blank strings."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def parse_date(value: Any) -> datetime | None:
    """Parse a cell into a naive ``datetime``.

    Accepts ``datetime``/``date`` objects, ISO-8601 strings (``Z`` or
    offset suffixes are converted to naive UTC) and ``M/D/YYYY``
    strings with an optional time.  Numbers are never treated as dates.
    """
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str):
        return None

    text = value.strip()
    if _ISO_DATE_RE.match(text):
        try:
            return _naive_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return None

    if "/" in text:
        for fmt in _SLASH_DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_number(value: Any) -> float | None:
    """Parse a cell into a finite ``float``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _NUMBER_RE.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


def parse_boolean(value: Any) -> bool | None:
    """Parse ``TRUE``/``FALSE``/``yes``/``no`` (any case) into a ``bool``."""
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    return None


_PARSERS = {
    InputType.date: parse_date,
    InputType.number: parse_number,
    InputType.boolean: parse_boolean,
}


def parser_for(input_type: InputType):
    """Return the parser for *input_type*, or ``None`` for text-like types."""
    return _PARSERS.get(input_type)


def coerce_cell(value: Any, input_type: InputType) -> Any:
    """Reinterpret a raw cell according to its column type.

    Returns:
        ``None`` for empty cells, the parsed value on success, the raw
        string for text and markdown columns, or ``InvalidValue`` when a
        non-empty cell fails to parse.
    """
    if is_empty(value):
        return None
    parser = parser_for(input_type)
    if parser is None:
        return value if isinstance(value, str) else str(value)
    parsed = parser(value)
    if parsed is None:
        return InvalidValue(raw=value)
    return parsed
