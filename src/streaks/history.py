"""Typed history of log entries for charts and streak widgets.

Each data row becomes one ``HistoryEntry`` whose cells are reinterpreted
through the column's input type.  Cells that do not parse are kept as
``InvalidValue`` sentinels rather than dropping the row; such rows
simply do not count towards day grouping or streaks when it is their
date cell that failed.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any

import polars as pl
from pydantic import BaseModel, ConfigDict

from streaks.models import HeaderDescriptor, InputType, InvalidValue
from streaks.values import coerce_cell

_FRAME_DTYPES = {
    InputType.date: pl.Datetime,
    InputType.number: pl.Float64,
    InputType.boolean: pl.Boolean,
    InputType.text: pl.Utf8,
    InputType.markdown: pl.Utf8,
}


class HistoryEntry(BaseModel):
    """One log row with typed values, one per header."""

    model_config = ConfigDict(frozen=True)

    row_index: int
    values: tuple[Any, ...]
    logged_at: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return not any(isinstance(v, InvalidValue) for v in self.values)


class ProjectHistory(BaseModel):
    """Ordered log entries, as stored (not re-sorted)."""

    model_config = ConfigDict(frozen=True)

    headers: tuple[HeaderDescriptor, ...] = ()
    entries: tuple[HistoryEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def column(self, name: str) -> list[Any]:
        """Return the typed values of the first column called *name*.

        Raises:
            KeyError: If no header has that name.
        """
        for pos, h in enumerate(self.headers):
            if h.name == name:
                return [e.values[pos] for e in self.entries]
        raise KeyError(f"Unknown column: {name!r}")

    def entries_by_day(self) -> dict[date, list[HistoryEntry]]:
        """Group entries by calendar day, oldest day first.

        Entries whose date is empty or invalid are left out.
        """
        groups: dict[date, list[HistoryEntry]] = {}
        for entry in self.entries:
            if entry.logged_at is None:
                continue
            groups.setdefault(entry.logged_at.date(), []).append(entry)
        return dict(sorted(groups.items()))

    def longest_streak(self) -> int:
        """Length of the longest run of consecutive days with an entry."""
        longest = 0
        run = 0
        previous: date | None = None
        for day in self.entries_by_day():
            if previous is not None and day - previous == timedelta(days=1):
                run += 1
            else:
                run = 1
            longest = max(longest, run)
            previous = day
        return longest

    def current_streak(self, today: date | None = None) -> int:
        """Consecutive logged days ending today.

        A streak that ended yesterday is still current: today may not be
        logged yet.  Entry timestamps are naive UTC, so *today* defaults to
        the current UTC date.
        """
        today = today or datetime.now(timezone.utc).date()
        days = set(self.entries_by_day())
        cursor = today if today in days else today - timedelta(days=1)
        streak = 0
        while cursor in days:
            streak += 1
            cursor -= timedelta(days=1)
        return streak

    def to_frame(self) -> pl.DataFrame:
        """Materialize the history as a typed Polars DataFrame.

        Invalid cells become nulls.  Duplicate header names get a
        ``_<column_index>`` suffix so frame columns stay unique.
        """
        names = [h.name for h in self.headers]
        series: list[pl.Series] = []
        for pos, h in enumerate(self.headers):
            col_name = h.name
            if names.count(h.name) > 1:
                col_name = f"{h.name}_{h.column_index}"
            values = [
                None if isinstance(e.values[pos], InvalidValue)
                else e.values[pos]
                for e in self.entries
            ]
            series.append(pl.Series(col_name, values, dtype=_FRAME_DTYPES[h.value_type]))
        return pl.DataFrame(series)


def build_history(
    data_rows: Sequence[Sequence[Any]],
    headers: Sequence[HeaderDescriptor],
) -> ProjectHistory:
    """Build a history from data rows (header row excluded).

    Args:
        data_rows: Raw data rows in stored order.
        headers: Header descriptors from ``infer_headers``.

    Returns:
        A ``ProjectHistory`` with one entry per data row.  Short rows are
        padded with ``None``; cells beyond the last header are ignored.
    """
    date_pos = next(
        (pos for pos, h in enumerate(headers) if h.value_type == InputType.date),
        None,
    )

    entries: list[HistoryEntry] = []
    for row_index, row in enumerate(data_rows):
        values = tuple(
            coerce_cell(row[h.column_index] if h.column_index < len(row) else None, h.value_type)
            for h in headers
        )
        entry_date = None
        if date_pos is not None and isinstance(values[date_pos], datetime):
            entry_date = values[date_pos]
        entries.append(HistoryEntry(row_index=row_index, values=values, logged_at=entry_date))

    return ProjectHistory(headers=tuple(headers), entries=tuple(entries))
