"""Tests for cell value parsers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from streaks.models import InputType, InvalidValue
from streaks.values import coerce_cell, is_empty, parse_boolean, parse_date, parse_number


class TestIsEmpty:
    def test_none_and_blank(self) -> None:
        assert is_empty(None)
        assert is_empty("")
        assert is_empty("   ")

    def test_values_are_not_empty(self) -> None:
        assert not is_empty("x")
        assert not is_empty(0)
        assert not is_empty(False)


class TestParseDate:
    def test_iso_date(self) -> None:
        assert parse_date("2024-01-01") == datetime(2024, 1, 1)

    def test_iso_datetime(self) -> None:
        assert parse_date("2024-01-01 13:05:10") == datetime(2024, 1, 1, 13, 5, 10)
        assert parse_date("2024-01-01T13:05") == datetime(2024, 1, 1, 13, 5)

    def test_utc_suffix_becomes_naive_utc(self) -> None:
        assert parse_date("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, 0)

    def test_offset_is_converted_to_utc(self) -> None:
        assert parse_date("2024-01-01T10:00:00+02:00") == datetime(2024, 1, 1, 8, 0)

    def test_slash_formats(self) -> None:
        assert parse_date("1/31/2024") == datetime(2024, 1, 31)
        assert parse_date("01/31/2024 13:05:00") == datetime(2024, 1, 31, 13, 5)

    def test_date_objects(self) -> None:
        assert parse_date(date(2024, 2, 3)) == datetime(2024, 2, 3)
        aware = datetime(2024, 2, 3, 12, tzinfo=timezone(timedelta(hours=1)))
        assert parse_date(aware) == datetime(2024, 2, 3, 11)

    def test_rejects_non_dates(self) -> None:
        assert parse_date("2024-13-01") is None
        assert parse_date("tomorrow") is None
        assert parse_date("20") is None
        assert parse_date(45000) is None
        assert parse_date(None) is None


class TestParseNumber:
    def test_strings(self) -> None:
        assert parse_number("1") == 1.0
        assert parse_number(" -2.5 ") == -2.5
        assert parse_number("1e3") == 1000.0
        assert parse_number(".5") == 0.5

    def test_native_numbers(self) -> None:
        assert parse_number(3) == 3.0
        assert parse_number(1.25) == 1.25

    def test_rejects(self) -> None:
        assert parse_number("nan") is None
        assert parse_number("inf") is None
        assert parse_number(float("inf")) is None
        assert parse_number("1,000") is None
        assert parse_number("abc") is None
        assert parse_number(True) is None


class TestParseBoolean:
    def test_accepted_spellings(self) -> None:
        assert parse_boolean("TRUE") is True
        assert parse_boolean("false") is False
        assert parse_boolean("Yes") is True
        assert parse_boolean(" no ") is False
        assert parse_boolean(True) is True

    def test_rejects(self) -> None:
        assert parse_boolean("1") is None
        assert parse_boolean("maybe") is None
        assert parse_boolean(0) is None


class TestCoerceCell:
    def test_empty_is_none(self) -> None:
        assert coerce_cell("", InputType.date) is None
        assert coerce_cell(None, InputType.text) is None

    def test_text_passthrough(self) -> None:
        assert coerce_cell("# Title", InputType.markdown) == "# Title"
        assert coerce_cell(12, InputType.text) == "12"

    def test_parsed(self) -> None:
        assert coerce_cell("2024-01-01", InputType.date) == datetime(2024, 1, 1)
        assert coerce_cell("4", InputType.number) == 4.0
        assert coerce_cell("TRUE", InputType.boolean) is True

    def test_unparseable_is_sentinel(self) -> None:
        result = coerce_cell("yesterday", InputType.date)
        assert isinstance(result, InvalidValue)
        assert result.raw == "yesterday"
