"""Tests for structural validation."""

from __future__ import annotations

from streaks.models import HeaderDescriptor, InputType
from streaks.validation import find_duplicate_headers, is_structure_valid


def _h(name: str, value_type: InputType, index: int) -> HeaderDescriptor:
    return HeaderDescriptor(name=name, value_type=value_type, column_index=index)


class TestIsStructureValid:
    def test_empty_is_invalid(self) -> None:
        assert is_structure_valid([]) is False

    def test_needs_a_date_column(self) -> None:
        assert is_structure_valid([_h("Mood", InputType.text, 0)]) is False

    def test_date_column_anywhere(self) -> None:
        headers = [
            _h("Mood", InputType.text, 0),
            _h("Score", InputType.number, 1),
            _h("When", InputType.date, 2),
        ]
        assert is_structure_valid(headers) is True

    def test_duplicates_do_not_affect_validity(self) -> None:
        headers = [_h("Date", InputType.date, 0), _h("Date", InputType.date, 1)]
        assert is_structure_valid(headers) is True


class TestFindDuplicateHeaders:
    def test_none(self) -> None:
        assert find_duplicate_headers([_h("A", InputType.text, 0), _h("B", InputType.text, 1)]) == []

    def test_reports_each_name_once(self) -> None:
        headers = [
            _h("B", InputType.text, 0),
            _h("A", InputType.text, 1),
            _h("B", InputType.text, 2),
            _h("A", InputType.text, 3),
            _h("B", InputType.text, 4),
        ]
        assert find_duplicate_headers(headers) == ["B", "A"]
