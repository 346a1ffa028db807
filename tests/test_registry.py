"""Tests for the document identity map and fetch cache."""

from __future__ import annotations

import threading

import pytest

from streaks.backend import InMemoryBackend
from streaks.errors import BackendError, NotFoundError
from streaks.models import DocumentReference, SheetData
from streaks.registry import DocumentRegistry, get_default_registry, reset_default_registry

GRID = [["Date", "Mood"], ["2024-01-01", "Good"]]


@pytest.fixture
def backend() -> InMemoryBackend:
    b = InMemoryBackend()
    b.add_project("folder-1", GRID, document_id="sheet-1")
    return b


class TestIdentity:
    def test_resolve_records_mapping(self, registry: DocumentRegistry) -> None:
        doc = registry.resolve_log_document("folder-1")
        assert doc.id == "sheet-1"
        assert registry.lookup_container("sheet-1") == "folder-1"

    def test_lookup_unknown(self, registry: DocumentRegistry) -> None:
        assert registry.lookup_container("nope") is None

    def test_last_writer_wins(self, registry: DocumentRegistry) -> None:
        registry.record_container_mapping("sheet-9", "a")
        registry.record_container_mapping("sheet-9", "b")
        assert registry.lookup_container("sheet-9") == "b"

    def test_not_found_propagates(self, registry: DocumentRegistry) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            registry.resolve_log_document("missing")
        assert exc_info.value.container_id == "missing"

    def test_resolution_is_cached(self, registry: DocumentRegistry, backend: InMemoryBackend) -> None:
        first = registry.resolve_log_document("folder-1")
        second = registry.resolve_log_document("folder-1")
        assert first is second
        assert backend.calls["get_log_file_spreadsheet_id"] == 1


class TestContentCache:
    def test_sheet_data_is_cached(self, registry: DocumentRegistry, backend: InMemoryBackend) -> None:
        a = registry.load_sheet_data("sheet-1")
        b = registry.load_sheet_data("sheet-1")
        assert a is b
        assert backend.calls["load_sheet_data"] == 1

    def test_cache_can_be_disabled(self, backend: InMemoryBackend) -> None:
        registry = DocumentRegistry(backend, cache_sheet_data=False)
        registry.load_sheet_data("sheet-1")
        registry.load_sheet_data("sheet-1")
        assert backend.calls["load_sheet_data"] == 2

    def test_failed_fetch_is_not_cached(self, registry: DocumentRegistry, backend: InMemoryBackend) -> None:
        backend.failing_documents.add("sheet-1")
        with pytest.raises(BackendError):
            registry.load_sheet_data("sheet-1")
        backend.failing_documents.clear()
        assert registry.load_sheet_data("sheet-1").values[0] == ("Date", "Mood")

    def test_invalidate_forces_refetch_but_keeps_mapping(
        self, registry: DocumentRegistry, backend: InMemoryBackend
    ) -> None:
        registry.resolve_log_document("folder-1")
        registry.load_sheet_data("sheet-1")
        backend.set_grid("sheet-1", [["Date"], ["2024-02-02"]])

        registry.invalidate("sheet-1")

        assert registry.lookup_container("sheet-1") == "folder-1"
        assert registry.load_sheet_data("sheet-1").values == (("Date",), ("2024-02-02",))
        registry.resolve_log_document("folder-1")
        assert backend.calls["get_log_file_spreadsheet_id"] == 2
        assert backend.calls["load_sheet_data"] == 2

    def test_clear(self, registry: DocumentRegistry) -> None:
        registry.resolve_log_document("folder-1")
        registry.clear()
        assert registry.lookup_container("sheet-1") is None


class TestTouch:
    def test_touch_known_document(self, registry: DocumentRegistry, backend: InMemoryBackend) -> None:
        registry.resolve_log_document("folder-1")
        assert registry.touch_container_for("sheet-1") is True
        assert backend.touched == ["folder-1"]

    def test_touch_unknown_document(self, registry: DocumentRegistry, backend: InMemoryBackend) -> None:
        assert registry.touch_container_for("sheet-1") is False
        assert backend.touched == []

    def test_backend_without_touch_support(self) -> None:
        class ReadOnlyBackend:
            def get_log_file_spreadsheet_id(self, container_id: str) -> DocumentReference:
                return DocumentReference(id="doc", container_id=container_id)

            def load_sheet_data(self, document_id: str) -> SheetData:
                return SheetData(values=(("Date",),))

        registry = DocumentRegistry(ReadOnlyBackend())
        registry.resolve_log_document("c")
        assert registry.touch_container_for("doc") is False


class TestConcurrency:
    def test_parallel_mapping_writes(self, registry: DocumentRegistry) -> None:
        def worker(n: int) -> None:
            for i in range(200):
                registry.record_container_mapping(f"doc-{n}-{i}", f"folder-{n}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.lookup_container("doc-7-199") == "folder-7"
        assert registry.lookup_container("doc-0-0") == "folder-0"


class TestDefaultRegistry:
    def test_requires_backend_on_first_use(self) -> None:
        with pytest.raises(ValueError):
            get_default_registry()

    def test_created_once(self, backend: InMemoryBackend) -> None:
        first = get_default_registry(backend)
        assert get_default_registry() is first
        reset_default_registry()
        assert get_default_registry(backend) is not first
