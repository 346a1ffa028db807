"""Identity map and fetch cache for log documents.

A ``DocumentRegistry`` keeps one canonical ``DocumentReference`` per
container and one ``SheetData`` per document, and remembers which
container owns each document so that row-update code can later touch
the right container without asking the backend again.

The registry is the only mutable state shared between concurrent loads.
A single lock guards its maps; backend calls run outside the lock, so
two threads missing the cache at once may both fetch and the last
writer wins.
"""

from __future__ import annotations

import logging
import threading

from streaks.backend import Backend
from streaks.logging import EventType, emit_info
from streaks.models import DocumentReference, SheetData


class DocumentRegistry:
    """Caches document lookups for one backend.

    Args:
        backend: The document store.
        cache_sheet_data: When False, ``load_sheet_data`` always hits
            the backend (document metadata and container mappings are
            still cached).
    """

    def __init__(self, backend: Backend, *, cache_sheet_data: bool = True) -> None:
        self.backend = backend
        self.cache_sheet_data = cache_sheet_data
        self._lock = threading.Lock()
        self._container_by_document: dict[str, str] = {}
        self._document_by_container: dict[str, DocumentReference] = {}
        self._sheets: dict[str, SheetData] = {}

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def record_container_mapping(self, document_id: str, container_id: str) -> None:
        with self._lock:
            self._container_by_document[document_id] = container_id

    def lookup_container(self, document_id: str) -> str | None:
        """Return the container owning *document_id*, or None if never seen."""
        with self._lock:
            return self._container_by_document.get(document_id)

    def resolve_log_document(self, container_id: str) -> DocumentReference:
        """Return the log document of *container_id*.

        The document -> container mapping is recorded before this returns,
        i.e. before any content fetch.

        Raises:
            NotFoundError: If the container holds no log document.
            BackendError: If the document metadata cannot be read.
        """
        with self._lock:
            doc = self._document_by_container.get(container_id)
        if doc is None:
            doc = self.backend.get_log_file_spreadsheet_id(container_id)
            with self._lock:
                self._document_by_container[container_id] = doc
        self.record_container_mapping(doc.id, container_id)
        return doc

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def load_sheet_data(self, document_id: str) -> SheetData:
        """Return the cell grid of *document_id*, fetching on a cache miss.

        Failed fetches are not cached.

        Raises:
            BackendError: If the backend cannot deliver the content.
        """
        if self.cache_sheet_data:
            with self._lock:
                cached = self._sheets.get(document_id)
            if cached is not None:
                return cached

        data = self.backend.load_sheet_data(document_id)
        if self.cache_sheet_data:
            with self._lock:
                self._sheets[document_id] = data
        return data

    def invalidate(self, document_id: str) -> None:
        """Drop cached metadata and content for *document_id*.

        The container mapping is kept so touches keep working.
        """
        with self._lock:
            self._sheets.pop(document_id, None)
            container_id = self._container_by_document.get(document_id)
            if container_id is not None:
                self._document_by_container.pop(container_id, None)
        emit_info(
            EventType.cache_invalidated,
            f"Cache invalidated for document {document_id}",
            {"document_id": document_id, "container_id": container_id},
        )

    def clear(self) -> None:
        """Forget everything, including container mappings."""
        with self._lock:
            self._container_by_document.clear()
            self._document_by_container.clear()
            self._sheets.clear()

    # ------------------------------------------------------------------
    # Touch propagation
    # ------------------------------------------------------------------

    def touch_container_for(self, document_id: str) -> bool:
        """Bump the modification time of the container owning *document_id*.

        Returns:
            False when the owner is unknown or the backend cannot touch.
        """
        container_id = self.lookup_container(document_id)
        if container_id is None:
            logging.getLogger(__name__).debug(
                "No container recorded for document %s; touch skipped", document_id
            )
            return False
        touch = getattr(self.backend, "touch_container", None)
        if touch is None:
            return False
        touch(container_id)
        emit_info(
            EventType.container_touched,
            f"Touched container {container_id}",
            {"document_id": document_id, "container_id": container_id},
        )
        return True


_default_registry: DocumentRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry(backend: Backend | None = None) -> DocumentRegistry:
    """Return the process-wide registry, creating it on first use.

    Raises:
        ValueError: If no registry exists yet and no *backend* is given.
    """
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            if backend is None:
                raise ValueError("No default registry configured; pass a backend")
            _default_registry = DocumentRegistry(backend)
        return _default_registry


def reset_default_registry() -> None:
    """Discard the process-wide registry (used on teardown and in tests)."""
    global _default_registry
    with _default_lock:
        _default_registry = None
