"""Document store backends.

The loader only talks to a ``Backend``: something that can find the log
spreadsheet inside a project container and fetch its cell grid.  Two
implementations ship here:

- ``FileBackend`` -- a container is a directory holding ``log.csv`` and
  an optional ``log.yaml`` with document metadata.
- ``InMemoryBackend`` -- dict-backed, with call counters, for tests and
  embedding.
"""

from __future__ import annotations

import csv
import os
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import ValidationError

from streaks.errors import BackendError, NotFoundError
from streaks.models import Capabilities, DocumentReference, Owner, SheetData

LOG_FILENAME = "log.csv"
META_FILENAME = "log.yaml"

_SAFE_CONTAINER_RE = re.compile(r"^[A-Za-z0-9_\-.]+$")


@runtime_checkable
class Backend(Protocol):
    def get_log_file_spreadsheet_id(self, container_id: str) -> DocumentReference:
        """Return the log document in *container_id* or raise ``NotFoundError``."""
        ...

    def load_sheet_data(self, document_id: str) -> SheetData:
        """Return the document's cell grid or raise ``BackendError``."""
        ...


def _owners_from(raw: Any) -> tuple[Owner, ...]:
    if not raw:
        return ()
    return tuple(Owner(**o) if isinstance(o, Mapping) else Owner(name=str(o)) for o in raw)


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class FileBackend:
    """Projects stored as directories under *root*."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._paths: dict[str, Path] = {}

    def _container_dir(self, container_id: str) -> Path:
        if not _SAFE_CONTAINER_RE.match(container_id) or container_id in (".", ".."):
            raise NotFoundError(container_id, f"Invalid container id: {container_id!r}")
        return self.root / container_id

    def list_containers(self) -> list[str]:
        """Return ids of containers that hold a log file, sorted."""
        if not self.root.is_dir():
            return []
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_dir() and (p / LOG_FILENAME).is_file()
        )

    def get_log_file_spreadsheet_id(self, container_id: str) -> DocumentReference:
        container = self._container_dir(container_id)
        log_path = container / LOG_FILENAME
        if not log_path.is_file():
            raise NotFoundError(container_id)

        meta: dict[str, Any] = {}
        meta_path = container / META_FILENAME
        if meta_path.exists():
            try:
                meta = yaml.safe_load(meta_path.read_text()) or {}
            except (OSError, yaml.YAMLError) as exc:
                raise BackendError(f"Cannot read {META_FILENAME}: {exc}") from exc
            if not isinstance(meta, dict):
                raise BackendError(f"{META_FILENAME} must contain a mapping")

        document_id = str(meta.get("id") or f"{container_id}-log")
        properties = meta.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise BackendError(f"{META_FILENAME}: properties must be a mapping", document_id=document_id)
        owners = meta.get("owners") or []
        if not isinstance(owners, list):
            raise BackendError(f"{META_FILENAME}: owners must be a list", document_id=document_id)

        try:
            doc = DocumentReference(
                id=document_id,
                container_id=container_id,
                capabilities=Capabilities(can_edit=bool(meta.get("can_edit", os.access(log_path, os.W_OK)))),
                owners=_owners_from(owners),
                name=str(meta.get("name") or container_id),
                description=str(meta.get("description") or ""),
                properties={str(k): str(v) for k, v in properties.items()},
            )
        except ValidationError as exc:
            raise BackendError(f"Invalid {META_FILENAME}: {exc}", document_id=document_id) from exc

        self._paths[document_id] = log_path
        return doc

    def load_sheet_data(self, document_id: str) -> SheetData:
        path = self._paths.get(document_id)
        if path is None:
            raise BackendError("Unknown document", document_id=document_id)
        try:
            with open(path, newline="", encoding="utf-8") as f:
                rows = [tuple(row) for row in csv.reader(f) if row]
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise BackendError(f"Cannot read {path.name}: {exc}", document_id=document_id) from exc
        return SheetData(values=tuple(rows))

    def touch_container(self, container_id: str) -> None:
        """Bump the container directory's modification time."""
        try:
            os.utime(self._container_dir(container_id))
        except OSError as exc:
            raise BackendError(f"Cannot touch container {container_id!r}: {exc}") from exc


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryBackend:
    """Dict-backed backend.

    ``calls`` counts invocations per method name; ``failing_documents``
    makes ``load_sheet_data`` raise ``BackendError`` for those ids.
    """

    def __init__(self) -> None:
        self._documents: dict[str, DocumentReference] = {}
        self._grids: dict[str, SheetData] = {}
        self.calls: Counter[str] = Counter()
        self.failing_documents: set[str] = set()
        self.touched: list[str] = []

    def add_project(
        self,
        container_id: str,
        grid: Sequence[Sequence[Any]],
        *,
        document_id: str | None = None,
        name: str = "",
        description: str = "",
        owners: Sequence[Owner | Mapping[str, str]] = (),
        can_edit: bool = True,
        properties: Mapping[str, str] | None = None,
    ) -> DocumentReference:
        """Register a project and return its document reference."""
        doc = DocumentReference(
            id=document_id or f"{container_id}-log",
            container_id=container_id,
            capabilities=Capabilities(can_edit=can_edit),
            owners=tuple(o if isinstance(o, Owner) else Owner(**o) for o in owners),
            name=name or container_id,
            description=description,
            properties=dict(properties or {}),
        )
        self._documents[container_id] = doc
        self.set_grid(doc.id, grid)
        return doc

    def set_grid(self, document_id: str, grid: Sequence[Sequence[Any]]) -> None:
        self._grids[document_id] = SheetData(values=tuple(tuple(row) for row in grid))

    def get_log_file_spreadsheet_id(self, container_id: str) -> DocumentReference:
        self.calls["get_log_file_spreadsheet_id"] += 1
        doc = self._documents.get(container_id)
        if doc is None:
            raise NotFoundError(container_id)
        return doc

    def load_sheet_data(self, document_id: str) -> SheetData:
        self.calls["load_sheet_data"] += 1
        if document_id in self.failing_documents:
            raise BackendError("Simulated fetch failure", document_id=document_id)
        data = self._grids.get(document_id)
        if data is None:
            raise BackendError("Unknown document", document_id=document_id)
        return data

    def touch_container(self, container_id: str) -> None:
        self.calls["touch_container"] += 1
        self.touched.append(container_id)
