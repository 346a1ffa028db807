"""Project loading: from a container id to an immutable view model.

A project lives in a container that holds one log spreadsheet.  When
the spreadsheet is created, the type of every column is written to its
properties so that the UI can present the right editor for it (e.g.
multi-line text is rendered as markdown).  Loading reads those types
back, infers the rest from the cells, and flags projects whose
structure the UI cannot chart so it can send the user to the settings
page instead of failing.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel, ConfigDict

from streaks.errors import BackendError, NotFoundError
from streaks.history import ProjectHistory, build_history
from streaks.inference import DEFAULT_SAMPLE_ROWS, infer_headers
from streaks.logging import EventLevel, EventType, emit, make_project_event
from streaks.config import DEFAULT_CONFIG
from streaks.logging.events import (
    LOG_DOCUMENT_NOT_FOUND,
    LOG_DOCUMENT_UNREADABLE,
    MISSING_DATE_COLUMN,
    SHEET_FETCH_FAILED,
)
from streaks.metadata import extract_column_types
from streaks.models import (
    DocumentReference,
    HeaderDescriptor,
    InputType,
    Owner,
    RawRowGrid,
    SheetData,
)
from streaks.registry import DocumentRegistry, get_default_registry
from streaks.validation import find_duplicate_headers, is_structure_valid


class ProjectViewModel(BaseModel):
    """Everything the UI needs to render one project."""

    model_config = ConfigDict(frozen=True)

    id: str
    can_edit: bool
    owner: Owner | None
    sheet_data: RawRowGrid
    spreadsheet_id: str
    headers: tuple[HeaderDescriptor, ...]
    project_history: ProjectHistory
    title: str = ""
    description: str = ""
    should_redirect_to_settings: bool = False


def assemble(
    doc: DocumentReference,
    sheet_data: SheetData,
    declared_types: dict[str, InputType],
    *,
    container_id: str | None = None,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
) -> ProjectViewModel:
    """Build the view model for a fetched document.

    Never raises on structural problems: an unusable structure only sets
    ``should_redirect_to_settings``.

    Args:
        doc: Document metadata.
        sheet_data: The document's cell grid (row 0 = header names).
        declared_types: Column types persisted on the document.
        container_id: The container the caller asked for; defaults to
            the one the document reports.
        sample_rows: Data rows sniffed per column without a declared type.

    Returns:
        A frozen ``ProjectViewModel``.
    """
    container_id = container_id or doc.container_id
    grid = sheet_data.values
    data_rows = grid[1:]
    headers = infer_headers(grid, declared_types, sample_rows=sample_rows)

    if len(doc.owners) > 1:
        emit(make_project_event(
            EventType.multiple_owners,
            EventLevel.info,
            f"Document has {len(doc.owners)} owners; using the first",
            container_id=container_id,
            document_id=doc.id,
            extra={"owners": [o.email or o.name for o in doc.owners]},
        ))

    valid = is_structure_valid(headers)
    if not valid:
        emit(make_project_event(
            EventType.structure_invalid,
            EventLevel.warning,
            "No date column; redirecting to settings",
            container_id=container_id,
            document_id=doc.id,
            error_code=MISSING_DATE_COLUMN,
            extra={"headers": [h.name for h in headers]},
        ))

    duplicates = find_duplicate_headers(headers)
    if duplicates:
        emit(make_project_event(
            EventType.duplicate_headers,
            EventLevel.warning,
            f"Duplicate header names: {', '.join(duplicates)}",
            container_id=container_id,
            document_id=doc.id,
            extra={"duplicates": duplicates},
        ))

    return ProjectViewModel(
        id=container_id,
        can_edit=doc.capabilities.can_edit,
        owner=doc.owners[0] if doc.owners else None,
        sheet_data=data_rows,
        spreadsheet_id=doc.id,
        headers=tuple(headers),
        project_history=build_history(data_rows, headers),
        title=doc.name,
        description=doc.description,
        should_redirect_to_settings=not valid,
    )


def load_project(
    container_id: str,
    registry: DocumentRegistry | None = None,
    *,
    config: dict[str, Any] | None = None,
) -> ProjectViewModel:
    """Load the project stored in *container_id*.

    Args:
        container_id: The project's container.
        registry: Document registry to resolve through; defaults to the
            process-wide one.
        config: Loader configuration (see ``streaks.config``).

    Returns:
        The assembled view model, possibly flagged for a settings redirect.

    Raises:
        NotFoundError: If the container holds no log document.
        BackendError: If the document metadata or content cannot be fetched.
    """
    config = config or {}
    registry = registry or get_default_registry()
    sample_rows = int(config.get("inference_sample_rows", DEFAULT_SAMPLE_ROWS))

    emit(make_project_event(
        EventType.project_load_started,
        EventLevel.info,
        f"Loading project {container_id}",
        container_id=container_id,
    ))

    try:
        doc = registry.resolve_log_document(container_id)
    except (NotFoundError, BackendError) as exc:
        emit(make_project_event(
            EventType.project_load_failed,
            EventLevel.error,
            str(exc),
            container_id=container_id,
            error_code=LOG_DOCUMENT_NOT_FOUND if isinstance(exc, NotFoundError) else LOG_DOCUMENT_UNREADABLE,
        ))
        raise

    declared_types = extract_column_types(doc.properties)

    try:
        sheet_data = registry.load_sheet_data(doc.id)
    except BackendError as exc:
        emit(make_project_event(
            EventType.project_load_failed,
            EventLevel.error,
            str(exc),
            container_id=container_id,
            document_id=doc.id,
            error_code=SHEET_FETCH_FAILED,
        ))
        raise

    vm = assemble(doc, sheet_data, declared_types, container_id=container_id, sample_rows=sample_rows)

    emit(make_project_event(
        EventType.project_loaded,
        EventLevel.info,
        f"Loaded {len(vm.project_history)} entries",
        container_id=container_id,
        document_id=doc.id,
        extra={
            "columns": len(vm.headers),
            "declared_columns": sum(1 for h in vm.headers if h.declared),
            "redirect_to_settings": vm.should_redirect_to_settings,
        },
    ))
    return vm


def load_projects(
    container_ids: list[str],
    registry: DocumentRegistry | None = None,
    *,
    config: dict[str, Any] | None = None,
    max_workers: int | None = None,
) -> list[dict[str, Any]]:
    """Load several independent projects, in parallel when allowed.

    Failures do not stop the other loads.

    Returns:
        One dict per container, in input order, with ``container_id``,
        ``status`` (``"ok"`` or ``"error"``) and either ``project`` or
        ``error``/``error_type``.
    """
    config = config or {}
    registry = registry or get_default_registry()
    if max_workers is None:
        max_workers = int(config.get("max_workers", DEFAULT_CONFIG["max_workers"]))

    def _load_one(container_id: str) -> dict[str, Any]:
        try:
            vm = load_project(container_id, registry, config=config)
        except (NotFoundError, BackendError) as exc:
            return {
                "container_id": container_id,
                "status": "error",
                "error": str(exc),
                "error_type": type(exc).__name__,
            }
        return {"container_id": container_id, "status": "ok", "project": vm}

    if max_workers <= 1:
        return [_load_one(cid) for cid in container_ids]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(_load_one, container_ids))
