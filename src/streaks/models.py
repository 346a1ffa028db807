"""Pydantic models shared by the loading pipeline.

Backend-side snapshots (``DocumentReference``, ``SheetData``) are held
read-only; view-side models are frozen so a loaded project cannot be
mutated after assembly.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


RawRowGrid = tuple[tuple[Any, ...], ...]


class InputType(str, Enum):
    """Semantic value type of a log column.

    The values are what gets persisted in document properties, so they
    must not change.
    """

    date = "date"
    text = "text"
    markdown = "markdown"
    number = "number"
    boolean = "boolean"


# ---------------------------------------------------------------------------
# Backend snapshots
# ---------------------------------------------------------------------------


class Owner(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""


class Capabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_edit: bool = False


class DocumentReference(BaseModel):
    """Metadata of the spreadsheet that holds a project's log rows."""

    model_config = ConfigDict(frozen=True)

    id: str
    container_id: str
    capabilities: Capabilities = Field(default_factory=Capabilities)
    owners: tuple[Owner, ...] = ()
    name: str = ""
    description: str = ""
    properties: dict[str, str] = Field(default_factory=dict)


class SheetData(BaseModel):
    """Raw cell grid as returned by the backend. Row 0 holds header names."""

    model_config = ConfigDict(frozen=True)

    values: RawRowGrid = ()


# ---------------------------------------------------------------------------
# View models
# ---------------------------------------------------------------------------


class HeaderDescriptor(BaseModel):
    """A column's name plus its declared or inferred value type."""

    model_config = ConfigDict(frozen=True)

    name: str
    value_type: InputType
    column_index: int
    declared: bool = False


class InvalidValue(BaseModel):
    """Sentinel for a non-empty cell that does not parse under its column type."""

    model_config = ConfigDict(frozen=True)

    raw: Any

    def __str__(self) -> str:
        return f"<invalid {self.raw!r}>"
