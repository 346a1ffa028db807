"""Error types for project loading."""

from __future__ import annotations


class StreaksError(Exception):
    """Base class for all streaks errors."""


class NotFoundError(StreaksError):
    """No log document exists under a container.

    Attributes:
        container_id: The container that was searched.
    """

    def __init__(self, container_id: str, message: str | None = None) -> None:
        self.container_id = container_id
        super().__init__(message or f"No log document found in container {container_id!r}")


class BackendError(StreaksError):
    """Network or permission failure while fetching document content.

    Attributes:
        document_id: The document being fetched, if known.
    """

    def __init__(self, message: str, document_id: str | None = None) -> None:
        self.document_id = document_id
        full = message
        if document_id is not None:
            full += f" (document {document_id!r})"
        super().__init__(full)


class ConfigError(StreaksError):
    """Malformed ``streaks.yaml`` configuration."""
