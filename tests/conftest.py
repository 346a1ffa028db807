"""Shared fixtures for streaks tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from streaks.backend import InMemoryBackend
from streaks.logging import set_sink
from streaks.registry import DocumentRegistry, reset_default_registry


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Keep the event sink and default registry from leaking between tests."""
    set_sink(None)
    reset_default_registry()
    yield
    set_sink(None)
    reset_default_registry()


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def registry(backend: InMemoryBackend) -> DocumentRegistry:
    return DocumentRegistry(backend)


@pytest.fixture
def make_container(tmp_path: Path):
    """Return a helper that creates a container with log.csv (and log.yaml)."""

    def _make(container_id: str, csv_text: str, meta_yaml: str | None = None) -> Path:
        container = tmp_path / container_id
        container.mkdir(parents=True, exist_ok=True)
        (container / "log.csv").write_text(csv_text)
        if meta_yaml is not None:
            (container / "log.yaml").write_text(meta_yaml)
        return container

    return _make
