"""Unified event schema and module-level emit helpers.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  The ``emit()``
family of functions is safe to call from any context -- failures are
swallowed and printed to stderr.
"""

from __future__ import annotations

import re
import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse, urlunparse

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    # Load lifecycle
    project_load_started = "project_load_started"
    project_loaded = "project_loaded"
    project_load_failed = "project_load_failed"

    # Structure diagnostics
    structure_invalid = "structure_invalid"
    duplicate_headers = "duplicate_headers"
    multiple_owners = "multiple_owners"

    # Registry
    cache_invalidated = "cache_invalidated"
    container_touched = "container_touched"


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

LOG_DOCUMENT_NOT_FOUND = "log_document_not_found"
SHEET_FETCH_FAILED = "sheet_fetch_failed"
LOG_DOCUMENT_UNREADABLE = "log_document_unreadable"
MISSING_DATE_COLUMN = "missing_date_column"


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------

_SENSITIVE_KEY_RE = re.compile(
    r"(password|passwd|secret|token|api_key|apikey|authorization|cookie"
    r"|session|bearer|credentials)",
    re.IGNORECASE,
)

_EMAIL_RE = re.compile(r"([A-Za-z0-9._%+\-])[A-Za-z0-9._%+\-]*@([A-Za-z0-9.\-]+\.[A-Za-z]{2,})")

_MAX_VALUE_LEN = 256


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *context* with sensitive values redacted.

    Rules:
    - Keys matching sensitive patterns have their values replaced with
      ``"[REDACTED]"``.
    - E-mail addresses keep their first character and domain only.
    - String values that look like URLs have query params stripped.
    - String values longer than 256 chars are truncated.
    """
    return _redact_dict(context)


def _redact_dict(d: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in d.items():
        if _SENSITIVE_KEY_RE.search(str(k)):
            out[k] = "[REDACTED]"
        elif isinstance(v, dict):
            out[k] = _redact_dict(v)
        elif isinstance(v, (list, tuple)):
            out[k] = [_redact_value(item) for item in v]
        else:
            out[k] = _redact_value(v)
    return out


def _redact_value(v: Any) -> Any:
    if isinstance(v, dict):
        return _redact_dict(v)
    if isinstance(v, str):
        if "://" in v:
            parsed = urlparse(v)
            if parsed.scheme in ("http", "https") and parsed.query:
                clean = urlunparse((parsed.scheme, parsed.hostname or "", parsed.path, "", "", ""))
                return clean + "?[REDACTED]"
        v = _EMAIL_RE.sub(r"\1***@\2", v)
        if len(v) > _MAX_VALUE_LEN:
            return v[:_MAX_VALUE_LEN] + "...[truncated]"
    return v


# ---------------------------------------------------------------------------
# Attribution checks
# ---------------------------------------------------------------------------

_PROJECT_EVENT_REQUIRED = {"container_id"}
_DOCUMENT_EVENT_REQUIRED = {"document_id"}

_EVENT_REQUIRED_KEYS: dict[str, set[str]] = {
    EventType.project_load_started.value: _PROJECT_EVENT_REQUIRED,
    EventType.project_loaded.value: _PROJECT_EVENT_REQUIRED | _DOCUMENT_EVENT_REQUIRED,
    EventType.project_load_failed.value: _PROJECT_EVENT_REQUIRED,
    EventType.structure_invalid.value: _DOCUMENT_EVENT_REQUIRED,
    EventType.duplicate_headers.value: _DOCUMENT_EVENT_REQUIRED,
    EventType.multiple_owners.value: _DOCUMENT_EVENT_REQUIRED,
    EventType.cache_invalidated.value: _DOCUMENT_EVENT_REQUIRED,
    EventType.container_touched.value: _PROJECT_EVENT_REQUIRED | _DOCUMENT_EVENT_REQUIRED,
}


def _validate_attribution(event: StreaksEvent) -> StreaksEvent:
    """Check required context keys; downgrade to warning if missing."""
    required = _EVENT_REQUIRED_KEYS.get(EventType(event.event_type).value, set())
    missing = required - set(event.context.keys())
    if missing:
        ctx = dict(event.context)
        ctx["_missing_attribution"] = sorted(missing)
        return event.model_copy(update={"level": EventLevel.warning, "context": ctx})
    return event


def make_project_event(
    event_type: EventType,
    level: EventLevel,
    message: str,
    *,
    container_id: str | None = None,
    document_id: str | None = None,
    error_code: str | None = None,
    extra: dict[str, Any] | None = None,
) -> StreaksEvent:
    """Build an event with project attribution context."""
    ctx: dict[str, Any] = {}
    if container_id is not None:
        ctx["container_id"] = container_id
    if document_id is not None:
        ctx["document_id"] = document_id
    if extra:
        ctx.update(extra)
    return StreaksEvent(
        level=level,
        event_type=event_type,
        message=message,
        context=ctx,
        error_code=error_code,
    )


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class StreaksEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Module-level sink reference
# ---------------------------------------------------------------------------

_sink: Any = None  # EventSink | None


def set_log_dir(
    log_dir: Path | str,
    *,
    fsync: bool = False,
    tail_bytes: int | None = None,
) -> None:
    """Configure the module-level event sink to write under *log_dir*.

    If neither this nor ``set_sink`` is called, ``emit()`` silently
    discards events.
    """
    from streaks.logging.sink import EventSink

    set_sink(EventSink(Path(log_dir), fsync=fsync, tail_bytes=tail_bytes))


def set_sink(sink: Any) -> None:
    """Install *sink* (anything with ``write(event, container_id=...)``), or None."""
    global _sink
    _sink = sink


def get_sink() -> Any:
    """Return the module-level sink, or None."""
    return _sink


# ---------------------------------------------------------------------------
# Rate-limited stderr warnings
# ---------------------------------------------------------------------------

_last_stderr_ts: float = 0.0
_STDERR_INTERVAL_SECS = 60.0


def _stderr_warning(msg: str) -> None:
    """Print a warning to stderr, rate-limited to one per 60 seconds."""
    global _last_stderr_ts
    now = time.monotonic()
    if now - _last_stderr_ts < _STDERR_INTERVAL_SECS:
        return
    _last_stderr_ts = now
    try:
        print(f"[streaks] {msg}", file=sys.stderr)
    except Exception:
        pass


# ---------------------------------------------------------------------------
# Safe emit helpers
# ---------------------------------------------------------------------------


def emit(event: StreaksEvent) -> None:
    """Write an event to the global log and, if attributed, the project log.

    **Never raises.**  On failure, prints a rate-limited warning to stderr.

    Applies redaction and attribution validation before writing.
    """
    try:
        sink = get_sink()
        if sink is None:
            return
        event = event.model_copy(update={"context": redact_context(event.context)})
        event = _validate_attribution(event)
        sink.write(event, container_id=event.context.get("container_id"))
    except Exception:
        _stderr_warning(f"logging failed: {traceback.format_exc()}")


def emit_info(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Convenience: emit an info-level event."""
    emit(StreaksEvent(
        level=EventLevel.info,
        event_type=event_type,
        message=message,
        context=context or {},
    ))
