"""Structured event logging for streaks.

Provides a unified event schema, filesystem NDJSON sink, and safe
emit helpers that never raise uncaught exceptions.
"""

from streaks.logging.events import (
    EventLevel,
    EventType,
    StreaksEvent,
    emit,
    emit_info,
    get_sink,
    make_project_event,
    redact_context,
    set_log_dir,
    set_sink,
)
from streaks.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "StreaksEvent",
    "emit",
    "emit_info",
    "get_sink",
    "make_project_event",
    "redact_context",
    "set_log_dir",
    "set_sink",
]
