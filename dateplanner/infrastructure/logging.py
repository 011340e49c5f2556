"""Structured generation/catalog event log.

Every record is one JSON object per line on stderr (or the given stream),
tagged with a short trace id and scrubbed of any loaded API key.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from typing import Any, Optional, TextIO

from dateplanner.security.key_manager import get_key_manager

_fallback_logger = logging.getLogger("date-planner.structured")


class StructuredLogger:
    def __init__(self, trace_id: Optional[str] = None, output: Optional[TextIO] = None):
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self._output = output or sys.stderr
        self._started: dict[str, float] = {}

    def _emit(self, event: str, **fields: Any) -> None:
        record = {"event": event, **fields, "trace_id": self.trace_id, "timestamp": round(time.time(), 3)}
        line = get_key_manager().scrub_text(json.dumps(record, ensure_ascii=False, default=str))
        try:
            self._output.write(line + "\n")
            self._output.flush()
        except (OSError, ValueError) as exc:
            # closed or broken stream; never let logging break a request
            _fallback_logger.warning("structured log write failed: %s", exc)

    def generation_start(self, kind: str, **extra: Any) -> None:
        self._started[kind] = time.monotonic()
        self._emit("generation_start", kind=kind, **extra)

    def generation_attempt(self, kind: str, attempt: int, *, ok: bool, **extra: Any) -> None:
        self._emit("generation_attempt", kind=kind, attempt=attempt, ok=ok, **extra)

    def generation_end(self, kind: str, *, source: str, attempts: int = 0, **extra: Any) -> None:
        started = self._started.pop(kind, None)
        elapsed_ms = round((time.monotonic() - started) * 1000, 1) if started is not None else 0.0
        self._emit("generation_end", kind=kind, source=source, attempts=attempts, duration_ms=elapsed_ms, **extra)

    def catalog_call(self, catalog: str, **extra: Any) -> None:
        self._emit("catalog_call", catalog=catalog, **extra)

    def warning(self, component: str, message: str, **extra: Any) -> None:
        self._emit("warning", component=component, message=message, **extra)

    def error(self, component: str, error: str, **extra: Any) -> None:
        self._emit("error", component=component, error=error, **extra)


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    """Process-wide logger; a different ``trace_id`` starts a new one."""
    global _logger
    if _logger is None or (trace_id is not None and trace_id != _logger.trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger


__all__ = ["StructuredLogger", "get_logger"]
