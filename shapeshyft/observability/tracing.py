"""Minimal tracing primitives.

Spans and structured events go through the standard logging tree, so the JSON
formatter configured at startup renders them like any other record. No
OpenTelemetry dependency; trace and span ids are enough to correlate one
execution across log lines.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger('shapeshyft.trace')


@dataclass
class Span:
    """One timed operation within a trace; `duration_ms` is set by end()."""

    name: str
    trace_id: str
    attributes: dict[str, Any] = field(default_factory=dict)
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    duration_ms: float | None = None
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def end(self) -> None:
        if self.duration_ms is None:
            self.duration_ms = round((time.perf_counter() - self._started) * 1000, 3)


def new_trace_id() -> str:
    return uuid.uuid4().hex


def log_event(event: str, *, trace_id: str, span: Span | None = None, level: int = logging.INFO, **fields: Any) -> None:
    payload: dict[str, Any] = {'trace_id': trace_id, **fields}
    if span is not None:
        payload['span'] = {
            'name': span.name,
            'span_id': span.span_id,
            'duration_ms': span.duration_ms,
            'attributes': span.attributes,
        }
    logger.log(level, event, extra={'_extra': payload})
