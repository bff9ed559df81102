"""Trace events schema helpers."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

logger = logging.getLogger(__name__)

TraceEvent = dict[str, Any]
EventSink = Callable[[TraceEvent], None]


def make_event(stage: str, status: str, message: str, data: dict[str, Any] | None = None) -> TraceEvent:
    payload: TraceEvent = {
        "stage": stage,
        "status": status,
        "message": message,
    }
    if data:
        payload["data"] = data
    return payload


class EventChannel:
    """Fans trace events out to an optional caller-supplied sink."""

    def __init__(self, sink: EventSink | None = None) -> None:
        self._sink = sink

    def emit(self, stage: str, status: str, message: str, data: dict[str, Any] | None = None) -> None:
        if self._sink is None:
            return
        event = make_event(stage, status, message, data)
        try:
            self._sink(event)
        except Exception:
            logger.exception("Event sink failed for stage=%s status=%s", stage, status)
