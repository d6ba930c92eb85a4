# grbl_host/app/sinks.py
from __future__ import annotations

import json
import logging
import queue
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable, List, Mapping, Optional

from grbl_host.core.recording.async_writer import AsyncWriter
from grbl_host.interfaces.event_sink import EventSink, GrblEvent


class QueueEventSink(EventSink):
    """
    Bounded message channel the caller drains.

    Delivery order is emission order; when full, new events are dropped with a warning.
    """

    def __init__(self, maxsize: int = 200, *, logger: Optional[logging.Logger] = None):
        self._queue: "queue.Queue[GrblEvent]" = queue.Queue(maxsize=maxsize)
        self._log = logger or logging.getLogger(__name__)

    def on_event(self, event: GrblEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._log.warning("EVENT_QUEUE_FULL dropped=%s", event.type)

    def get(self, timeout: float = 0.1) -> Optional[GrblEvent]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[GrblEvent]:
        out: List[GrblEvent] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except queue.Empty:
                return out

    def close(self) -> None:
        return None


class CallbackEventSink(EventSink):
    """Adapt a plain `fn(event_type, payload)` handler."""

    def __init__(self, fn: Callable[[str, Mapping[str, Any]], None]):
        self._fn = fn

    def on_event(self, event: GrblEvent) -> None:
        self._fn(event.type, event.payload)

    def close(self) -> None:
        return None


class LoggingEventSink(EventSink):
    """Log each event as one JSON document (stand-in for a push channel)."""

    def __init__(self, logger: Optional[logging.Logger] = None, *, level: int = logging.INFO):
        self._log = logger or logging.getLogger("grbl_host.events")
        self._level = level

    def on_event(self, event: GrblEvent) -> None:
        self._log.log(self._level, "EVENT %s", json.dumps(event.as_dict(), ensure_ascii=False))

    def close(self) -> None:
        return None


class EventTraceLogger(EventSink):
    """Append events as JSONL lines via a background AsyncWriter."""

    def __init__(
        self,
        file_path: Path,
        *,
        flush_interval_s: float = 0.5,
        logger: Optional[logging.Logger] = None,
    ):
        self.file_path = Path(file_path)
        self._log = logger or logging.getLogger(__name__)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._writer: Optional[AsyncWriter] = AsyncWriter(
            self.file_path,
            flush_interval=flush_interval_s,
            logger=self._log,
        )

    def on_event(self, event: GrblEvent) -> None:
        if self._writer is None:
            return
        self._writer.write(json.dumps(event.as_dict(), ensure_ascii=False))

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


class FanoutEventSink(EventSink):
    """Deliver each event to several sinks, in registration order."""

    def __init__(self, sinks: Iterable[EventSink] = (), *, logger: Optional[logging.Logger] = None):
        self._sinks: List[EventSink] = list(sinks)
        self._lock = Lock()
        self._log = logger or logging.getLogger(__name__)

    def add(self, sink: EventSink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    def remove(self, sink: EventSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def on_event(self, event: GrblEvent) -> None:
        with self._lock:
            sinks = list(self._sinks)
        for s in sinks:
            try:
                s.on_event(event)
            except Exception:
                self._log.exception("SINK_ON_EVENT_ERROR sink=%s", type(s).__name__)

    def close(self) -> None:
        with self._lock:
            sinks = list(self._sinks)
            self._sinks.clear()
        for s in sinks:
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR sink=%s", type(s).__name__)
