from __future__ import annotations

import json
import logging

from grbl_host.app.sinks import (
    CallbackEventSink,
    EventTraceLogger,
    FanoutEventSink,
    LoggingEventSink,
    QueueEventSink,
)
from grbl_host.core.recording.async_writer import AsyncWriter
from grbl_host.interfaces.event_sink import GrblEvent


def test_event_as_dict():
    ev = GrblEvent(type="grbl_connected", payload={"port": "/dev/ttyUSB0", "version": "Grbl 1.1h"})
    d = ev.as_dict()

    assert d["event"] == "grbl_connected"
    assert d["data"] == {"port": "/dev/ttyUSB0", "version": "Grbl 1.1h"}
    assert d["timestamp"].endswith("+00:00")


def test_queue_sink_keeps_order_and_drops_when_full(caplog):
    q = QueueEventSink(maxsize=2)

    with caplog.at_level(logging.WARNING):
        for name in ("a", "b", "c"):
            q.on_event(GrblEvent(type=name))

    assert [e.type for e in q.drain()] == ["a", "b"]
    assert "EVENT_QUEUE_FULL" in caplog.text
    assert q.get(timeout=0.01) is None


def test_callback_sink_passes_type_and_payload():
    seen = []
    CallbackEventSink(lambda t, p: seen.append((t, dict(p)))).on_event(
        GrblEvent(type="grbl_setting_changed", payload={"id": 100, "value": 250.0})
    )
    assert seen == [("grbl_setting_changed", {"id": 100, "value": 250.0})]


def test_logging_sink_emits_json(caplog):
    sink = LoggingEventSink()
    with caplog.at_level(logging.INFO, logger="grbl_host.events"):
        sink.on_event(GrblEvent(type="grbl_feed_hold"))

    assert '"event": "grbl_feed_hold"' in caplog.text


def test_fanout_isolates_failing_sink():
    class Broken:
        def on_event(self, event):
            raise RuntimeError("nope")

        def close(self):
            raise RuntimeError("nope")

    q = QueueEventSink()
    fan = FanoutEventSink([Broken(), q])

    fan.on_event(GrblEvent(type="grbl_reset"))
    assert [e.type for e in q.drain()] == ["grbl_reset"]

    fan.remove(q)
    fan.on_event(GrblEvent(type="grbl_reset"))
    assert q.drain() == []

    fan.close()


def test_event_trace_logger_writes_jsonl(tmp_path):
    path = tmp_path / "events" / "trace.jsonl"
    sink = EventTraceLogger(path, flush_interval_s=0.01)

    sink.on_event(GrblEvent(type="grbl_connected", payload={"port": "/dev/ttyACM0"}))
    sink.on_event(GrblEvent(type="grbl_disconnected", payload={"port": "/dev/ttyACM0"}))
    sink.close()
    sink.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(l)["event"] for l in lines] == ["grbl_connected", "grbl_disconnected"]


def test_async_writer_flushes_on_close(tmp_path):
    batches = []
    w = AsyncWriter(tmp_path / "x.log", flush_interval=60.0, write_func=lambda p, b: batches.append(list(b)))

    w.write("one")
    w.write("two")
    w.close()
    w.write("late")

    assert w.closed
    assert [line for b in batches for line in b] == ["one", "two"]


def test_async_writer_survives_flush_errors(tmp_path, caplog):
    def failing(path, batch):
        raise OSError("disk full")

    w = AsyncWriter(tmp_path / "x.log", flush_interval=0.0, write_func=failing)
    with caplog.at_level(logging.ERROR):
        w.write("one")
        w.close()

    assert "ASYNC_WRITER_FLUSH_FAILED" in caplog.text
