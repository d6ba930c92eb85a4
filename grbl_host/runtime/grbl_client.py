# grbl_host/runtime/grbl_client.py
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Mapping, Optional, Tuple

from grbl_host.interfaces.event_sink import EventSink, GrblEvent
from grbl_host.model.setting import GrblSetting, SettingsCatalog
from grbl_host.model.status import STATE_DISCONNECTED, STATE_UNKNOWN, GrblStatus
from grbl_host.protocol.commands import build_jog, build_move, build_setting
from grbl_host.protocol.defs import (
    CMD_HOME,
    CMD_UNLOCK,
    DEFAULT_BAUDRATE,
    NOT_CONNECTED_RESPONSE,
    RT_CYCLE_START,
    RT_FEED_HOLD,
    RT_JOG_CANCEL,
    ProtocolTimings,
)
from grbl_host.protocol.engine import GrblEngine
from grbl_host.protocol.parser import is_ok, is_status_frame, parse_settings, parse_status
from grbl_host.runtime.state import SessionInfo
from grbl_host.transport.base import Transport
from grbl_host.transport.discovery import list_serial_ports

TransportFactory = Callable[[], Transport]
PortLister = Callable[[], List[str]]

# Event type tags
EV_CONNECTED = "grbl_connected"
EV_DISCONNECTED = "grbl_disconnected"
EV_HOMING_COMPLETE = "grbl_homing_complete"
EV_FEED_HOLD = "grbl_feed_hold"
EV_CYCLE_START = "grbl_cycle_start"
EV_RESET = "grbl_reset"
EV_UNLOCKED = "grbl_unlocked"
EV_SETTING_CHANGED = "grbl_setting_changed"


class GrblClient:
    """
    Single logical session to one GRBL controller.

    Responsibilities:
      - connect to an explicit port or auto-detect one by banner probing
      - serialize every exchange through one session lock
      - format queued commands / send realtime bytes, parse status and settings
      - emit lifecycle and command-result events to one sink, outside the lock

    No public method raises: failures are reported as False, "", [] or a
    default status. Calls made while disconnected never touch a transport.
    Realtime commands share the session lock and therefore wait behind an
    in-flight queued command.
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory,
        port_lister: PortLister = list_serial_ports,
        timings: Optional[ProtocolTimings] = None,
        catalog: Optional[SettingsCatalog] = None,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._transport_factory = transport_factory
        self._port_lister = port_lister
        self._timings = timings or ProtocolTimings()
        self._catalog = catalog if catalog is not None else SettingsCatalog.default()
        self._log = logger or logging.getLogger(__name__)
        self._sleep = sleep
        self._clock = clock

        self._lock = threading.Lock()
        self._transport: Optional[Transport] = None
        self._engine: Optional[GrblEngine] = None
        self._port = ""
        self._version = ""
        self._connected = False

        self._sink_lock = threading.Lock()
        self._sink: Optional[EventSink] = event_sink

    @property
    def timings(self) -> ProtocolTimings:
        return self._timings

    @property
    def catalog(self) -> SettingsCatalog:
        return self._catalog

    # ---------------- Events ----------------
    def set_event_sink(self, sink: Optional[EventSink]) -> None:
        """Install the event sink, replacing any previous one (None clears the slot)."""
        with self._sink_lock:
            self._sink = sink

    def _emit(self, event_type: str, payload: Optional[Mapping[str, Any]] = None) -> None:
        # must be called without holding self._lock
        with self._sink_lock:
            sink = self._sink

        self._log.info("GRBL_EVENT type=%s payload=%s", event_type, dict(payload or {}))
        if sink is None:
            return

        try:
            sink.on_event(GrblEvent(type=event_type, payload=dict(payload or {})))
        except Exception:
            self._log.exception("EVENT_SINK_ERROR type=%s", event_type)

    # ---------------- Connection ----------------
    def list_ports(self) -> List[str]:
        return list(self._port_lister())

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def port(self) -> str:
        with self._lock:
            return self._port

    @property
    def version(self) -> str:
        with self._lock:
            return self._version

    def info(self) -> SessionInfo:
        with self._lock:
            return SessionInfo(connected=self._connected, port=self._port, version=self._version)

    def _make_engine(self, transport: Transport) -> GrblEngine:
        return GrblEngine(
            transport,
            timings=self._timings,
            logger=self._log,
            clock=self._clock,
            sleep=self._sleep,
        )

    def connect(self, port: Optional[str] = None, baudrate: int = DEFAULT_BAUDRATE) -> bool:
        """
        Open `port` (or each enumerated candidate in order) and accept the first
        one whose post-reset banner carries the firmware token.
        """
        with self._lock:
            if self._connected:
                self._log.info("GRBL_ALREADY_CONNECTED port=%s", self._port)
                return True

            if port:
                candidates = [port]
            else:
                candidates = self.list_ports()
                self._log.info("GRBL_AUTODETECT candidates=%d ports=%s", len(candidates), candidates)

            adopted: Optional[Tuple[str, Transport, str]] = None
            for candidate in candidates:
                transport, version = self._probe(candidate, baudrate)
                if transport is not None and version is not None:
                    adopted = (candidate, transport, version)
                    break

            if adopted is None:
                self._log.warning("GRBL_CONNECT_FAILED port=%s candidates=%s", port or "<auto>", candidates)
                return False

            self._port, self._transport, self._version = adopted
            self._engine = self._make_engine(self._transport)
            self._connected = True
            port_, version_ = self._port, self._version

        self._log.info("GRBL_CONNECTED port=%s version=%s", port_, version_)
        self._emit(EV_CONNECTED, {"port": port_, "version": version_})
        return True

    def _probe(self, port: str, baudrate: int) -> Tuple[Optional[Transport], Optional[str]]:
        self._log.info("GRBL_PROBE port=%s baud=%d", port, baudrate)

        transport = self._transport_factory()
        if not transport.open(port, baudrate):
            self._log.info("GRBL_PROBE_OPEN_FAILED port=%s", port)
            return None, None

        version = self._make_engine(transport).probe()
        if version is None:
            self._log.info("GRBL_PROBE_NO_BANNER port=%s", port)
            transport.close()
            return None, None

        return transport, version

    def disconnect(self) -> None:
        with self._lock:
            if not self._connected:
                return

            port = self._port
            if self._transport is not None:
                self._transport.close()
            self._transport = None
            self._engine = None
            self._connected = False
            self._port = ""
            self._version = ""

        self._log.info("GRBL_DISCONNECTED port=%s", port)
        self._emit(EV_DISCONNECTED, {"port": port})

    def __enter__(self) -> "GrblClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    # ---------------- Exchanges (hold the lock) ----------------
    def _session_engine(self) -> Optional[GrblEngine]:
        # caller holds self._lock
        if not self._connected or self._engine is None:
            return None
        return self._engine

    def _queued(self, line: str, timeout_ms: int) -> Optional[str]:
        with self._lock:
            engine = self._session_engine()
            if engine is None:
                return None
            return engine.send_queued(line, timeout_ms)

    def _queued_ok(self, line: str, timeout_ms: int) -> bool:
        response = self._queued(line, timeout_ms)
        return response is not None and is_ok(response)

    def _realtime(self, value: int) -> bool:
        with self._lock:
            engine = self._session_engine()
            if engine is None:
                return False
            return engine.send_realtime(value)

    # ---------------- Status ----------------
    def status(self) -> GrblStatus:
        with self._lock:
            engine = self._session_engine()
            if engine is None:
                return GrblStatus(state=STATE_DISCONNECTED)
            line = engine.query_status(self._timings.status_timeout_ms)

        if not is_status_frame(line):
            self._log.debug("STATUS_NOT_A_FRAME line=%r", line)
            return GrblStatus(state=STATE_UNKNOWN)
        return parse_status(line)

    def status_dict(self) -> dict:
        return self.status().as_dict()

    def state(self) -> str:
        return self.status().state

    # ---------------- Movement ----------------
    def home(self) -> bool:
        ok = self._queued_ok(CMD_HOME, self._timings.home_timeout_ms)
        if ok:
            self._emit(EV_HOMING_COMPLETE)
        return ok

    def _move(self, mode: str, x, y, z, feed: Optional[float] = None) -> bool:
        try:
            line = build_move(mode, x, y, z, feed=feed)
        except (TypeError, ValueError) as e:
            self._log.warning("MOVE_REJECTED mode=%s err=%s", mode, e)
            return False
        return self._queued_ok(line, self._timings.command_timeout_ms)

    def move_g0(self, x: Optional[float] = None, y: Optional[float] = None, z: Optional[float] = None) -> bool:
        return self._move("G0", x, y, z)

    def move_g1(
        self,
        x: Optional[float] = None,
        y: Optional[float] = None,
        z: Optional[float] = None,
        *,
        feed: Optional[float],
    ) -> bool:
        return self._move("G1", x, y, z, feed=feed)

    def jog(self, axis: str, distance: float, feed: float) -> bool:
        try:
            line = build_jog(axis, distance, feed)
        except (TypeError, ValueError) as e:
            self._log.warning("JOG_REJECTED err=%s", e)
            return False
        return self._queued_ok(line, self._timings.command_timeout_ms)

    def cancel_jog(self) -> bool:
        return self._realtime(RT_JOG_CANCEL)

    # ---------------- Control ----------------
    def feed_hold(self) -> bool:
        ok = self._realtime(RT_FEED_HOLD)
        if ok:
            self._emit(EV_FEED_HOLD)
        return ok

    def cycle_start(self) -> bool:
        ok = self._realtime(RT_CYCLE_START)
        if ok:
            self._emit(EV_CYCLE_START)
        return ok

    def soft_reset(self) -> bool:
        """Send Ctrl-X, wait for the controller to reboot and consume its banner."""
        with self._lock:
            engine = self._session_engine()
            if engine is None:
                return False
            accepted, version = engine.reset(self._timings.settle_s, self._timings.reset_read_ms)
            if accepted and version:
                self._version = version

        if accepted:
            self._emit(EV_RESET, {"version": version} if version else {})
        return accepted

    def unlock(self) -> bool:
        ok = self._queued_ok(CMD_UNLOCK, self._timings.ack_timeout_ms)
        if ok:
            self._emit(EV_UNLOCKED)
        return ok

    # ---------------- Settings ----------------
    def get_settings(self) -> List[GrblSetting]:
        with self._lock:
            engine = self._session_engine()
            if engine is None:
                return []
            text = engine.read_settings_listing(self._timings.settings_timeout_ms)
        return parse_settings(text, self._catalog)

    def settings_dict(self) -> list[dict]:
        return [s.as_dict() for s in self.get_settings()]

    def set_setting(self, setting_id: int, value: float) -> bool:
        try:
            line = build_setting(setting_id, value)
        except (TypeError, ValueError) as e:
            self._log.warning("SET_SETTING_REJECTED err=%s", e)
            return False

        ok = self._queued_ok(line, self._timings.ack_timeout_ms)
        if ok:
            self._emit(EV_SETTING_CHANGED, {"id": int(setting_id), "value": float(value)})
        return ok

    # ---------------- Raw ----------------
    def send_command(self, cmd: str, timeout_ms: Optional[int] = None) -> str:
        """Send a raw queued command; returns the accumulated response text."""
        if timeout_ms is None:
            timeout_ms = self._timings.command_timeout_ms
        response = self._queued(cmd, timeout_ms)
        return NOT_CONNECTED_RESPONSE if response is None else response

    def send_realtime(self, value: int) -> bool:
        return self._realtime(value)
