# grbl_host/protocol/engine.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol as TypingProtocol, Tuple

from .defs import (
    CMD_LIST_SETTINGS,
    RT_SOFT_RESET,
    RT_STATUS_QUERY,
    TIMEOUT_MARKER,
    TOKEN_OK,
    ProtocolTimings,
)
from .parser import extract_version, is_terminal


class LineTransport(TypingProtocol):
    """Minimal I/O interface for GrblEngine."""
    def write(self, text: str) -> bool: ...
    def write_byte(self, value: int) -> bool: ...
    def read_line(self, timeout_ms: int = 1000) -> str: ...
    def read_all(self, timeout_ms: int = 100) -> str: ...
    def flush(self) -> None: ...


class GrblEngine:
    """
    Low-level protocol engine.

    Runs single exchanges (queued command + wait, realtime byte, status query,
    settings listing, reset/banner probe) over one transport. Holds no session
    state and no lock; callers serialize access.
    """

    def __init__(
        self,
        transport: LineTransport,
        *,
        timings: Optional[ProtocolTimings] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.timings = timings or ProtocolTimings()
        self._log = logger or logging.getLogger(__name__)
        self._clock = clock
        self._sleep = sleep

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000.0

    # ---------------- Queued commands ----------------
    def send_queued(self, line: str, timeout_ms: int) -> str:
        """Write one command line and wait for its terminal response."""
        self._log.debug("QUEUED_SEND line=%r timeout_ms=%d", line, timeout_ms)
        if not self.transport.write(line):
            self._log.warning("QUEUED_WRITE_FAILED line=%r", line)
        response = self.wait_for_response(timeout_ms)
        self._log.debug("QUEUED_RESPONSE line=%r response=%r", line, response)
        return response

    def wait_for_response(self, timeout_ms: int) -> str:
        """
        Concatenate response lines until one carries ok/error/ALARM.

        When the deadline elapses first, TIMEOUT_MARKER is appended and no
        terminal token is present.
        """
        result = ""
        start = self._clock()

        while True:
            remaining = timeout_ms - self._elapsed_ms(start)
            poll_ms = int(max(0.0, min(self.timings.line_poll_ms, remaining)))
            line = self.transport.read_line(poll_ms)

            if line:
                result += line + "\n"
                if is_terminal(line):
                    break

            if self._elapsed_ms(start) >= timeout_ms:
                self._log.warning("RESPONSE_TIMEOUT timeout_ms=%d partial=%r", timeout_ms, result)
                result += TIMEOUT_MARKER
                break

        return result

    # ---------------- Realtime commands ----------------
    def send_realtime(self, value: int) -> bool:
        ok = self.transport.write_byte(value)
        self._log.debug("REALTIME_SEND byte=0x%02x ok=%s", value & 0xFF, ok)
        return ok

    # ---------------- Status ----------------
    def query_status(self, timeout_ms: Optional[int] = None) -> str:
        """Send `?` and return the first reply line (may be empty or not a frame)."""
        if timeout_ms is None:
            timeout_ms = self.timings.status_timeout_ms
        if not self.transport.write_byte(RT_STATUS_QUERY):
            return ""
        return self.transport.read_line(timeout_ms)

    # ---------------- Settings ----------------
    def read_settings_listing(self, timeout_ms: Optional[int] = None) -> str:
        """Send `$$` and accumulate lines until one contains "ok" or the ceiling elapses."""
        if timeout_ms is None:
            timeout_ms = self.timings.settings_timeout_ms

        if not self.transport.write(CMD_LIST_SETTINGS):
            return ""

        result = ""
        start = self._clock()
        while True:
            remaining = timeout_ms - self._elapsed_ms(start)
            if remaining <= 0:
                self._log.warning("SETTINGS_LISTING_TIMEOUT timeout_ms=%d", timeout_ms)
                break
            line = self.transport.read_line(int(min(self.timings.line_poll_ms, remaining)))
            if line:
                result += line + "\n"
                if TOKEN_OK in line:
                    break
        return result

    # ---------------- Reset / banner ----------------
    def reset(self, settle_s: Optional[float] = None, read_ms: Optional[int] = None) -> Tuple[bool, Optional[str]]:
        """
        Soft-reset the controller, wait for it to reboot, read the startup text.

        Returns (reset byte accepted, banner version line or None).
        """
        settle_s = self.timings.settle_s if settle_s is None else settle_s
        read_ms = self.timings.banner_read_ms if read_ms is None else read_ms

        self.transport.flush()
        if not self.transport.write_byte(RT_SOFT_RESET):
            return False, None
        if settle_s > 0:
            self._sleep(settle_s)
        banner = self.transport.read_all(read_ms)
        self._log.debug("RESET_BANNER text=%r", banner)
        return True, extract_version(banner)

    def probe(self, settle_s: Optional[float] = None, read_ms: Optional[int] = None) -> Optional[str]:
        """Reset + banner check used for connection/auto-detection. Returns the version line."""
        _accepted, version = self.reset(settle_s, read_ms)
        return version
