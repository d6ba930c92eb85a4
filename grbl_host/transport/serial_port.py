# grbl_host/transport/serial_port.py
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import serial
from serial import SerialException

from .base import Transport

SUPPORTED_BAUDRATES = (9600, 19200, 38400, 57600, 115200, 230400)
DEFAULT_BAUDRATE = 115200

# Fixed pyserial read timeout; call deadlines are enforced by looping over reads.
_POLL_S = 0.1


class SerialPort(Transport):
    """
    Serial transport implemented via pyserial.

    Opened 8N1, raw, without hardware or software flow control. Every read is
    bounded by an explicit timeout; errors are logged and reported as False / "".
    """

    def __init__(self, *, write_timeout_s: float = 2.0, logger: Optional[logging.Logger] = None):
        self.write_timeout_s = float(write_timeout_s)
        self.ser: Optional[serial.Serial] = None
        # bytes read past the last returned line
        self._rx = bytearray()
        self._device = ""
        self._lock = threading.Lock()
        self._log = logger or logging.getLogger(__name__)

    @property
    def device(self) -> str:
        return self._device

    def open(self, path: str, baudrate: int = DEFAULT_BAUDRATE) -> bool:
        with self._lock:
            self._close_locked()

            if baudrate not in SUPPORTED_BAUDRATES:
                self._log.warning("SERIAL_BAUD_UNSUPPORTED baud=%s fallback=%d", baudrate, DEFAULT_BAUDRATE)
                baudrate = DEFAULT_BAUDRATE

            try:
                ser = serial.Serial(
                    port=path,
                    baudrate=baudrate,
                    bytesize=serial.EIGHTBITS,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE,
                    xonxoff=False,
                    rtscts=False,
                    dsrdtr=False,
                    timeout=_POLL_S,
                    write_timeout=self.write_timeout_s,
                )
            except (SerialException, OSError, ValueError) as e:
                self._log.warning("SERIAL_OPEN_FAILED path=%s err=%s", path, e)
                return False

            try:
                ser.reset_input_buffer()
                ser.reset_output_buffer()
            except (SerialException, OSError) as e:
                self._log.warning("SERIAL_CONFIGURE_FAILED path=%s err=%s", path, e)
                try:
                    ser.close()
                except (SerialException, OSError):
                    pass
                return False

            self.ser = ser
            self._device = path
            self._log.info("SERIAL_OPENED path=%s baud=%d", path, baudrate)
            return True

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def _close_locked(self) -> None:
        if self.ser is None:
            return
        try:
            self.ser.close()
        except (SerialException, OSError) as e:
            self._log.warning("SERIAL_CLOSE_FAILED path=%s err=%s", self._device, e)
        finally:
            self._log.info("SERIAL_CLOSED path=%s", self._device)
            self.ser = None
            self._device = ""
            self._rx.clear()

    def is_open(self) -> bool:
        with self._lock:
            return self.ser is not None

    def write(self, text: str) -> bool:
        with self._lock:
            if self.ser is None:
                return False

            if text and not text.endswith("\n"):
                text += "\n"
            data = text.encode("ascii", errors="replace")

            try:
                written = self.ser.write(data)
                self.ser.flush()
            except (SerialException, OSError) as e:
                self._log.warning("SERIAL_WRITE_FAILED path=%s err=%s", self._device, e)
                return False

            return written == len(data)

    def write_byte(self, value: int) -> bool:
        with self._lock:
            if self.ser is None:
                return False

            try:
                return self.ser.write(bytes([value & 0xFF])) == 1
            except (SerialException, OSError) as e:
                self._log.warning("SERIAL_WRITE_FAILED path=%s byte=0x%02x err=%s", self._device, value & 0xFF, e)
                return False

    def _fill(self, deadline: float, *, until_newline: bool) -> None:
        # caller holds self._lock; each read blocks at most _POLL_S (set once at open)
        try:
            while time.monotonic() < deadline:
                if until_newline and b"\n" in self._rx:
                    return
                self._rx += self.ser.read(max(1, self.ser.in_waiting))
        except (SerialException, OSError) as e:
            self._log.warning("SERIAL_READ_FAILED path=%s err=%s", self._device, e)

    def read_line(self, timeout_ms: int = 1000) -> str:
        with self._lock:
            if self.ser is None:
                return ""

            if b"\n" not in self._rx:
                self._fill(time.monotonic() + max(0, timeout_ms) / 1000.0, until_newline=True)

            end = self._rx.find(b"\n")
            if end >= 0:
                line = bytes(self._rx[:end])
                del self._rx[:end + 1]
            else:
                # deadline hit mid-line
                line = bytes(self._rx)
                self._rx.clear()

            if line.endswith(b"\r"):
                line = line[:-1]
            return line.decode("ascii", errors="replace")

    def read_all(self, timeout_ms: int = 100) -> str:
        with self._lock:
            if self.ser is None:
                return ""

            self._fill(time.monotonic() + max(0, timeout_ms) / 1000.0, until_newline=False)
            text = self._rx.decode("ascii", errors="replace")
            self._rx.clear()
            return text

    def flush(self) -> None:
        """Discard unread input and unsent output."""
        with self._lock:
            if self.ser is None:
                return
            self._rx.clear()
            try:
                self.ser.reset_input_buffer()
                self.ser.reset_output_buffer()
            except (SerialException, OSError) as e:
                self._log.warning("SERIAL_FLUSH_FAILED path=%s err=%s", self._device, e)

    def drain(self) -> None:
        """Block until pending output has been transmitted."""
        with self._lock:
            if self.ser is None:
                return
            try:
                self.ser.flush()
            except (SerialException, OSError) as e:
                self._log.warning("SERIAL_DRAIN_FAILED path=%s err=%s", self._device, e)
