from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Abstract byte channel to one physical device (serial, USB CDC, ...).

    Contract:
      - open(path, baudrate)/close() manage the underlying connection.
        open() returns False on failure and retains no handle; close() is idempotent.
      - write(text) appends a newline terminator if missing and drains output.
      - write_byte(value) sends exactly one unterminated byte (realtime control codes).
      - read_line(timeout_ms) returns the accumulated line without its CR/LF, possibly
        empty when the deadline elapses.
      - read_all(timeout_ms) returns everything that arrived within the window.
      - Failures are reported by return value, never raised.
    """

    @abstractmethod
    def open(self, path: str, baudrate: int = 115200) -> bool: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def write(self, text: str) -> bool: ...

    @abstractmethod
    def write_byte(self, value: int) -> bool: ...

    @abstractmethod
    def read_line(self, timeout_ms: int = 1000) -> str: ...

    @abstractmethod
    def read_all(self, timeout_ms: int = 100) -> str: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def drain(self) -> None: ...

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
