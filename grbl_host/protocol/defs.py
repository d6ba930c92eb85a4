# grbl_host/protocol/defs.py
from __future__ import annotations

from dataclasses import dataclass

# Realtime (single-byte, unterminated) commands
RT_STATUS_QUERY = ord("?")
RT_FEED_HOLD = ord("!")
RT_CYCLE_START = ord("~")
RT_SOFT_RESET = 0x18      # Ctrl-X
RT_JOG_CANCEL = 0x85

# Queued (newline-terminated) system commands
CMD_HOME = "$H"
CMD_UNLOCK = "$X"
CMD_LIST_SETTINGS = "$$"

# Response tokens
TOKEN_OK = "ok"
TOKEN_ERROR = "error"
TOKEN_ALARM = "ALARM"
TERMINAL_TOKENS = (TOKEN_OK, TOKEN_ERROR, TOKEN_ALARM)

BANNER_TOKEN = "Grbl"
FRAME_OPEN = "<"
FRAME_CLOSE = ">"

# Appended to an accumulated response when no terminal token arrived in time.
TIMEOUT_MARKER = "timeout"

NOT_CONNECTED_RESPONSE = "error: not connected"

DEFAULT_BAUDRATE = 115200


@dataclass(frozen=True)
class ProtocolTimings:
    """
    Timeouts and delays of the line protocol.

    settle_s: wait after a soft reset before reading the startup banner.
    """
    settle_s: float = 2.0
    banner_read_ms: int = 1000
    command_timeout_ms: int = 5000
    home_timeout_ms: int = 30000
    ack_timeout_ms: int = 2000
    status_timeout_ms: int = 500
    settings_timeout_ms: int = 5000
    reset_read_ms: int = 500
    line_poll_ms: int = 500

    def as_dict(self) -> dict:
        return {
            "settle_s": self.settle_s,
            "banner_read_ms": self.banner_read_ms,
            "command_timeout_ms": self.command_timeout_ms,
            "home_timeout_ms": self.home_timeout_ms,
            "ack_timeout_ms": self.ack_timeout_ms,
            "status_timeout_ms": self.status_timeout_ms,
            "settings_timeout_ms": self.settings_timeout_ms,
            "reset_read_ms": self.reset_read_ms,
            "line_poll_ms": self.line_poll_ms,
        }
