# grbl_host/core/errors.py
from __future__ import annotations


class GrblHostError(Exception):
    """
    Base class for expected operational errors raised by the application layer.

    The protocol client itself never raises; these are produced by config
    loading, app wiring and the CLI when a client call reports failure.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, API responses, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no hardware access yet)
# ---------------------------------------------------------------------------

class ConfigError(GrblHostError):
    """
    Configuration is invalid.

    Examples:
      - unknown key in the YAML config
      - wrong value type (e.g. baudrate: "fast")
      - unknown transport driver
      - missing or malformed settings catalog
    """
    code = "config_error"


# ---------------------------------------------------------------------------
# Connection lifecycle errors
# ---------------------------------------------------------------------------

class DeviceConnectError(GrblHostError):
    """
    No controller session could be established.

    Examples:
      - port not found / permission denied
      - no candidate port answered with the firmware banner
    """
    code = "device_connect_error"


# ---------------------------------------------------------------------------
# Command errors
# ---------------------------------------------------------------------------

class CommandFailedError(GrblHostError):
    """
    A command was sent but the controller did not acknowledge it.

    Examples:
      - error:<n> / ALARM:<n> response
      - no terminal token before the timeout
      - realtime byte not accepted by the transport
    """
    code = "command_failed"
