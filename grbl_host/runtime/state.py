# grbl_host/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionInfo:
    """
    Snapshot of the controller session, safe to share across threads.
    """
    connected: bool
    port: str = ""
    version: str = ""

    def as_dict(self) -> dict:
        return {"connected": self.connected, "port": self.port, "version": self.version}
