# grbl_host/model/status.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

# Machine states reported by GRBL 1.1 status frames.
MACHINE_STATES = ("Idle", "Run", "Hold", "Jog", "Alarm", "Door", "Check", "Home", "Sleep")

STATE_UNKNOWN = "Unknown"
STATE_DISCONNECTED = "Disconnected"


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass
class GrblStatus:
    """
    One status report from the controller.

    Never cached: each query yields a fresh instance. Fields missing from the
    parsed frame keep their defaults (zeros, overrides at 100%).
    """
    state: str = STATE_UNKNOWN
    sub_state: Optional[int] = None
    machine_pos: Position = field(default_factory=Position)
    work_pos: Position = field(default_factory=Position)
    feed_rate: float = 0.0
    spindle_speed: float = 0.0
    feed_override: int = 100
    rapid_override: int = 100
    spindle_override: int = 100
    input_pins: str = ""
    buffer_planner_avail: int = 0
    buffer_rx_avail: int = 0

    @property
    def is_known_state(self) -> bool:
        return self.state in MACHINE_STATES

    def as_dict(self) -> dict:
        return {
            "state": self.state,
            "machinePosition": self.machine_pos.as_dict(),
            "workPosition": self.work_pos.as_dict(),
            "feed": self.feed_rate,
            "spindle": self.spindle_speed,
            "override": {
                "feed": self.feed_override,
                "rapid": self.rapid_override,
                "spindle": self.spindle_override,
            },
            "inputPins": self.input_pins,
            "buffer": {
                "planner": self.buffer_planner_avail,
                "rx": self.buffer_rx_avail,
            },
        }
