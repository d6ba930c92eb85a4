from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class GrblEvent:
    """
    Session lifecycle / command result event.
    Keep this small + stable; put details into payload.
    """
    type: str                   # e.g. "grbl_connected"
    payload: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utc_now)

    def as_dict(self) -> dict:
        return {
            "event": self.type,
            "data": dict(self.payload),
            "timestamp": self.timestamp.isoformat(),
        }


class EventSink(Protocol):
    def on_event(self, event: GrblEvent) -> None: ...
    def close(self) -> None: ...
