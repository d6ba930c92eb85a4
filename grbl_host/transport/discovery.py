# grbl_host/transport/discovery.py
from __future__ import annotations

import logging
import os
from typing import Iterable, List, Tuple

from serial.tools import list_ports

# USB-serial bridges (FTDI, CH340, CP210x) and USB CDC ACM boards (Arduino).
CANDIDATE_PREFIXES = ("ttyUSB", "ttyACM")

_log = logging.getLogger(__name__)


def filter_candidates(devices: Iterable[str]) -> List[str]:
    """Keep device paths whose base name matches a recognized prefix, sorted."""
    return sorted(d for d in devices if os.path.basename(d).startswith(CANDIDATE_PREFIXES))


def _comports() -> list:
    try:
        return list(list_ports.comports())
    except OSError as e:
        _log.warning("PORT_ENUMERATION_FAILED err=%s", e)
        return []


def list_serial_ports() -> List[str]:
    """Return candidate controller ports (e.g. /dev/ttyACM0, /dev/ttyUSB0) in lexicographic order."""
    return filter_candidates(p.device for p in _comports())


def describe_ports() -> List[Tuple[str, str]]:
    """Return (device, description) pairs for the candidate ports, for display."""
    infos = {p.device: p for p in _comports()}
    out: List[Tuple[str, str]] = []
    for device in filter_candidates(infos.keys()):
        p = infos[device]
        desc = " ".join(filter(None, [p.manufacturer, p.product])) or (p.description or "")
        if p.vid is not None and p.pid is not None:
            desc = f"[{p.vid:04X}:{p.pid:04X}] {desc}".strip()
        out.append((device, desc))
    return out
