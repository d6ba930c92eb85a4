# grbl_host/protocol/parser.py
from __future__ import annotations

import re
from typing import Dict, List, Optional

from grbl_host.model.setting import GrblSetting, SettingsCatalog
from grbl_host.model.status import GrblStatus, Position

from .defs import BANNER_TOKEN, FRAME_CLOSE, FRAME_OPEN, TERMINAL_TOKENS, TOKEN_OK

# $0=10 or $100=250.000
_SETTING_RE = re.compile(r"\$(\d+)=(-?\d+(?:\.\d*)?|-?\.\d+)")


# ---------------- Response classification ----------------

def is_ok(response: str) -> bool:
    """
    Success heuristic: the accumulated response contains "ok" anywhere.

    Deliberately lenient (substring, not an exact acknowledgment token).
    """
    return TOKEN_OK in response


def is_terminal(line: str) -> bool:
    """A line that ends a queued-command exchange (ok / error:<n> / ALARM:<n>)."""
    return any(tok in line for tok in TERMINAL_TOKENS)


def is_status_frame(line: str) -> bool:
    return line.startswith(FRAME_OPEN)


def extract_version(banner: str) -> Optional[str]:
    """First banner line containing the firmware token, e.g. "Grbl 1.1h ['$' for help]"."""
    if BANNER_TOKEN not in banner:
        return None
    for line in banner.splitlines():
        if BANNER_TOKEN in line:
            return line.strip()
    return None


# ---------------- Status frames ----------------

def _to_float(s: str) -> Optional[float]:
    try:
        return float(s)
    except ValueError:
        return None


def _to_int(s: str) -> Optional[int]:
    try:
        return int(s)
    except ValueError:
        return None


def _parse_position(value: str, pos: Position) -> None:
    # positional x,y,z; a malformed component leaves that axis at its default
    for attr, raw in zip(("x", "y", "z"), value.split(",")):
        v = _to_float(raw.strip())
        if v is not None:
            setattr(pos, attr, v)


def _split_segments(line: str) -> tuple[str, Dict[str, str]]:
    body = line.strip()[len(FRAME_OPEN):]
    end = body.find(FRAME_CLOSE)
    if end >= 0:
        body = body[:end]

    parts = body.split("|")
    segments: Dict[str, str] = {}
    for part in parts[1:]:
        key, sep, value = part.partition(":")
        if sep and key not in segments:
            segments[key] = value
    return parts[0], segments


def parse_status(line: str) -> GrblStatus:
    """
    Parse a status frame:

        <Idle|MPos:1.000,2.000,3.000|WPos:0.500,0.500,0.500|Bf:15,128|FS:500.0,0.0|Ov:100,100,100|Pn:XYZ>

    Each segment is optional; absent or malformed segments leave their fields
    at defaults. Never raises.
    """
    status = GrblStatus()
    if not is_status_frame(line.strip()):
        return status

    label, seg = _split_segments(line)

    state, _, sub = label.partition(":")
    if state:
        status.state = state
        status.sub_state = _to_int(sub) if sub else None

    if "MPos" in seg:
        _parse_position(seg["MPos"], status.machine_pos)
    if "WPos" in seg:
        _parse_position(seg["WPos"], status.work_pos)

    if "Bf" in seg:
        vals = [_to_int(v) for v in seg["Bf"].split(",")]
        if len(vals) >= 2 and None not in vals[:2]:
            status.buffer_planner_avail, status.buffer_rx_avail = vals[0], vals[1]

    if "FS" in seg:
        vals = [_to_float(v) for v in seg["FS"].split(",")]
        if len(vals) >= 2 and None not in vals[:2]:
            status.feed_rate, status.spindle_speed = vals[0], vals[1]

    # legacy feed-only report
    if status.feed_rate == 0 and "F" in seg:
        f = _to_float(seg["F"].split(",")[0])
        if f is not None:
            status.feed_rate = f

    if "Ov" in seg:
        vals = [_to_int(v) for v in seg["Ov"].split(",")]
        if len(vals) >= 3 and None not in vals[:3]:
            status.feed_override, status.rapid_override, status.spindle_override = vals[0], vals[1], vals[2]

    if "Pn" in seg:
        status.input_pins = seg["Pn"]

    return status


# ---------------- Settings listing ----------------

def parse_settings(text: str, catalog: SettingsCatalog) -> List[GrblSetting]:
    """One GrblSetting per `$<id>=<number>` line, in listing order."""
    out: List[GrblSetting] = []
    for line in text.splitlines():
        m = _SETTING_RE.search(line)
        if not m:
            continue
        sid = int(m.group(1))
        out.append(GrblSetting(id=sid, value=float(m.group(2)), description=catalog.describe(sid)))
    return out
