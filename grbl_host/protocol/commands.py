# grbl_host/protocol/commands.py
from __future__ import annotations

from typing import Optional

AXES = ("X", "Y", "Z")
MOTION_MODES = ("G0", "G1")


def fmt_number(value: float) -> str:
    """Fixed-point, three decimals (firmware parses up to 3 fractional digits)."""
    return f"{float(value):.3f}"


def build_move(
    mode: str,
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    feed: Optional[float] = None,
) -> str:
    """
    Build a G0/G1 line. Omitted axes are left out entirely (firmware keeps them unchanged).
    G1 requires a feed rate.
    """
    mode = mode.upper()
    if mode not in MOTION_MODES:
        raise ValueError(f"Unsupported motion mode '{mode}'")
    if mode == "G1" and feed is None:
        raise ValueError("G1 requires a feed rate")

    parts = [mode]
    for axis, value in zip(AXES, (x, y, z)):
        if value is not None:
            parts.append(f"{axis}{fmt_number(value)}")
    if feed is not None:
        parts.append(f"F{fmt_number(feed)}")
    return " ".join(parts)


def normalize_axis(axis: str) -> str:
    a = str(axis).strip().upper()
    if a not in AXES:
        raise ValueError(f"Invalid axis '{axis}' (expected one of {', '.join(AXES)})")
    return a


def build_jog(axis: str, distance: float, feed: float) -> str:
    """Relative jog: `$J=G91 X-1.500 F1000.000`."""
    return f"$J=G91 {normalize_axis(axis)}{fmt_number(distance)} F{fmt_number(feed)}"


def build_setting(setting_id: int, value: float) -> str:
    if int(setting_id) < 0:
        raise ValueError(f"Setting id must be non-negative, got {setting_id}")
    return f"${int(setting_id)}={fmt_number(value)}"
