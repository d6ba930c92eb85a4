# protocol/__init__.py

from .defs import ProtocolTimings, TIMEOUT_MARKER
from .commands import build_jog, build_move, build_setting
from .parser import extract_version, is_ok, is_status_frame, is_terminal, parse_settings, parse_status
from .engine import GrblEngine

__all__ = [
    "ProtocolTimings", "TIMEOUT_MARKER",
    "build_move", "build_jog", "build_setting",
    "parse_status", "parse_settings", "is_ok", "is_terminal", "is_status_frame", "extract_version",
    "GrblEngine",
]
