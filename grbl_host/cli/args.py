# grbl_host/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional


def _setting_id(v: str) -> int:
    try:
        sid = int(v)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid setting id '{v}'") from None
    if sid < 0:
        raise argparse.ArgumentTypeError(f"Setting id must be non-negative, got {sid}")
    return sid


def _axis(v: str) -> str:
    a = v.strip().upper()
    if a not in ("X", "Y", "Z"):
        raise argparse.ArgumentTypeError(f"Invalid axis '{v}' (use X, Y or Z)")
    return a


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grbl-host", description="GRBL controller client")
    sub = parser.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="YAML config file (see grbl_host/metadata/host.yml).")
    common.add_argument("-p", "--port", help="Serial port (auto-detect if omitted).")
    common.add_argument("-b", "--baud", type=int, default=None, help="Baud rate (default: 115200).")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr.")
    common.add_argument("--log-file", default=None, help="Also write the application log to this file.")
    common.add_argument("--record-events", default=None, help="Append emitted events as JSONL to this file.")

    sub.add_parser("ports", parents=[common], help="List candidate serial ports.")

    p_status = sub.add_parser("status", parents=[common], help="Query one status report.")
    p_status.add_argument("--json", action="store_true", help="Print as JSON.")

    p_settings = sub.add_parser("settings", parents=[common], help="List $$ settings.")
    p_settings.add_argument("--json", action="store_true", help="Print as JSON.")

    p_set = sub.add_parser("set", parents=[common], help="Write one setting ($<id>=<value>).")
    p_set.add_argument("id", type=_setting_id)
    p_set.add_argument("value", type=float)

    sub.add_parser("home", parents=[common], help="Run the homing cycle ($H).")

    p_move = sub.add_parser("move", parents=[common], help="G0 move, or G1 when --feed is given.")
    p_move.add_argument("--x", type=float, default=None)
    p_move.add_argument("--y", type=float, default=None)
    p_move.add_argument("--z", type=float, default=None)
    p_move.add_argument("--feed", type=float, default=None, help="Feed rate (mm/min); selects G1.")

    p_jog = sub.add_parser("jog", parents=[common], help="Relative jog ($J=G91 ...).")
    p_jog.add_argument("axis", type=_axis)
    p_jog.add_argument("distance", type=float)
    p_jog.add_argument("--feed", type=float, required=True)

    sub.add_parser("cancel-jog", parents=[common], help="Cancel an active jog (0x85).")
    sub.add_parser("hold", parents=[common], help="Feed hold (!).")
    sub.add_parser("resume", parents=[common], help="Cycle start (~).")
    sub.add_parser("reset", parents=[common], help="Soft reset (Ctrl-X).")
    sub.add_parser("unlock", parents=[common], help="Clear alarm lock ($X).")

    p_send = sub.add_parser("send", parents=[common], help="Send a raw command line.")
    p_send.add_argument("command", nargs="+")
    p_send.add_argument("--timeout-ms", type=int, default=None)

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
