# grbl_host/cli/commands.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from grbl_host.app.config import GrblHostConfig, load_config
from grbl_host.app.runner import AppRun, start_run
from grbl_host.app.sinks import EventTraceLogger, FanoutEventSink
from grbl_host.core.errors import CommandFailedError, GrblHostError
from grbl_host.interfaces.event_sink import EventSink, GrblEvent
from grbl_host.model.setting import GrblSetting
from grbl_host.model.status import GrblStatus
from grbl_host.protocol.parser import is_ok
from grbl_host.transport.discovery import describe_ports


# ---------------- Event sink ----------------

class PrintEventSink(EventSink):
    """Print emitted events to stdout."""

    def on_event(self, event: GrblEvent) -> None:
        data = f" {dict(event.payload)}" if event.payload else ""
        print(f"EVENT {event.type}{data}")

    def close(self) -> None:
        return None


# ---------------- Logging ----------------

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


_CONSOLE_HANDLER = "grbl-host-console"


def _attach(handler: logging.Handler, level: int) -> None:
    root = logging.getLogger()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    # records below the root level never reach any handler
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


def configure_console_logging(verbose: bool) -> None:
    """stderr log output; -v switches it from WARNING to DEBUG. Safe to call twice."""
    level = logging.DEBUG if verbose else logging.WARNING
    for h in logging.getLogger().handlers:
        if h.get_name() == _CONSOLE_HANDLER:
            h.setLevel(level)
            return

    sh = logging.StreamHandler(sys.stderr)
    sh.set_name(_CONSOLE_HANDLER)
    _attach(sh, level)


def configure_file_logging(log_path: Path) -> None:
    """Mirror INFO+ records into `log_path` (one handler per file)."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(log_path.resolve())
    if any(getattr(h, "baseFilename", None) == target for h in logging.getLogger().handlers):
        return

    _attach(logging.FileHandler(log_path, encoding="utf-8", delay=True), logging.INFO)


# ---------------- Printing ----------------

def print_status(st: GrblStatus) -> None:
    m, w = st.machine_pos, st.work_pos
    state = st.state if st.sub_state is None else f"{st.state}:{st.sub_state}"
    print(f"State:   {state}")
    print(f"MPos:    X={m.x:.3f} Y={m.y:.3f} Z={m.z:.3f}")
    print(f"WPos:    X={w.x:.3f} Y={w.y:.3f} Z={w.z:.3f}")
    print(f"Feed:    {st.feed_rate:g}  Spindle: {st.spindle_speed:g}")
    print(f"Ov:      feed={st.feed_override}% rapid={st.rapid_override}% spindle={st.spindle_override}%")
    print(f"Buffer:  planner={st.buffer_planner_avail} rx={st.buffer_rx_avail}")
    if st.input_pins:
        print(f"Pins:    {st.input_pins}")


def print_settings(settings: List[GrblSetting]) -> None:
    if not settings:
        print("Settings: (none)")
        return
    for s in settings:
        print(f"${s.id}={s.value:g}  ({s.description})")


# ---------------- Run helpers ----------------

def resolve_config(args: argparse.Namespace) -> GrblHostConfig:
    cfg = load_config(args.config) if getattr(args, "config", None) else GrblHostConfig()
    return cfg.with_overrides(port=getattr(args, "port", None), baudrate=getattr(args, "baud", None))


def _build_sink(args: argparse.Namespace) -> FanoutEventSink:
    sink = FanoutEventSink([PrintEventSink()])
    if getattr(args, "record_events", None):
        sink.add(EventTraceLogger(Path(args.record_events)))
    return sink


def _with_client(args: argparse.Namespace, action: Callable[[AppRun], int]) -> int:
    sink = _build_sink(args)
    try:
        run = start_run(resolve_config(args), event_sink=sink)
        print(f"Connected: {run.client.port} ({run.client.version})")
        try:
            return action(run)
        finally:
            run.client.disconnect()
    finally:
        sink.close()


def _require(ok: bool, what: str, *, hint: Optional[str] = None) -> int:
    if not ok:
        raise CommandFailedError(f"{what} failed.", hint=hint)
    print(f"{what}: ok")
    return 0


# ---------------- Commands ----------------

def cmd_ports(args: argparse.Namespace) -> int:
    ports = describe_ports()
    if not ports:
        print("No candidate ports (/dev/ttyUSB*, /dev/ttyACM*).")
        return 0
    for device, desc in ports:
        print(f"{device}  {desc}".rstrip())
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    def _action(run: AppRun) -> int:
        st = run.client.status()
        if args.json:
            print(json.dumps(st.as_dict(), indent=2))
        else:
            print_status(st)
        return 0

    return _with_client(args, _action)


def cmd_settings(args: argparse.Namespace) -> int:
    def _action(run: AppRun) -> int:
        settings = run.client.get_settings()
        if args.json:
            print(json.dumps([s.as_dict() for s in settings], indent=2))
        else:
            print_settings(settings)
        return 0

    return _with_client(args, _action)


def cmd_set(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.set_setting(args.id, args.value), f"${args.id}"))


def cmd_home(args: argparse.Namespace) -> int:
    return _with_client(
        args,
        lambda run: _require(run.client.home(), "Homing", hint="Check $22 (homing enable) and limit switches."),
    )


def cmd_move(args: argparse.Namespace) -> int:
    if args.x is None and args.y is None and args.z is None:
        raise GrblHostError("Nothing to move.", hint="Give at least one of --x, --y, --z.")

    def _action(run: AppRun) -> int:
        if args.feed is None:
            return _require(run.client.move_g0(args.x, args.y, args.z), "G0")
        return _require(run.client.move_g1(args.x, args.y, args.z, feed=args.feed), "G1")

    return _with_client(args, _action)


def cmd_jog(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.jog(args.axis, args.distance, args.feed), "Jog"))


def cmd_cancel_jog(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.cancel_jog(), "Jog cancel"))


def cmd_hold(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.feed_hold(), "Feed hold"))


def cmd_resume(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.cycle_start(), "Cycle start"))


def cmd_reset(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.soft_reset(), "Soft reset"))


def cmd_unlock(args: argparse.Namespace) -> int:
    return _with_client(args, lambda run: _require(run.client.unlock(), "Unlock"))


def cmd_send(args: argparse.Namespace) -> int:
    line = " ".join(args.command)

    def _action(run: AppRun) -> int:
        response = run.client.send_command(line, timeout_ms=args.timeout_ms)
        print(response.rstrip("\n"))
        return 0 if is_ok(response) else 1

    return _with_client(args, _action)
