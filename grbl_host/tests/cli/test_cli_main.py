from __future__ import annotations

import json
import logging

import pytest

import grbl_host.cli.commands as cmd_mod
import grbl_host.cli.main as main_mod
from grbl_host.app.runner import AppRun
from grbl_host.cli.args import parse_args
from grbl_host.core.errors import DeviceConnectError
from grbl_host.model.setting import GrblSetting
from grbl_host.model.status import GrblStatus


class FakeClient:
    def __init__(self, ok=True):
        self.ok = ok
        self.port = "/dev/ttyUSB0"
        self.version = "Grbl 1.1h ['$' for help]"
        self.calls = []
        self.disconnected = False

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        return self.ok

    def status(self):
        return GrblStatus(state="Idle")

    def get_settings(self):
        return [GrblSetting(id=100, value=250.0, description="X-axis steps per millimeter")]

    def set_setting(self, *a):
        return self._record("set_setting", *a)

    def home(self):
        return self._record("home")

    def move_g0(self, *a):
        return self._record("move_g0", *a)

    def move_g1(self, *a, **kw):
        return self._record("move_g1", *a, **kw)

    def jog(self, *a):
        return self._record("jog", *a)

    def cancel_jog(self):
        return self._record("cancel_jog")

    def feed_hold(self):
        return self._record("feed_hold")

    def cycle_start(self):
        return self._record("cycle_start")

    def soft_reset(self):
        return self._record("soft_reset")

    def unlock(self):
        return self._record("unlock")

    def send_command(self, cmd, timeout_ms=None):
        self.calls.append(("send_command", (cmd,), {"timeout_ms": timeout_ms}))
        return "ok\n" if self.ok else "error:20\n"

    def disconnect(self):
        self.disconnected = True


@pytest.fixture
def fake(monkeypatch):
    client = FakeClient()
    seen = {}

    def fake_start_run(cfg, *, event_sink=None, **kw):
        seen["cfg"] = cfg
        return AppRun(client=client, config=cfg)

    monkeypatch.setattr(cmd_mod, "start_run", fake_start_run)
    monkeypatch.setattr(main_mod, "configure_console_logging", lambda verbose: None)
    client.seen = seen
    return client


def test_parse_args_common_flags():
    args = parse_args(["jog", "x", "-1.5", "--feed", "1000", "-p", "/dev/ttyACM0", "-b", "57600"])
    assert args.cmd == "jog"
    assert args.axis == "X"
    assert args.distance == -1.5
    assert args.port == "/dev/ttyACM0"
    assert args.baud == 57600


def test_parse_args_rejects_bad_axis():
    with pytest.raises(SystemExit):
        parse_args(["jog", "A", "1", "--feed", "100"])


def test_ports(monkeypatch, capsys):
    monkeypatch.setattr(main_mod, "configure_console_logging", lambda verbose: None)
    monkeypatch.setattr(cmd_mod, "describe_ports", lambda: [("/dev/ttyUSB0", "[1A86:7523] USB Serial")])

    assert main_mod.main(["ports"]) == 0
    assert "/dev/ttyUSB0  [1A86:7523] USB Serial" in capsys.readouterr().out


def test_status_json(fake, capsys):
    assert main_mod.main(["status", "--json", "-p", "/dev/ttyUSB0"]) == 0

    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{"):])
    assert payload["state"] == "Idle"
    assert fake.seen["cfg"].port == "/dev/ttyUSB0"
    assert fake.disconnected


def test_settings_listing(fake, capsys):
    assert main_mod.main(["settings"]) == 0
    assert "$100=250  (X-axis steps per millimeter)" in capsys.readouterr().out


def test_move_selects_g1_with_feed(fake):
    assert main_mod.main(["move", "--x", "1", "--feed", "300"]) == 0
    assert fake.calls == [("move_g1", (1.0, None, None), {"feed": 300.0})]


def test_move_without_axes_is_an_error(fake, capsys):
    assert main_mod.main(["move"]) == 1
    assert "Nothing to move" in capsys.readouterr().out


def test_failed_command_reports_error(fake, capsys):
    fake.ok = False

    assert main_mod.main(["home"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: Homing failed." in out
    assert "Hint:" in out
    assert fake.disconnected


def test_send_joins_words_and_maps_exit_code(fake, capsys):
    assert main_mod.main(["send", "G4", "P0.5", "--timeout-ms", "2000"]) == 0
    assert fake.calls[-1] == ("send_command", ("G4 P0.5",), {"timeout_ms": 2000})

    fake.ok = False
    assert main_mod.main(["send", "G5"]) == 1
    assert "error:20" in capsys.readouterr().out


def test_connect_error_prints_hint(monkeypatch, capsys):
    def failing_start_run(cfg, **kw):
        raise DeviceConnectError("Could not auto-detect a GRBL controller.", hint="Specify one with --port.")

    monkeypatch.setattr(cmd_mod, "start_run", failing_start_run)
    monkeypatch.setattr(main_mod, "configure_console_logging", lambda verbose: None)

    assert main_mod.main(["unlock"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: Could not auto-detect a GRBL controller." in out
    assert "Hint: Specify one with --port." in out


def test_missing_config_file(fake, tmp_path, capsys):
    assert main_mod.main(["status", "--config", str(tmp_path / "nope.yml")]) == 1
    assert "Config file not found" in capsys.readouterr().out


def test_record_events_option(fake, tmp_path):
    trace = tmp_path / "trace.jsonl"
    assert main_mod.main(["hold", "--record-events", str(trace)]) == 0
    assert fake.calls == [("feed_hold", (), {})]


def test_file_logging_is_idempotent(tmp_path):
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    path = tmp_path / "logs" / "app.log"
    try:
        cmd_mod.configure_file_logging(path)
        cmd_mod.configure_file_logging(path)

        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert path.parent.is_dir()
    finally:
        for h in [h for h in root.handlers if h not in before]:
            root.removeHandler(h)
            h.close()
        root.setLevel(level)
