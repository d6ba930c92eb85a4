from __future__ import annotations

import pytest

from grbl_host.app.config import GrblHostConfig, config_from_mapping, load_config
from grbl_host.core.errors import ConfigError
from grbl_host.model.loader import metadata_root
from grbl_host.protocol.defs import ProtocolTimings


def test_defaults():
    cfg = GrblHostConfig()
    assert cfg.port is None
    assert cfg.baudrate == 115200
    assert cfg.driver == "serial"
    assert cfg.timings == ProtocolTimings()
    assert cfg.timings.settle_s == 2.0
    assert cfg.timings.home_timeout_ms == 30000


def test_packaged_example_config_matches_defaults():
    cfg = load_config(metadata_root() / "host.yml")
    assert cfg == GrblHostConfig()


def test_mapping_with_timings():
    cfg = config_from_mapping(
        {"port": "/dev/ttyACM0", "baudrate": 57600, "timings": {"settle_s": 1, "home_timeout_ms": 60000}}
    )
    assert cfg.port == "/dev/ttyACM0"
    assert cfg.baudrate == 57600
    assert cfg.timings.settle_s == 1.0
    assert isinstance(cfg.timings.settle_s, float)
    assert cfg.timings.home_timeout_ms == 60000
    assert cfg.timings.command_timeout_ms == 5000


def test_overrides_skip_none():
    cfg = GrblHostConfig(port="/dev/ttyUSB0").with_overrides(port=None, baudrate=9600)
    assert cfg.port == "/dev/ttyUSB0"
    assert cfg.baudrate == 9600


def test_unknown_key_rejected():
    with pytest.raises(ConfigError) as ei:
        config_from_mapping({"speed": 1})
    assert ei.value.code == "config_error"
    assert ei.value.details["key"] == "speed"


def test_unknown_timing_key_rejected():
    with pytest.raises(ConfigError):
        config_from_mapping({"timings": {"poll_ms": 10}})


def test_wrong_type_rejected():
    with pytest.raises(ConfigError):
        config_from_mapping({"baudrate": "fast"})
    with pytest.raises(ConfigError):
        config_from_mapping({"baudrate": True})
    with pytest.raises(ConfigError):
        config_from_mapping({"timings": {"ack_timeout_ms": 1.5}})


def test_negative_number_rejected():
    with pytest.raises(ConfigError):
        config_from_mapping({"timings": {"settle_s": -1}})


def test_zero_line_poll_rejected():
    with pytest.raises(ConfigError) as ei:
        config_from_mapping({"timings": {"line_poll_ms": 0}})
    assert ei.value.details["key"] == "line_poll_ms"

    assert config_from_mapping({"timings": {"line_poll_ms": 1}}).timings.line_poll_ms == 1


def test_timings_must_be_mapping():
    with pytest.raises(ConfigError):
        config_from_mapping({"timings": [1, 2]})


def test_load_config_file(tmp_path):
    p = tmp_path / "host.yml"
    p.write_text("port: /dev/ttyUSB3\ntimings:\n  settle_s: 0.5\n", encoding="utf-8")

    cfg = load_config(p)
    assert cfg.port == "/dev/ttyUSB3"
    assert cfg.timings.settle_s == 0.5


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yml")


def test_load_config_bad_yaml(tmp_path):
    p = tmp_path / "host.yml"
    p.write_text("port: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_load_config_non_mapping(tmp_path):
    p = tmp_path / "host.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_empty_file_gives_defaults(tmp_path):
    p = tmp_path / "host.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == GrblHostConfig()
