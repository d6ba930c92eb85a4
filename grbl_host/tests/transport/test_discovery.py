from __future__ import annotations

from types import SimpleNamespace

import grbl_host.transport.discovery as disc_mod


def _port(device, *, vid=None, pid=None, manufacturer=None, product=None, description=""):
    return SimpleNamespace(
        device=device,
        vid=vid,
        pid=pid,
        manufacturer=manufacturer,
        product=product,
        description=description,
    )


def test_filter_keeps_usb_and_acm_sorted():
    devices = ["/dev/ttyS0", "/dev/ttyUSB1", "/dev/ttyACM0", "/dev/ttyUSB0", "/dev/ttyAMA0"]
    assert disc_mod.filter_candidates(devices) == ["/dev/ttyACM0", "/dev/ttyUSB0", "/dev/ttyUSB1"]


def test_filter_empty():
    assert disc_mod.filter_candidates([]) == []


def test_list_serial_ports_uses_enumeration(monkeypatch):
    monkeypatch.setattr(
        disc_mod.list_ports,
        "comports",
        lambda: [_port("/dev/ttyUSB0"), _port("/dev/ttyS4"), _port("/dev/ttyACM1")],
    )
    assert disc_mod.list_serial_ports() == ["/dev/ttyACM1", "/dev/ttyUSB0"]


def test_enumeration_error_yields_no_ports(monkeypatch):
    def boom():
        raise OSError("no /dev")

    monkeypatch.setattr(disc_mod.list_ports, "comports", boom)
    assert disc_mod.list_serial_ports() == []
    assert disc_mod.describe_ports() == []


def test_describe_ports_includes_usb_ids(monkeypatch):
    monkeypatch.setattr(
        disc_mod.list_ports,
        "comports",
        lambda: [
            _port("/dev/ttyUSB0", vid=0x1A86, pid=0x7523, product="USB Serial"),
            _port("/dev/ttyACM0", manufacturer="Arduino", product="Uno"),
            _port("/dev/ttyS0", description="ttyS0"),
        ],
    )
    assert disc_mod.describe_ports() == [
        ("/dev/ttyACM0", "Arduino Uno"),
        ("/dev/ttyUSB0", "[1A86:7523] USB Serial"),
    ]
