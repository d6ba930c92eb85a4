# grbl_host/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import yaml

from grbl_host.app.config import GrblHostConfig
from grbl_host.core.errors import ConfigError, DeviceConnectError
from grbl_host.interfaces.event_sink import EventSink
from grbl_host.model.loader import load_settings_catalog
from grbl_host.model.setting import SettingsCatalog
from grbl_host.runtime.grbl_client import GrblClient, PortLister
from grbl_host.transport.discovery import list_serial_ports
from grbl_host.transport.registry import TransportDriverRegistry


@dataclass(frozen=True)
class AppRun:
    client: GrblClient
    config: GrblHostConfig


def load_catalog(cfg: GrblHostConfig) -> SettingsCatalog:
    try:
        return load_settings_catalog(cfg.settings_catalog)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(
            "Failed to load settings catalog.",
            hint=str(e),
            details={"settings_catalog": cfg.settings_catalog or "<packaged>"},
        ) from None


def build_client(
    cfg: GrblHostConfig,
    *,
    drivers: Optional[TransportDriverRegistry] = None,
    port_lister: PortLister = list_serial_ports,
    event_sink: Optional[EventSink] = None,
    logger: Optional[logging.Logger] = None,
) -> GrblClient:
    """
    Construct a GrblClient from config. Does NOT connect.

    `drivers` and `port_lister` are injectable for tests and custom transports.
    """
    drivers = drivers or TransportDriverRegistry.default()
    if not drivers.has(cfg.driver):
        raise ConfigError(
            f"Unknown transport driver '{cfg.driver}'.",
            hint=f"Known drivers: {', '.join(drivers.drivers())}",
            details={"driver": cfg.driver},
        )

    return GrblClient(
        transport_factory=drivers.factory(cfg.driver),
        port_lister=port_lister,
        timings=cfg.timings,
        catalog=load_catalog(cfg),
        event_sink=event_sink,
        logger=logger,
    )


def start_run(
    cfg: GrblHostConfig,
    *,
    drivers: Optional[TransportDriverRegistry] = None,
    port_lister: PortLister = list_serial_ports,
    event_sink: Optional[EventSink] = None,
    logger: Optional[logging.Logger] = None,
) -> AppRun:
    """Build a client and connect it; raises DeviceConnectError when no controller answers."""
    client = build_client(
        cfg,
        drivers=drivers,
        port_lister=port_lister,
        event_sink=event_sink,
        logger=logger,
    )

    if not client.connect(cfg.port, cfg.baudrate):
        if cfg.port:
            raise DeviceConnectError(
                f"No GRBL controller answered on {cfg.port}.",
                hint="Check the cable, permissions (dialout group) and baud rate.",
                details={"port": cfg.port, "baudrate": cfg.baudrate},
            )
        candidates = client.list_ports()
        raise DeviceConnectError(
            "Could not auto-detect a GRBL controller.",
            hint=(
                f"Probed: {', '.join(candidates)}. Specify one with --port."
                if candidates
                else "No /dev/ttyUSB* or /dev/ttyACM* ports found."
            ),
            details={"candidates": candidates, "baudrate": cfg.baudrate},
        )

    return AppRun(client=client, config=cfg)
