# grbl_host/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from grbl_host.core.errors import ConfigError
from grbl_host.protocol.defs import DEFAULT_BAUDRATE, ProtocolTimings


@dataclass(frozen=True)
class GrblHostConfig:
    port: Optional[str] = None          # None = auto-detect
    baudrate: int = DEFAULT_BAUDRATE
    driver: str = "serial"
    settings_catalog: Optional[str] = None   # None = packaged metadata/settings.yml
    timings: ProtocolTimings = field(default_factory=ProtocolTimings)

    def with_overrides(self, **overrides: Any) -> "GrblHostConfig":
        """Return a copy with the non-None overrides applied (CLI flags beat file values)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


# key -> schema type, mirrors GrblHostConfig (timings handled separately)
_TOP_LEVEL_SCHEMA: Dict[str, str] = {
    "port": "str",
    "baudrate": "int",
    "driver": "str",
    "settings_catalog": "str",
}

_TIMING_SCHEMA: Dict[str, str] = {
    f.name: ("float" if f.type in ("float", float) else "int") for f in fields(ProtocolTimings)
}


def _cast_param(value: Any, type_name: str) -> Any:
    if value is None:
        return None

    if type_name == "str":
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        return value

    if type_name == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        return value

    if type_name == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        return float(value)

    raise TypeError(f"Unknown schema type '{type_name}'")


def _resolve(section: str, data: Mapping[str, Any], schema: Mapping[str, str]) -> Dict[str, Any]:
    resolved: Dict[str, Any] = {}

    for key in data:
        if key not in schema:
            raise ConfigError(
                f"Unknown config key '{key}' in '{section}'.",
                hint=f"Valid keys: {sorted(schema.keys())}",
                details={"section": section, "key": key},
            ) from None

    for key, value in data.items():
        try:
            resolved[key] = _cast_param(value, schema[key])
        except TypeError as e:
            raise ConfigError(
                f"Invalid value for config key '{key}' in '{section}'.",
                hint=str(e),
                details={"section": section, "key": key, "value": value, "expected_type": schema[key]},
            ) from None

        if schema[key] in ("int", "float") and resolved[key] is not None and resolved[key] < 0:
            raise ConfigError(
                f"Config key '{key}' in '{section}' must be non-negative.",
                details={"section": section, "key": key, "value": value},
            )

    return resolved


def config_from_mapping(data: Mapping[str, Any]) -> GrblHostConfig:
    data = dict(data)
    timings_raw = data.pop("timings", None) or {}
    if not isinstance(timings_raw, dict):
        raise ConfigError(
            "Config key 'timings' must be a mapping.",
            details={"value": timings_raw},
        )

    top = _resolve("root", data, _TOP_LEVEL_SCHEMA)
    timings_kw = _resolve("timings", timings_raw, _TIMING_SCHEMA)
    # a zero poll turns every response wait into a busy loop
    if timings_kw.get("line_poll_ms") == 0:
        raise ConfigError(
            "Config key 'line_poll_ms' in 'timings' must be positive.",
            hint="Use the default 500 ms or any value above 0.",
            details={"section": "timings", "key": "line_poll_ms", "value": 0},
        )
    timings = ProtocolTimings(**timings_kw)
    return GrblHostConfig(timings=timings, **top)


def load_config(path: str | Path) -> GrblHostConfig:
    """
    Load a YAML config file:

        port: /dev/ttyUSB0        # omit for auto-detect
        baudrate: 115200
        driver: serial
        timings:
          settle_s: 2.0
          home_timeout_ms: 30000
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(
            f"Config file not found: {path}",
            hint="Pass --config with an existing YAML file.",
            details={"path": str(path)},
        ) from None
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Config file is not valid YAML: {path}",
            hint=str(e),
            details={"path": str(path)},
        ) from None

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file must contain a mapping: {path}",
            details={"path": str(path)},
        )

    return config_from_mapping(data)
