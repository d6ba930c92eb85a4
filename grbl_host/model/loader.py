# grbl_host/model/loader.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import yaml

from .setting import SettingsCatalog


def metadata_root() -> Path:
    # <repo>/grbl_host/metadata, based on this file's location
    return Path(__file__).resolve().parents[1] / "metadata"


DEFAULT_SETTINGS_FILE = "settings.yml"


def load_settings_catalog(path: Optional[str | Path] = None) -> SettingsCatalog:
    """
    Load the settings description table from YAML.

    Expected layout:

        settings:
          0: Step pulse time (microseconds)
          100: X-axis steps per millimeter

    Raises FileNotFoundError, ValueError or yaml.YAMLError on bad input.
    """
    full_path = Path(path) if path is not None else metadata_root() / DEFAULT_SETTINGS_FILE
    if not full_path.exists():
        raise FileNotFoundError(f"Missing settings catalog: {full_path}")

    with open(full_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{full_path.name} must contain a mapping")

    settings = data.get("settings")
    if not isinstance(settings, dict):
        raise ValueError(f"{full_path.name} is missing 'settings' root node")

    descriptions: Dict[int, str] = {}
    for sid_raw, desc in settings.items():
        try:
            sid = int(sid_raw)
        except (TypeError, ValueError):
            raise ValueError(f"Setting id {sid_raw!r} is not an integer") from None
        if sid < 0:
            raise ValueError(f"Setting id {sid} must be non-negative")
        if not isinstance(desc, str) or not desc.strip():
            raise ValueError(f"Setting {sid} is missing a description")
        descriptions[sid] = desc.strip()

    return SettingsCatalog(descriptions)
