# grbl_host/model/setting.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping

UNKNOWN_SETTING = "Unknown setting"


@dataclass(frozen=True)
class GrblSetting:
    """One `$<id>=<value>` entry of the firmware-resident configuration."""
    id: int
    value: float
    description: str = UNKNOWN_SETTING

    def as_dict(self) -> dict:
        return {"id": self.id, "value": self.value, "description": self.description}


class SettingsCatalog:
    """
    Static id -> human-readable description table.

    Contains only metadata; values always come from the controller.
    """

    def __init__(self, descriptions: Mapping[int, str]):
        self._descriptions: Dict[int, str] = {int(k): str(v) for k, v in descriptions.items()}

    @classmethod
    def default(cls) -> "SettingsCatalog":
        """Catalog loaded from the packaged metadata/settings.yml."""
        from .loader import load_settings_catalog

        return load_settings_catalog()

    def describe(self, setting_id: int) -> str:
        return self._descriptions.get(int(setting_id), UNKNOWN_SETTING)

    def ids(self) -> list[int]:
        return sorted(self._descriptions.keys())

    def __contains__(self, setting_id: object) -> bool:
        return setting_id in self._descriptions

    def __len__(self) -> int:
        return len(self._descriptions)

    def __repr__(self) -> str:
        return f"SettingsCatalog(entries={len(self._descriptions)})"
