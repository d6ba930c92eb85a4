from .status import GrblStatus, Position, MACHINE_STATES, STATE_UNKNOWN, STATE_DISCONNECTED
from .setting import GrblSetting, SettingsCatalog, UNKNOWN_SETTING
from .loader import load_settings_catalog

__all__ = ["GrblStatus",
           "Position",
           "GrblSetting",
           "SettingsCatalog",
           "load_settings_catalog",
           "MACHINE_STATES", "STATE_UNKNOWN", "STATE_DISCONNECTED", "UNKNOWN_SETTING"]
