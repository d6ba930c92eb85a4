from __future__ import annotations

import pytest

from grbl_host.model.loader import load_settings_catalog, metadata_root
from grbl_host.model.setting import UNKNOWN_SETTING, GrblSetting, SettingsCatalog


def test_packaged_catalog_loads():
    assert (metadata_root() / "settings.yml").exists()

    cat = SettingsCatalog.default()
    assert len(cat) == 34
    assert cat.describe(0) == "Step pulse time (microseconds)"
    assert cat.describe(100) == "X-axis steps per millimeter"
    assert cat.describe(130) == "X-axis maximum travel (mm)"
    assert 22 in cat
    assert cat.ids()[0] == 0 and cat.ids()[-1] == 132


def test_unknown_id_gets_default_description():
    cat = SettingsCatalog({1: "Step idle delay (milliseconds)"})
    assert cat.describe(999) == UNKNOWN_SETTING
    assert 999 not in cat


def test_setting_as_dict():
    s = GrblSetting(id=110, value=500.0, description="X-axis maximum rate (mm/min)")
    assert s.as_dict() == {"id": 110, "value": 500.0, "description": "X-axis maximum rate (mm/min)"}


def test_custom_catalog_file(tmp_path):
    p = tmp_path / "settings.yml"
    p.write_text("settings:\n  0: Pulse\n  '100': Steps X\n", encoding="utf-8")

    cat = load_settings_catalog(p)
    assert cat.describe(0) == "Pulse"
    assert cat.describe(100) == "Steps X"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings_catalog(tmp_path / "nope.yml")


def test_missing_root_node_raises(tmp_path):
    p = tmp_path / "settings.yml"
    p.write_text("descriptions:\n  0: Pulse\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings_catalog(p)


def test_non_integer_id_raises(tmp_path):
    p = tmp_path / "settings.yml"
    p.write_text("settings:\n  x: Pulse\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings_catalog(p)


def test_empty_description_raises(tmp_path):
    p = tmp_path / "settings.yml"
    p.write_text("settings:\n  0: ''\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings_catalog(p)
