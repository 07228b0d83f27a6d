import json

import pytest

from letra_karaoke.offset_store import OffsetStore
from letra_karaoke.settings import AppSettings, SettingsManager


def test_defaults_when_file_missing(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    assert manager.settings == AppSettings()


def test_load_applies_known_fields_and_validates(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"poll_interval_ms": 50, "max_offset_ms": 800, "unknown": True}),
        encoding="utf-8",
    )

    settings = SettingsManager(path).settings

    assert settings.poll_interval_ms == 500
    assert settings.max_offset_ms == 800
    assert not hasattr(settings, "unknown")


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert SettingsManager(path).settings == AppSettings()


def test_save_and_reset(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    manager = SettingsManager(path)
    manager.settings.translation_enabled = False
    manager.save()

    assert SettingsManager(path).settings.translation_enabled is False

    manager.reset()
    assert SettingsManager(path).settings.translation_enabled is True


def test_update_persists_known_fields(tmp_path):
    path = tmp_path / "settings.json"
    manager = SettingsManager(path)

    settings = manager.update(translation_enabled=False, max_offset_ms=99999)

    assert settings is manager.settings
    assert settings.max_offset_ms == 10000
    assert SettingsManager(path).settings.translation_enabled is False


def test_update_rejects_unknown_fields(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    with pytest.raises(KeyError):
        manager.update(opacity=0.5)
    assert not (tmp_path / "settings.json").exists()


def test_validate_keeps_fast_poll_below_slow_poll():
    settings = AppSettings(poll_interval_ms=800, fast_poll_interval_ms=2000, snap_threshold_ms=10)
    settings.validate()
    assert settings.fast_poll_interval_ms == 800
    assert settings.snap_threshold_ms == settings.ignore_threshold_ms


def test_reconciler_config_mirrors_thresholds():
    config = AppSettings(ignore_threshold_ms=30, snap_threshold_ms=3000, blend_duration_ms=250).reconciler_config()
    assert (config.ignore_threshold_ms, config.snap_threshold_ms, config.blend_duration_ms) == (30, 3000, 250)


# =============================================================================
# OffsetStore
# =============================================================================


def test_offset_store_round_trip(tmp_path):
    path = tmp_path / "offsets.json"
    store = OffsetStore(path)
    store.set("track-a", -150)
    store.set("track-b", 40)

    reloaded = OffsetStore(path)
    assert reloaded.get("track-a") == -150
    assert reloaded.get("track-b") == 40
    assert reloaded.get("missing") == 0


def test_zero_offset_removes_entry(tmp_path):
    path = tmp_path / "offsets.json"
    store = OffsetStore(path)
    store.set("track-a", 100)
    store.set("track-a", 0)

    assert json.loads(path.read_text(encoding="utf-8")) == {}


def test_corrupt_offsets_are_ignored(tmp_path):
    path = tmp_path / "offsets.json"
    path.write_text("[1, 2", encoding="utf-8")
    assert OffsetStore(path).get("track-a") == 0
