from __future__ import annotations

import json
from pathlib import Path

import pytest

from reach.errors import SettingsLoadError, SettingsValidationError
from reach.settings import SettingsManager
from reach.settings.manager import CONFIG_HOME_ENV, default_settings_path


def test_load_creates_file_with_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()

    assert settings_path.exists()
    assert manager.get("grid.page_size") == 50
    assert manager.get("grid.search_debounce_ms") == 500
    assert manager.get("database.path") is None
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["schema"] == "reach/settings@1"


def test_set_persists_and_emits(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    changes = []
    manager.settings_changed.connect(lambda key, value: changes.append((key, value)))

    manager.set("grid.page_size", 200)

    assert changes == [("grid.page_size", 200)]
    assert manager.get("grid.page_size") == 200
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["grid"]["page_size"] == 200


def test_nested_updates_preserve_defaults(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.set("reports.timeout_seconds", 5)

    assert manager.get("reports.timeout_seconds") == 5
    assert manager.get("reports.base_url") == "http://localhost:5001"


def test_path_values_are_stored_as_strings(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.set("database.path", tmp_path / "customers.db")

    assert manager.get("database.path") == str(tmp_path / "customers.db")


@pytest.mark.parametrize(
    "key, value",
    [
        ("grid.page_size", 75),
        ("grid.search_debounce_ms", -1),
        ("grid.default_sort_key", ""),
        ("reports.base_url", "ftp://reports"),
        ("reports.timeout_seconds", 0),
    ],
)
def test_invalid_value_is_rejected_and_not_applied(tmp_path: Path, key, value) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    before = manager.get(key)
    changes = []
    manager.settings_changed.connect(lambda *args: changes.append(args))

    with pytest.raises(SettingsValidationError):
        manager.set(key, value)

    assert manager.get(key) == before
    assert changes == []
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    section, name = key.split(".")
    assert stored[section][name] == before


def test_existing_file_is_merged_with_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"grid": {"page_size": 100}}), encoding="utf-8")
    manager = SettingsManager(path=settings_path)
    manager.load()

    assert manager.get("grid.page_size") == 100
    assert manager.get("grid.default_sort_key") == "name"


def test_invalid_json_raises_load_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SettingsLoadError):
        SettingsManager(path=settings_path).load()


def test_non_object_raises_load_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(SettingsLoadError):
        SettingsManager(path=settings_path).load()


def test_schema_invalid_file_raises_validation_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"grid": {"page_size": 7}}), encoding="utf-8")

    with pytest.raises(SettingsValidationError):
        SettingsManager(path=settings_path).load()


def test_get_missing_key_returns_default(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()

    assert manager.get("grid.nope", "fallback") == "fallback"
    assert manager.get("grid.page_size.deeper") is None


def test_config_home_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv(CONFIG_HOME_ENV, str(tmp_path / "cfg"))

    assert default_settings_path() == tmp_path / "cfg" / "settings.json"
    manager = SettingsManager()
    manager.load()
    assert (tmp_path / "cfg" / "settings.json").exists()


def test_as_dict_is_a_copy(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    snapshot = manager.as_dict()
    snapshot["grid"]["page_size"] = 200

    assert manager.get("grid.page_size") == 50
