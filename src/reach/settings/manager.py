"""Settings file management with validation and change notifications."""

from __future__ import annotations

import logging
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any

from jsonschema import ValidationError as SchemaValidationError

from ..errors import SettingsLoadError, SettingsValidationError
from ..gui.viewmodels.signal import Signal
from ..utils.jsonio import read_json, write_json
from .schema import DEFAULT_SETTINGS, merge_with_defaults

_logger = logging.getLogger(__name__)

CONFIG_HOME_ENV = "REACH_CONFIG_HOME"


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform.

    ``REACH_CONFIG_HOME`` overrides the platform directory.
    """

    override = os.environ.get(CONFIG_HOME_ENV)
    if override:
        return Path(override) / "settings.json"
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "Reach" / "settings.json"
        return Path.home() / "AppData" / "Roaming" / "Reach" / "settings.json"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "Reach" / "settings.json"
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "reach" / "settings.json"
    return Path.home() / ".config" / "reach" / "settings.json"


class SettingsManager:
    """Load, validate and persist user settings for the console."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)
        self.settings_changed = Signal()  # emits (key, value)

    @property
    def path(self) -> Path:
        return self._path or default_settings_path()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Load the settings JSON from disk, creating defaults if missing."""

        path = self.path
        self._path = path
        payload = None
        if path.exists():
            try:
                payload = read_json(path)
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(f"Cannot read {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"{path} does not contain a JSON object")
        try:
            self._data = merge_with_defaults(payload)
        except SchemaValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        _logger.debug("Loaded settings from %s", path)
        self._write()

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        target: Any = self._data
        for part in key.split("."):
            if not isinstance(target, dict) or part not in target:
                return default
            target = target[part]
        return target

    def set(self, key: str, value: Any) -> None:
        """Update *key* with *value*, validate and persist the change.

        An invalid value leaves the current settings untouched.
        """

        if isinstance(value, Path):
            value = str(value)

        candidate = deepcopy(self._data)
        parts = key.split(".")
        target: dict[str, Any] = candidate
        for part in parts[:-1]:
            branch = target.get(part)
            if not isinstance(branch, dict):
                branch = {}
                target[part] = branch
            target = branch
        target[parts[-1]] = value
        try:
            self._data = merge_with_defaults(candidate)
        except SchemaValidationError as exc:
            raise SettingsValidationError(f"{key}: {exc.message}") from exc
        self._write()
        self.settings_changed.emit(key, value)

    def as_dict(self) -> dict[str, Any]:
        return deepcopy(self._data)

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _write(self) -> None:
        path = self.path
        self._path = path
        write_json(path, self._data)


__all__ = ["CONFIG_HOME_ENV", "SettingsManager", "default_settings_path"]
