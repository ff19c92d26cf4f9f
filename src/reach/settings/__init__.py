"""User settings stored as JSON."""

from .manager import CONFIG_HOME_ENV, SettingsManager, default_settings_path
from .schema import DEFAULT_SETTINGS, SETTINGS_SCHEMA, merge_with_defaults, validate_settings

__all__ = [
    "CONFIG_HOME_ENV",
    "DEFAULT_SETTINGS",
    "SETTINGS_SCHEMA",
    "SettingsManager",
    "default_settings_path",
    "merge_with_defaults",
    "validate_settings",
]
