"""Configuration management for Monkey AI"""

from monkeyai.config.settings import (
    Settings,
    SettingsManager,
    get_settings_manager,
    load_settings,
    save_settings,
)

__all__ = [
    "Settings",
    "SettingsManager",
    "get_settings_manager",
    "load_settings",
    "save_settings",
]
