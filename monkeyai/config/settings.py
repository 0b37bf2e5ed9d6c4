"""Settings: persisted Monkey AI configuration with environment overrides"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from monkeyai.providers import platform_utils

logger = logging.getLogger(__name__)

# Python field name -> key used by the editor configuration surface
_JSON_KEYS = {
    "use_ollama": "useOllama",
    "ollama_model": "ollamaModel",
    "api_key": "apiKey",
    "model": "model",
    "ollama_port": "ollamaPort",
    "max_retries": "maxRetries",
    "retry_delay_ms": "retryDelayMs",
    "web_port": "webPort",
    "content_filter": "contentFilter",
}

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Monkey AI settings"""

    use_ollama: bool = True  # Local Ollama vs. remote API
    ollama_model: str = "llama2"  # Model to ensure and use locally
    api_key: str = ""  # Bearer credential for the remote API
    model: str = "gpt-3.5-turbo"  # Remote API model
    ollama_port: int = 11434
    max_retries: int = 3
    retry_delay_ms: int = 2000
    web_port: int = 3000
    content_filter: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary keyed by configuration names"""
        return {_JSON_KEYS[k]: v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create from dictionary; accepts configuration or field names"""
        defaults = cls()
        values = {}
        for f in fields(cls):
            key = _JSON_KEYS[f.name]
            if key in data:
                values[f.name] = data[key]
            elif f.name in data:
                values[f.name] = data[f.name]
            else:
                values[f.name] = getattr(defaults, f.name)
        return cls(**values)

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """Apply MONKEYAI_* environment overrides in place"""
        env = os.environ if environ is None else environ

        if "MONKEYAI_USE_OLLAMA" in env:
            self.use_ollama = env["MONKEYAI_USE_OLLAMA"].strip().lower() in _TRUE_VALUES
        if env.get("MONKEYAI_OLLAMA_MODEL"):
            self.ollama_model = env["MONKEYAI_OLLAMA_MODEL"]
        if env.get("MONKEYAI_API_KEY"):
            self.api_key = env["MONKEYAI_API_KEY"]
        elif env.get("OPENAI_API_KEY") and not self.api_key:
            self.api_key = env["OPENAI_API_KEY"]
        if env.get("MONKEYAI_OLLAMA_PORT"):
            try:
                self.ollama_port = int(env["MONKEYAI_OLLAMA_PORT"])
            except ValueError:
                logger.warning(f"Ignoring invalid MONKEYAI_OLLAMA_PORT: {env['MONKEYAI_OLLAMA_PORT']}")

        return self


class SettingsManager:
    """Manage settings persistence"""

    def __init__(self, settings_path: Optional[Path] = None):
        if settings_path:
            self.settings_path = settings_path
        else:
            # Default: <config_dir>/settings.json
            self.settings_path = platform_utils.get_config_dir() / "settings.json"

    def load(self) -> Settings:
        """Load settings from file (defaults if missing or unreadable)"""
        if not self.settings_path.exists():
            return Settings()

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Settings.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Failed to load settings from {self.settings_path}: {e}")
            return Settings()

    def save(self, settings: Settings) -> None:
        """Save settings to file"""
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)

    def update(self, **changes) -> Settings:
        """Load, apply field changes, save and return the result"""
        settings = self.load()
        for name, value in changes.items():
            if not hasattr(settings, name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(settings, name, value)
        self.save(settings)
        return settings


# Global settings manager instance
_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """Get global settings manager instance"""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def load_settings() -> Settings:
    """Load settings with environment overrides applied"""
    return get_settings_manager().load().apply_env()


def save_settings(settings: Settings) -> None:
    """Save settings"""
    get_settings_manager().save(settings)
