"""Configuration manager for persistent settings."""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .gemini_corrector import DEFAULT_MODEL
from .logger import get_logger

logger = get_logger(__name__)

MIN_FONT_SIZE = 20.0
MAX_FONT_SIZE = 40.0
MIN_SPEECH_RATE = 0.5
MAX_SPEECH_RATE = 2.0
DEFAULT_SPEECH_RATE = 0.9
COLOR_SCHEMES = ("light", "dark", "system")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# Configuration validation schema
CONFIG_SCHEMA: Dict[str, Tuple[Any, Callable[[Any], bool], str]] = {
    "api_key": (str, lambda x: True, "Must be a string"),
    "model_name": (str, lambda x: len(x) > 0, "Must be a non-empty string"),
    "font_size": ((int, float), lambda x: _is_number(x) and MIN_FONT_SIZE <= x <= MAX_FONT_SIZE,
                  f"Must be between {MIN_FONT_SIZE:g} and {MAX_FONT_SIZE:g}"),
    "color_scheme": (str, lambda x: x in COLOR_SCHEMES, f"Must be one of {', '.join(COLOR_SCHEMES)}"),
    "selected_voice_id": ((str, type(None)), lambda x: True, "Must be a string or null"),
    "speech_rate": ((int, float), lambda x: _is_number(x) and MIN_SPEECH_RATE <= x <= MAX_SPEECH_RATE,
                    f"Must be between {MIN_SPEECH_RATE:g} and {MAX_SPEECH_RATE:g}"),
    "correction_timeout": ((int, float), lambda x: _is_number(x) and x > 0, "Must be a positive number"),
}


def validate_config_value(key: str, value: Any) -> Tuple[bool, str]:
    """Validate a single configuration value.

    Args:
        key: Configuration key
        value: Value to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if key not in CONFIG_SCHEMA:
        return True, ""  # Unknown keys are allowed (for forward compatibility)

    expected_type, validator, error_msg = CONFIG_SCHEMA[key]

    if not isinstance(value, expected_type):
        return False, f"{key}: {error_msg} (got {type(value).__name__})"

    if not validator(value):
        return False, f"{key}: {error_msg} (value: {value})"

    return True, ""


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Validate entire configuration dictionary."""
    errors = []

    for key, value in config.items():
        is_valid, error_msg = validate_config_value(key, value)
        if not is_valid:
            errors.append(error_msg)

    return len(errors) == 0, errors


@dataclass(frozen=True)
class Settings:
    """User preferences read by the editor. Never mutated in place."""

    font_size: float = MIN_FONT_SIZE
    color_scheme: str = "system"
    selected_voice_id: Optional[str] = None
    speech_rate: float = DEFAULT_SPEECH_RATE
    api_key: str = ""
    model_name: str = DEFAULT_MODEL
    correction_timeout: float = 20.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Build settings from raw config, replacing invalid values with defaults."""
        defaults = cls()
        values: Dict[str, Any] = {}
        for setting in fields(cls):
            raw = data.get(setting.name, getattr(defaults, setting.name))
            is_valid, error_msg = validate_config_value(setting.name, raw)
            if not is_valid:
                logger.warning("Invalid setting ignored: %s", error_msg)
                raw = _clamp(setting.name, raw, getattr(defaults, setting.name))
            values[setting.name] = raw
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clamp(key: str, value: Any, default: Any) -> Any:
    """Pull out-of-range numbers back into range; anything else becomes the default."""
    bounds = {
        "font_size": (MIN_FONT_SIZE, MAX_FONT_SIZE),
        "speech_rate": (MIN_SPEECH_RATE, MAX_SPEECH_RATE),
    }
    if key in bounds and _is_number(value):
        low, high = bounds[key]
        return max(low, min(high, float(value)))
    return default


class ConfigManager:
    """
    Manages application configuration with JSON persistence.

    Configuration persists across restarts until changed through a setter,
    reset with :meth:`reset_to_defaults`, or the file is deleted.
    """

    def __init__(self, config_file: str = "speakeasy_config.json", config_dir: Optional[Path] = None):
        """Initialize config manager."""
        self.config_dir = Path(config_dir) if config_dir is not None else Path.home() / ".speakeasy"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file = self.config_dir / config_file
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file."""
        data = None
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load config: %s", e)

        if not isinstance(data, dict):
            return self._default_config()

        # Ensure new schema keys exist
        merged = self._default_config()
        merged.update(data)
        return merged

    def _default_config(self) -> dict:
        """Return default configuration."""
        return Settings().to_dict()

    def save(self) -> bool:
        """Save current configuration to file with validation."""
        is_valid, errors = validate_config(self.config)
        if not is_valid:
            logger.warning("Config validation errors: %s", "; ".join(errors))
            logger.warning("Saving anyway, invalid values fall back to defaults when read")

        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.config, f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to save config: %s", e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value and save."""
        self.config[key] = value
        self.save()

    def get_settings(self) -> Settings:
        """Return the current configuration as a validated :class:`Settings`."""
        return Settings.from_dict(self.config)

    def update_settings(self, **changes: Any) -> Settings:
        """Apply ``changes``, persist them, and return the resulting settings."""
        unknown = set(changes) - {setting.name for setting in fields(Settings)}
        if unknown:
            raise KeyError(f"Unknown settings: {', '.join(sorted(unknown))}")
        settings = replace(self.get_settings(), **changes)
        settings = Settings.from_dict(settings.to_dict())
        self.config.update(settings.to_dict())
        self.save()
        return settings

    def get_api_key(self) -> Optional[str]:
        """Get saved API key, falling back to GEMINI_API_KEY."""
        key = self.get("api_key", "")
        return key or os.getenv("GEMINI_API_KEY") or None

    def set_api_key(self, api_key: str) -> None:
        """Save API key."""
        self.set("api_key", api_key)

    def get_model_name(self) -> str:
        """Get saved model name."""
        return self.get("model_name", DEFAULT_MODEL) or DEFAULT_MODEL

    def set_model_name(self, model_name: str) -> None:
        """Save model name."""
        self.set("model_name", model_name)

    def get_speech_rate(self) -> float:
        return self.get_settings().speech_rate

    def set_speech_rate(self, rate: float) -> None:
        """Save speech rate, clamped to the supported range."""
        self.set("speech_rate", max(MIN_SPEECH_RATE, min(MAX_SPEECH_RATE, round(float(rate), 1))))

    def get_font_size(self) -> float:
        return self.get_settings().font_size

    def set_font_size(self, size: float) -> None:
        self.set("font_size", max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, float(size))))

    def get_selected_voice_id(self) -> Optional[str]:
        return self.get_settings().selected_voice_id

    def set_selected_voice_id(self, voice_id: Optional[str]) -> None:
        self.set("selected_voice_id", voice_id or None)

    def reset_to_defaults(self) -> bool:
        """Reset all settings to default values, keeping the API key."""
        api_key = self.config.get("api_key", "")
        self.config = self._default_config()
        self.config["api_key"] = api_key
        success = self.save()
        if success:
            logger.info("Configuration reset to defaults")
        return success

    def delete_config_file(self) -> bool:
        """Delete the configuration file completely."""
        try:
            if self.config_file.exists():
                self.config_file.unlink()
                logger.info("Configuration file deleted")
                return True
            return False
        except OSError as e:
            logger.error("Failed to delete config file: %s", e)
            return False
