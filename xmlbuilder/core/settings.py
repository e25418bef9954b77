"""
Process-wide settings for xmlbuilder.

Defaults for parser and serializer behaviour can be changed through
environment variables (``XMLBUILDER_<NAME>``), a JSON settings file, or at
runtime. Explicit arguments passed to ``create``/``parse`` always win over
these settings.
"""

import os
import json
from typing import Dict, Optional
from pathlib import Path

from .logging_utils import logger


class Settings:
    """Manage default settings for xmlbuilder."""

    _defaults = {
        # Parser behaviour
        "namespace_aware": True,
        "enable_external_entities": False,
        # Refuse to build a parser if the entity toggle cannot be applied
        "strict_security": True,

        # Serializer behaviour for as_string() without explicit options
        "omit_xml_declaration": True,
    }

    _instance = None
    _values: Dict[str, bool] = {}

    def __new__(cls):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize settings."""
        if self._initialized:
            return

        self._initialized = True
        self._values = self._defaults.copy()

        self._load_from_env()
        self._load_from_file()

    def _load_from_env(self):
        """Load settings from environment variables."""
        for name in self._values:
            env_name = f"XMLBUILDER_{name.upper()}"
            if env_name in os.environ:
                value = os.environ[env_name].lower()
                self._values[name] = value in ("true", "1", "yes", "on")
                logger.debug(f"Setting '{name}' set to {self._values[name]} from env")

    def _load_from_file(self, settings_file: Optional[str] = None):
        """Load settings from a JSON file."""
        if settings_file is None:
            possible_files = [
                Path.home() / ".xmlbuilder" / "settings.json",
                Path.cwd() / ".xmlbuilder.json",
            ]

            for file_path in possible_files:
                if file_path.exists():
                    settings_file = str(file_path)
                    break

        if settings_file and Path(settings_file).exists():
            try:
                with open(settings_file, 'r') as f:
                    file_values = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load settings from {settings_file}: {e}")
                return

            for name, value in file_values.items():
                if name not in self._defaults:
                    logger.warning(f"Ignoring unknown setting '{name}' in {settings_file}")
                    continue
                self._values[name] = bool(value)
            logger.debug(f"Loaded settings from {settings_file}")

    def load_file(self, settings_file: str):
        """Load settings from the given JSON file."""
        self._load_from_file(settings_file)

    def get(self, name: str) -> bool:
        """
        Get a setting value.

        Args:
            name: Name of the setting

        Returns:
            The current value

        Raises:
            KeyError: If the setting does not exist
        """
        return self._values[name]

    def set(self, name: str, value: bool):
        """Set a setting value."""
        if name not in self._defaults:
            raise KeyError(f"Unknown setting: {name}")
        self._values[name] = bool(value)
        logger.debug(f"Setting '{name}' set to {value}")

    def get_all(self) -> Dict[str, bool]:
        """Get all settings and their values."""
        return self._values.copy()

    def reset(self):
        """Reset all settings to defaults."""
        self._values = self._defaults.copy()
        logger.debug("Settings reset to defaults")

    def save_to_file(self, settings_file: str):
        """Save current settings to a file."""
        dir_path = os.path.dirname(os.path.abspath(settings_file))
        os.makedirs(dir_path, exist_ok=True)
        with open(settings_file, 'w') as f:
            json.dump(self._values, f, indent=2)
        logger.info(f"Settings saved to {settings_file}")


# Global instance
settings = Settings()


def get_setting(name: str) -> bool:
    """Return the current value of a setting."""
    return settings.get(name)


def resolve(name: str, value: Optional[bool]) -> bool:
    """Return ``value`` unless it is None, in which case the setting applies."""
    if value is None:
        return settings.get(name)
    return value
