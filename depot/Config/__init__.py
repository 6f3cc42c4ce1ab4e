"""
Depot Configuration Manager.

Centralized configuration with:
- Schema-driven validation
- Environment variable fallback (.env loaded via python-dotenv)
- Optional JSON config file
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from depot.shared.gate import GateLogger, PathUtils

from depot.Config.schema import (
    CONFIG_SCHEMA,
    ConfigField,
    ConfigType,
    ConfigCategory,
    get_schema_by_key,
    schema_to_dict,
)

_log = GateLogger.get("Config")

# Env var naming the JSON config file; relative paths resolve against the project root
CONFIG_FILE_ENV = "DEPOT_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "data/config.json"


def _project_root() -> Path:
    return PathUtils.get_project_root() or Path.cwd()


class ConfigManager:
    """
    Manages Depot configuration.

    Priority order:
    1. Environment variables
    2. JSON config file
    3. Schema defaults
    """

    def __init__(self, config_file: Optional[str] = None):
        self._cache: Dict[str, Any] = {}
        self._config_file = config_file
        self._loaded = False
        self._load()

    def _resolve_config_file(self) -> Path:
        path = Path(self._config_file or os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE))
        if not path.is_absolute():
            path = _project_root() / path
        return path

    def _load(self):
        """Load configuration from all sources."""
        load_dotenv(_project_root() / ".env")

        json_config = {}
        config_path = self._resolve_config_file()
        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    json_config = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                _log.warning(f"Ignoring unreadable config file {config_path}: {e}")

        for field in CONFIG_SCHEMA:
            # Priority: env var > json config > default
            value = os.environ.get(field.env_var)

            if value is None and field.key in json_config:
                value = json_config[field.key]

            if value is None:
                value = field.default

            self._cache[field.key] = self._convert_type(value, field)

        self._loaded = True

    def _convert_type(self, value: Any, field: ConfigField) -> Any:
        """Convert value to the field's type, falling back to its default."""
        if value is None:
            return None

        try:
            if field.config_type == ConfigType.INTEGER:
                return int(value)
            elif field.config_type == ConfigType.BOOLEAN:
                if isinstance(value, bool):
                    return value
                return str(value).lower() in ("true", "1", "yes", "on")
            elif field.config_type == ConfigType.LIST:
                if isinstance(value, list):
                    return value
                return [v.strip() for v in str(value).split(",") if v.strip()]
            else:
                return str(value) if value else None
        except (ValueError, TypeError):
            _log.warning(f"Invalid value for {field.key}: {value!r}, using default")
            return field.default

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        if not self._loaded:
            self._load()
        value = self._cache.get(key)
        return default if value is None else value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return {field.key: self._cache.get(field.key) for field in CONFIG_SCHEMA}

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate configuration.

        Returns:
            (is_valid, list of error messages)
        """
        errors = []

        for field in CONFIG_SCHEMA:
            value = self._cache.get(field.key)

            if value is None or value == "":
                errors.append(f"Config value missing: {field.key}")
                continue

            if field.minimum is not None and isinstance(value, int) and value < field.minimum:
                errors.append(f"{field.key} must be at least {field.minimum}")

            if field.options and str(value).upper() not in field.options:
                errors.append(f"Invalid option for {field.key}: {value}")

        return len(errors) == 0, errors

    def _display_config_file(self) -> str:
        """Config file path for status output, never absolute."""
        path = self._resolve_config_file()
        try:
            return path.relative_to(_project_root()).as_posix()
        except ValueError:
            return path.name

    def get_status(self) -> Dict[str, Any]:
        """Get configuration status with validation errors."""
        is_valid, errors = self.validate()
        return {
            "status": "ok" if is_valid else "invalid",
            "errors": errors,
            "config_file": self._display_config_file(),
            "total_count": len(CONFIG_SCHEMA),
        }


# Global instance
_manager: Optional[ConfigManager] = None


def get_manager() -> ConfigManager:
    """Get or create the global ConfigManager."""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def reload():
    """Reload configuration from all sources."""
    global _manager
    _manager = ConfigManager()


# Convenience functions
def get(key: str, default: Any = None) -> Any:
    """Get a config value."""
    return get_manager().get(key, default)


def get_all() -> Dict:
    """Get all config values."""
    return get_manager().get_all()


def get_status() -> Dict:
    """Get config status."""
    return get_manager().get_status()


def validate() -> Tuple[bool, List[str]]:
    """Validate configuration."""
    return get_manager().validate()


def get_schema() -> Dict:
    """Get schema as dict for API."""
    return schema_to_dict()


__all__ = [
    "ConfigManager",
    "ConfigField",
    "ConfigType",
    "ConfigCategory",
    "get_manager",
    "get_schema_by_key",
    "reload",
    "get",
    "get_all",
    "get_status",
    "validate",
    "get_schema",
]
