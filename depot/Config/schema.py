"""
Configuration schema for Depot.

Defines all configurable options with metadata for validation
and documentation.
"""

from enum import Enum
from typing import Optional, List, Any
from dataclasses import dataclass


class ConfigType(Enum):
    """Configuration value types."""
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    PATH = "path"          # File system path
    LIST = "list"          # Comma-separated values


class ConfigCategory(Enum):
    """Configuration categories for grouping."""
    STORAGE = "storage"
    SERVER = "server"
    LOGGING = "logging"


@dataclass
class ConfigField:
    """Definition of a configuration field."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    default: Any = None
    env_var: str = None          # Override env var name (defaults to key)
    options: List[str] = None    # For enumerated types
    minimum: int = None          # Lower bound for integers
    restart_required: bool = False

    def __post_init__(self):
        if self.env_var is None:
            self.env_var = self.key


# ==================== Schema Definition ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Storage ===
    ConfigField(
        key="STORAGE_ROOT",
        description="Directory that holds the managed storage tree",
        config_type=ConfigType.PATH,
        category=ConfigCategory.STORAGE,
        default="uploads",
        restart_required=True,
    ),
    ConfigField(
        key="MAX_UPLOAD_MB",
        description="Per-file upload limit in megabytes",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.STORAGE,
        default=100,
        minimum=1,
    ),
    ConfigField(
        key="UPLOAD_CHUNK_SIZE",
        description="Bytes copied per chunk while persisting an upload",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.STORAGE,
        default=1024 * 1024,
        minimum=1024,
    ),

    # === Server ===
    ConfigField(
        key="HOST",
        description="Interface the HTTP server binds to",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        default="0.0.0.0",
        restart_required=True,
    ),
    ConfigField(
        key="PORT",
        description="Port the HTTP server listens on",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.SERVER,
        default=3000,
        minimum=1,
        restart_required=True,
    ),
    ConfigField(
        key="CORS_ORIGINS",
        description="Allowed CORS origins (comma-separated, * for any)",
        config_type=ConfigType.LIST,
        category=ConfigCategory.SERVER,
        default=["*"],
        restart_required=True,
    ),

    # === Logging ===
    ConfigField(
        key="LOG_LEVEL",
        description="Log level for the depot loggers",
        config_type=ConfigType.STRING,
        category=ConfigCategory.LOGGING,
        default="INFO",
        options=["DEBUG", "INFO", "WARNING", "ERROR"],
    ),
]


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    """Get schema field by key."""
    for field in CONFIG_SCHEMA:
        if field.key == key:
            return field
    return None


def get_schema_by_category(category: ConfigCategory) -> List[ConfigField]:
    """Get all fields in a category."""
    return [f for f in CONFIG_SCHEMA if f.category == category]


def schema_to_dict() -> dict:
    """Convert schema to dict for API output."""
    result = {}
    for cat in ConfigCategory:
        fields = get_schema_by_category(cat)
        result[cat.value] = [
            {
                "key": f.key,
                "description": f.description,
                "type": f.config_type.value,
                "default": f.default,
                "options": f.options,
                "restart_required": f.restart_required,
            }
            for f in fields
        ]
    return result
