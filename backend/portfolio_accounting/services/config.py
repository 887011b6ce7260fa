"""Configuration management and validation service."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "PORTFOLIO_ACCOUNTING_CONFIG"


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    path: str
    message: str


class ConfigValidationException(Exception):
    """Raised when config validation fails."""

    def __init__(self, errors: List[ConfigValidationError]):
        self.errors = errors
        messages = [f"{e.path}: {e.message}" for e in errors]
        super().__init__("Configuration validation failed:\n" + "\n".join(messages))


# Configuration schema definition
CONFIG_SCHEMA = {
    "server": {
        "type": "dict",
        "properties": {
            "host": {"type": "str"},
            "port": {"type": "int", "min": 1, "max": 65535},
            "debug": {"type": "bool"},
        }
    },
    "accounting": {
        "type": "dict",
        "properties": {
            "long_term_days": {"type": "int", "min": 1},
            "dust_tolerance": {"type": "float", "min": 0, "max": 1e-6},
            "short_term_rate": {"type": "float", "min": 0, "max": 1},
            "long_term_rate": {"type": "float", "min": 0, "max": 1},
        }
    },
    "logging": {
        "type": "dict",
        "properties": {
            "level": {"type": "str", "options": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
            "format": {"type": "str"},
        }
    },
}

SCALAR_TYPES = {
    "str": str,
    "int": int,
    "float": (int, float),
    "bool": bool,
}
NUMBER_TYPES = ("int", "float")


@dataclass
class AccountingSettings:
    """Typed view of the ``accounting`` config section."""
    long_term_days: int = 365
    dust_tolerance: float = 1e-12
    short_term_rate: float = 0.37
    long_term_rate: float = 0.15

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "AccountingSettings":
        """Build settings from a validated config dictionary.

        Args:
            config: Full configuration dictionary (missing keys use defaults)

        Returns:
            Accounting settings
        """
        section = (config or {}).get("accounting") or {}
        defaults = cls()
        return cls(
            long_term_days=section.get("long_term_days", defaults.long_term_days),
            dust_tolerance=float(section.get("dust_tolerance", defaults.dust_tolerance)),
            short_term_rate=float(section.get("short_term_rate", defaults.short_term_rate)),
            long_term_rate=float(section.get("long_term_rate", defaults.long_term_rate)),
        )


class ConfigService:
    """Service for loading and validating configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config service.

        Args:
            config_path: Path to config file. If None, uses the
                PORTFOLIO_ACCOUNTING_CONFIG environment variable or the
                default location.
        """
        if config_path is None:
            config_path = os.environ.get(CONFIG_PATH_ENV)

        if config_path is None:
            # Default config path relative to backend directory
            backend_dir = Path(__file__).parent.parent.parent
            config_path = str(backend_dir / "config.yaml")

        self.config_path = config_path
        self._config: Dict[str, Any] = {}

    def load_and_validate(self) -> Dict[str, Any]:
        """Load and validate the configuration file.

        Returns:
            Validated configuration dictionary.

        Raises:
            ConfigValidationException: If validation fails.
        """
        errors: List[ConfigValidationError] = []

        # Check if file exists
        if not os.path.exists(self.config_path):
            logger.warning(f"Config file not found at {self.config_path}, using defaults")
            self._config = {}
            return self._config

        # Load YAML
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            errors.append(ConfigValidationError(
                path="",
                message=f"Invalid YAML syntax: {str(e)}"
            ))
            raise ConfigValidationException(errors)

        if config is None:
            config = {}

        if not isinstance(config, dict):
            errors.append(ConfigValidationError(
                path="",
                message=f"Config must be a dictionary, got {type(config).__name__}"
            ))
            raise ConfigValidationException(errors)

        # Validate against schema
        errors.extend(self._validate_dict(config, CONFIG_SCHEMA, ""))

        if errors:
            raise ConfigValidationException(errors)

        self._config = config
        logger.info(f"Configuration loaded and validated from {self.config_path}")
        return config

    def _validate_dict(
        self,
        data: Dict[str, Any],
        schema: Dict[str, Any],
        path: str
    ) -> List[ConfigValidationError]:
        """Validate a config section against its schema properties.

        Every key is optional; keys missing from the schema are errors.

        Args:
            data: Section to validate
            schema: Property schemas of the section
            path: Dotted path of the section ("" for the root)

        Returns:
            List of validation errors
        """
        errors = []

        for key, value in data.items():
            current_path = f"{path}.{key}" if path else key
            prop_schema = schema.get(key)

            if prop_schema is None:
                errors.append(ConfigValidationError(
                    path=current_path,
                    message=f"Unknown configuration key '{key}'"
                ))
            else:
                errors.extend(self._validate_value(value, prop_schema, current_path))

        return errors

    def _validate_value(
        self,
        value: Any,
        schema: Dict[str, Any],
        path: str
    ) -> List[ConfigValidationError]:
        """Validate a single value: type first, then bounds and options."""
        expected_type = schema["type"]

        if expected_type == "dict":
            if not isinstance(value, dict):
                return [ConfigValidationError(
                    path=path,
                    message=f"Expected dict, got {type(value).__name__}"
                )]
            return self._validate_dict(value, schema.get("properties", {}), path)

        # bool is an int subclass, but never a valid number here
        is_number = expected_type in NUMBER_TYPES
        if not isinstance(value, SCALAR_TYPES[expected_type]) or (is_number and isinstance(value, bool)):
            return [ConfigValidationError(
                path=path,
                message=f"Expected {expected_type}, got {type(value).__name__}"
            )]

        errors = []
        if is_number and "min" in schema and value < schema["min"]:
            errors.append(ConfigValidationError(
                path=path,
                message=f"Value {value} is below minimum {schema['min']}"
            ))
        if is_number and "max" in schema and value > schema["max"]:
            errors.append(ConfigValidationError(
                path=path,
                message=f"Value {value} is above maximum {schema['max']}"
            ))
        if "options" in schema and value not in schema["options"]:
            errors.append(ConfigValidationError(
                path=path,
                message=f"Value '{value}' not in allowed options: {schema['options']}"
            ))
        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Dot-notation key (e.g., "accounting.long_term_days")
            default: Default value if not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_accounting_settings(self) -> AccountingSettings:
        """Get the typed accounting settings of the loaded config."""
        return AccountingSettings.from_config(self._config)


# Global config service instance
config_service = ConfigService()
