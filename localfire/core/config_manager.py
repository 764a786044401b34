"""
Configuration management for LocalFire.

Handles loading, validation, and access to store options and logging
settings, and reads seed databases from disk.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

_TRUTHY = ('true', '1', 'yes', 'on')


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreOptions(BaseModel):
    """Construction options of a fake store.

    Attributes:
        mutable: Apply writes to the in-memory tree. When False, writes are
            recorded and resolve normally but reads keep returning seed data.
        simulate_query_filters: Evaluate filters, ordering, offset and limit.
            When False, queries return every record of the target.
        include_ids_in_data: Add the document id to the mapping returned
            by ``data()``.
    """

    mutable: bool = False
    simulate_query_filters: bool = Field(default=False, alias="simulateQueryFilters")
    include_ids_in_data: bool = Field(default=False, alias="includeIdsInData")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.WARNING
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'localfire.core.operation_log': 'DEBUG'}"
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("json", "text"):
            raise ValueError(f"Log format must be 'json' or 'text': {v}")
        return v


class LocalFireConfig(BaseModel):
    """Main LocalFire configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration version")

    store: StoreOptions = Field(default_factory=StoreOptions)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    seed_file: Optional[str] = Field(
        default=None,
        description="YAML or JSON file holding the seed database"
    )

    current_user: Optional[Dict[str, Any]] = Field(
        default=None,
        description="User record handed to the fake auth facade"
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages LocalFire configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides
    2. Environment variables (LOCALFIRE_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[LocalFireConfig] = None
        self._config_file: Optional[Path] = None
        self._overrides: Optional[Dict[str, Any]] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> LocalFireConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of explicit overrides

        Returns:
            Validated LocalFireConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading LocalFire configuration")
        self._overrides = overrides

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = _load_document(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)
            logger.info(f"Applied {len(overrides)} explicit overrides")

        try:
            self._config = LocalFireConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if mutable := os.getenv("LOCALFIRE_MUTABLE"):
            config.setdefault("store", {})["mutable"] = mutable.lower() in _TRUTHY
        if simulate := os.getenv("LOCALFIRE_SIMULATE_QUERY_FILTERS"):
            config.setdefault("store", {})["simulate_query_filters"] = simulate.lower() in _TRUTHY
        if include_ids := os.getenv("LOCALFIRE_INCLUDE_IDS_IN_DATA"):
            config.setdefault("store", {})["include_ids_in_data"] = include_ids.lower() in _TRUTHY

        if log_level := os.getenv("LOCALFIRE_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv("LOCALFIRE_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        if seed_file := os.getenv("LOCALFIRE_SEED_FILE"):
            config["seed_file"] = seed_file

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration (with the current user redacted)."""
        if not self._config:
            return

        config_dict = self._config.model_dump()
        if config_dict.get("current_user"):
            config_dict["current_user"] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> LocalFireConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def load_seed(self) -> Dict[str, Any]:
        """
        Read the seed database named by the loaded configuration.

        Returns:
            Mapping of root collection name to a list of records; empty
            when no seed file is configured.
        """
        config = self.get_config()
        if not config.seed_file:
            return {}

        seed = _load_document(config.seed_file)
        if not isinstance(seed, dict):
            raise ValueError(f"Seed file must hold a mapping of collections: {config.seed_file}")
        logger.info(f"Loaded seed database with {len(seed)} root collections from {config.seed_file}")
        return seed

    def reload(self) -> LocalFireConfig:
        """Reload configuration from the same file, environment and overrides."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file, overrides=self._overrides)


def _load_document(file_path: str) -> Dict[str, Any]:
    """Load a YAML or JSON document."""
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(path, 'r') as f:
        if path.suffix in ['.yaml', '.yml']:
            return yaml.safe_load(f) or {}
        elif path.suffix == '.json':
            return json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")
