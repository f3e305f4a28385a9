"""
Configuration management for the helpdesk.

This module provides configuration loading, validation, and management
for the store settings, with environment overrides.
"""

import json
import os
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, List, Any

from quickdesk.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_DATABASE_TYPES = ['sqlite', 'memory']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in ('1', 'true', 'yes', 'on'):
        return True
    if normalized in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


# Environment variable -> (setting, converter)
ENV_OVERRIDES = {
    'QUICKDESK_DATABASE_TYPE': ('database_type', str),
    'QUICKDESK_DATABASE_URL': ('database_url', str),
    'QUICKDESK_LOG_LEVEL': ('log_level', str),
    'QUICKDESK_LOG_DIR': ('log_dir', str),
    'QUICKDESK_PAGE_SIZE': ('page_size', int),
    'QUICKDESK_MAX_ATTACHMENTS': ('max_attachments', int),
    'QUICKDESK_SEED_DEFAULT_CATEGORIES': ('seed_default_categories', _parse_bool),
    'QUICKDESK_ALLOW_REOPEN': ('allow_reopen', _parse_bool),
}


@dataclass
class DeskConfig:
    """Settings for the ticket store and its ambient services."""

    database_type: str = 'sqlite'
    database_url: str = 'quickdesk.db'
    log_level: str = 'INFO'
    log_dir: str = 'logs'
    page_size: int = 10
    default_category_name: str = 'General'
    max_attachments: int = 5
    seed_default_categories: bool = True
    allow_reopen: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.database_type not in VALID_DATABASE_TYPES:
            raise ValueError(f"Invalid database_type: {self.database_type}. Must be one of {VALID_DATABASE_TYPES}")

        if not isinstance(self.database_url, str) or not self.database_url:
            raise ValueError(f"Invalid database_url: {self.database_url!r}")

        if str(self.log_level).upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if not isinstance(self.page_size, int) or isinstance(self.page_size, bool) or self.page_size <= 0:
            raise ValueError(f"Invalid page_size: {self.page_size}")

        if not isinstance(self.max_attachments, int) or self.max_attachments < 0:
            raise ValueError(f"Invalid max_attachments: {self.max_attachments}")

        if not isinstance(self.default_category_name, str) or not self.default_category_name.strip():
            raise ValueError("default_category_name must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        """Convert DeskConfig to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeskConfig':
        """Create DeskConfig from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})


class ConfigManager:
    """Manages helpdesk configuration from a JSON file and the environment."""

    def __init__(self, config_file: str = "config.json", use_environment: bool = True):
        """
        Initialize ConfigManager.

        Args:
            config_file: Path to the main configuration file
            use_environment: Whether QUICKDESK_* environment variables override the file
        """
        self.config_file = Path(config_file)
        self.use_environment = use_environment
        self.settings: Dict[str, Any] = {}
        self._load_configuration()

    def _load_configuration(self):
        """Load configuration from file with error handling."""
        try:
            if self.config_file.exists():
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    config_data = json.load(f)

                self.settings = dict(config_data.get('desk', {}))
                logger.info(f"Configuration loaded successfully from {self.config_file}")
            else:
                logger.info(f"Configuration file {self.config_file} not found, using defaults")
                self._create_default_config()

        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file: {e}")
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}")
        except OSError as e:
            logger.error(f"Error loading configuration: {e}")
            raise ConfigurationError(f"Error loading configuration: {e}")

        if self.use_environment:
            self._apply_environment_overrides()

    def _apply_environment_overrides(self):
        """Override file settings with QUICKDESK_* environment variables."""
        for env_var, (key, converter) in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if raw is None or raw == '':
                continue
            try:
                self.settings[key] = converter(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_var}: {raw!r}", config_key=key) from e
            logger.debug(f"Configuration {key} overridden by {env_var}")

    def _create_default_config(self):
        """Create default configuration file."""
        default_config = {'desk': DeskConfig().to_dict()}

        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(default_config, f, indent=2)

            self.settings = dict(default_config['desk'])
            logger.info(f"Created default configuration file at {self.config_file}")

        except OSError as e:
            logger.error(f"Error creating default configuration: {e}")
            raise ConfigurationError(f"Error creating default configuration: {e}")

    def get_config(self) -> DeskConfig:
        """
        Build the validated store configuration.

        Returns:
            DeskConfig built from the current settings

        Raises:
            ConfigurationError: If any setting is invalid
        """
        try:
            return DeskConfig.from_dict(self.settings)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: Any):
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.settings[key] = value
        logger.info(f"Updated configuration: {key} = {value}")

    def save_configuration(self):
        """Save current configuration to file, keeping a .bak of the previous one."""
        try:
            config_data = {'desk': self.settings}

            if self.config_file.exists():
                backup_file = self.config_file.with_suffix('.bak')
                self.config_file.replace(backup_file)

            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=2)

            logger.info(f"Configuration saved to {self.config_file}")

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            raise ConfigurationError(f"Error saving configuration: {e}")

    def validate_configuration(self) -> List[str]:
        """
        Validate the current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        required_keys = ['database_type', 'database_url']
        for key in required_keys:
            if key not in self.settings:
                errors.append(f"Missing required configuration: {key}")

        try:
            DeskConfig.from_dict(self.settings)
        except (TypeError, ValueError) as e:
            errors.append(str(e))

        return errors

    def reload_configuration(self):
        """Reload configuration from file."""
        self.settings.clear()
        self._load_configuration()
        logger.info("Configuration reloaded")
