"""
Configuration manager for Extension Shelf.

Handles cascading configuration system:
Defaults -> General Config -> User Config -> Final Settings
"""

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .defaults import DEFAULT_CONFIG
from .schemas import ConfigSchema, ConfigValidationError, validate_user_config


logger = logging.getLogger(__name__)

# Keys written back to the user config file when changed through set()
USER_SETTING_KEYS = (
    'icons.size',
    'icons.text_icon',
    'external_source.extensions_dir',
    'logging.level',
)

# Keys a freshly created user config file starts with
DEFAULT_USER_KEYS = (
    'icons.size',
    'logging.level',
)


def _lookup(config: Dict[str, Any], key: str) -> Any:
    """Resolve a dotted key, raising KeyError when any part is missing."""
    value = config
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            raise KeyError(key)
        value = value[part]
    return value


def _assign(config: Dict[str, Any], key: str, value: Any) -> None:
    """Store ``value`` under a dotted key, creating intermediate sections."""
    *sections, leaf = key.split('.')
    for part in sections:
        config = config.setdefault(part, {})
    config[leaf] = value


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Merge ``override`` into ``base`` in place; nested sections merge key by key."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = deepcopy(value)


def _read_json_object(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"Invalid JSON in config file {path}: {e}")
    except OSError as e:
        raise ConfigValidationError(f"Cannot read config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigValidationError(f"Configuration file must contain a JSON object: {path}")
    return data


class ConfigurationManager:
    """Manages cascading configuration system."""

    def __init__(self):
        self._config: Dict[str, Any] = {}
        self._general_path: Optional[Path] = None
        self._user_path: Optional[Path] = None
        self._loaded = False

    def load_configuration(
        self,
        general_config_path: Optional[str] = None,
        user_config_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Load and merge configuration files in cascade order.

        A general config that cannot be parsed or validated is fatal; an
        invalid user config is logged and skipped.

        Returns:
            Final merged configuration dictionary

        Raises:
            ConfigValidationError: If the general or merged configuration is invalid
        """
        logger.info("Loading configuration files...")

        config = deepcopy(DEFAULT_CONFIG)
        self._general_path = Path(general_config_path) if general_config_path else None
        self._user_path = Path(user_config_path) if user_config_path else None

        if self._general_path and self._general_path.exists():
            _deep_merge(config, _read_json_object(self._general_path))
            logger.info(f"Loaded general configuration from: {self._general_path}")

        if self._user_path and self._user_path.exists():
            try:
                user_config = _read_json_object(self._user_path)
                validate_user_config(user_config)
            except ConfigValidationError as e:
                logger.warning(f"Ignoring user configuration: {e}")
            else:
                _deep_merge(config, user_config)
                logger.info(f"Loaded user configuration from: {self._user_path}")

        try:
            ConfigSchema.validate_config(config)
        except ConfigValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        self._config = config
        self._loaded = True

        self._ensure_directories()
        self._ensure_user_config_file()

        logger.info("Configuration loading completed successfully")
        return self._config

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("Configuration not loaded. Call load_configuration() first.")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation (e.g. 'icons.build_delay_ms').

        Raises:
            RuntimeError: If configuration not loaded
        """
        self._require_loaded()
        try:
            return _lookup(self._config, key)
        except KeyError:
            return default

    def set(self, key: str, value: Any, persist: bool = True) -> None:
        """
        Set configuration value using dot notation.

        With ``persist`` the user-specific keys are written back to the user
        config file, if one was given.

        Raises:
            RuntimeError: If configuration not loaded
        """
        self._require_loaded()
        _assign(self._config, key, value)
        logger.debug(f"Set configuration: {key} = {value}")

        if persist and self._user_path is not None:
            try:
                self._write_user_settings(USER_SETTING_KEYS)
            except OSError as e:
                logger.warning(f"Failed to persist configuration change {key}: {e}")

    def _ensure_directories(self) -> None:
        directories = [
            self.get('paths.data_directory'),
            self.get('paths.user_config_path'),
        ]
        database_path = self.get('database.path')
        if database_path:
            directories.append(str(Path(database_path).parent))

        for directory in filter(None, directories):
            try:
                Path(directory).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning(f"Cannot create directory {directory}: {e}")

    def _ensure_user_config_file(self) -> None:
        """Create the user config file from the current values if it is missing."""
        if self._user_path is None or self._user_path.exists():
            return
        if not self.get('config_files.auto_create', True):
            logger.debug("Auto-creation of the user config file is disabled")
            return

        try:
            self._write_user_settings(DEFAULT_USER_KEYS)
        except OSError as e:
            logger.error(f"Cannot create user configuration {self._user_path}: {e}")
            return
        logger.info(f"Created default user configuration: {self._user_path}")

    def _write_user_settings(self, keys: Iterable[str]) -> None:
        """Merge the current values of ``keys`` into the user config file."""
        stored: Dict[str, Any] = {}
        if self._user_path.exists():
            try:
                stored = _read_json_object(self._user_path)
            except ConfigValidationError as e:
                logger.warning(f"Replacing unreadable user config: {e}")

        for key in keys:
            value = self.get(key)
            if value is not None:
                _assign(stored, key, deepcopy(value))

        self._user_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._user_path, 'w', encoding='utf-8') as f:
            json.dump(stored, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved user configuration to: {self._user_path}")
