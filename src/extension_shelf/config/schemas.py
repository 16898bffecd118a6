"""
Configuration schema validation for Extension Shelf.
"""

from typing import Dict, Any
import re
from pathlib import Path


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class ConfigSchema:
    """Configuration schema validator."""

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> None:
        """Validate complete configuration dictionary."""
        ConfigSchema._validate_paths(config.get("paths", {}))
        ConfigSchema._validate_database(config.get("database", {}))
        ConfigSchema._validate_icons(config.get("icons", {}))
        ConfigSchema._validate_external_source(config.get("external_source", {}))
        ConfigSchema._validate_performance(config.get("performance", {}))
        ConfigSchema._validate_logging(config.get("logging", {}))

    @staticmethod
    def _validate_paths(paths: Dict[str, Any]) -> None:
        """Validate paths configuration."""
        required_paths = ["user_config_path", "data_directory"]

        for path_key in required_paths:
            if path_key not in paths:
                raise ConfigValidationError(f"Missing required path: {path_key}")

            path_value = paths[path_key]
            if not isinstance(path_value, str):
                raise ConfigValidationError(f"Path {path_key} must be a string")

            # Validate path exists or can be created
            try:
                path_obj = Path(path_value)
                if not path_obj.exists():
                    path_obj.mkdir(parents=True, exist_ok=True)
            except (OSError, PermissionError) as e:
                raise ConfigValidationError(f"Cannot access or create path {path_key}: {e}")

    @staticmethod
    def _validate_database(database: Dict[str, Any]) -> None:
        """Validate database configuration."""
        if "path" in database:
            db_path = database["path"]
            if not isinstance(db_path, str):
                raise ConfigValidationError("database path must be a string")

        if "max_concurrent_sessions" in database:
            sessions = database["max_concurrent_sessions"]
            if not isinstance(sessions, int) or sessions < 1:
                raise ConfigValidationError("max_concurrent_sessions must be a positive integer")

    @staticmethod
    def _validate_icons(icons: Dict[str, Any]) -> None:
        """Validate icon building configuration."""
        if "build_delay_ms" in icons:
            delay = icons["build_delay_ms"]
            if not isinstance(delay, int) or delay < 0:
                raise ConfigValidationError("build_delay_ms must be a non-negative integer")

        if "size" in icons:
            size = icons["size"]
            if not isinstance(size, int) or size < 16 or size > 512:
                raise ConfigValidationError("icon size must be between 16 and 512")

        text_icon = icons.get("text_icon", {})
        if "palette" in text_icon:
            palette = text_icon["palette"]
            if not isinstance(palette, list) or not palette:
                raise ConfigValidationError("text_icon palette must be a non-empty list")

            for color in palette:
                if not isinstance(color, str) or not _HEX_COLOR.match(color):
                    raise ConfigValidationError(f"Invalid palette color: {color!r}")

        if "text_color" in text_icon:
            color = text_icon["text_color"]
            if not isinstance(color, str) or not _HEX_COLOR.match(color):
                raise ConfigValidationError(f"Invalid text_icon text_color: {color!r}")

    @staticmethod
    def _validate_external_source(source: Dict[str, Any]) -> None:
        """Validate external source configuration."""
        if "extensions_dir" in source:
            if not isinstance(source["extensions_dir"], str):
                raise ConfigValidationError("extensions_dir must be a string")

        if "timeout_seconds" in source:
            timeout = source["timeout_seconds"]
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigValidationError("external_source timeout_seconds must be a positive number")

    @staticmethod
    def _validate_performance(performance: Dict[str, Any]) -> None:
        """Validate performance configuration."""
        if "max_concurrent_builds" in performance:
            max_builds = performance["max_concurrent_builds"]
            if not isinstance(max_builds, int) or max_builds < 1 or max_builds > 8:
                raise ConfigValidationError("max_concurrent_builds must be between 1 and 8")

    @staticmethod
    def _validate_logging(logging_config: Dict[str, Any]) -> None:
        """Validate logging configuration."""
        if "level" in logging_config:
            level = logging_config["level"]
            valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if level not in valid_levels:
                raise ConfigValidationError(f"logging level must be one of: {valid_levels}")


def validate_user_config(config: Dict[str, Any]) -> None:
    """Validate user-specific configuration."""
    if "icons" in config:
        ConfigSchema._validate_icons(config["icons"])

    if "logging" in config:
        ConfigSchema._validate_logging(config["logging"])
