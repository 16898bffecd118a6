#!/usr/bin/env python3
"""
Main entry point for Extension Shelf.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from PySide6.QtCore import QTimer
from PySide6.QtGui import QGuiApplication

from .config.manager import ConfigurationManager
from .core.application import ExtensionShelfApp


def setup_logging(log_level: str = None, log_file_path: str = None) -> None:
    """Setup application logging from the logging section of defaults.py."""
    from .config.defaults import DEFAULT_CONFIG

    logging_config = DEFAULT_CONFIG.get('logging', {})

    if log_level is None:
        log_level = logging_config.get('level', 'INFO')
    if log_file_path is None:
        log_file_path = logging_config.get('file_path', 'extension_shelf.log')

    file_enabled = logging_config.get('file_enabled', True)
    console_enabled = logging_config.get('console_enabled', True)

    handlers = []
    if console_enabled:
        handlers.append(logging.StreamHandler(sys.stdout))
    if file_enabled:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_path)))

    # Fallback to console if no handlers enabled
    if not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=log_format,
        handlers=handlers,
    )


def apply_logging_config(config_manager: ConfigurationManager) -> None:
    """Apply the logging level of the loaded configuration to the root logger."""
    level = config_manager.get('logging.level', 'INFO')
    logging.getLogger().setLevel(getattr(logging, level.upper()))


def setup_qt_application() -> QGuiApplication:
    """Setup the Qt application; text icons need a GUI application for fonts."""
    # Icon building has no window, so run headless unless told otherwise
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    app = QGuiApplication(sys.argv[:1])
    app.setApplicationName("Extension Shelf")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("Extension Shelf")
    return app


def find_config_files() -> Tuple[Optional[str], Optional[str]]:
    """Find configuration files using paths from defaults.py configuration."""
    from .config.defaults import DEFAULT_CONFIG

    config_files = DEFAULT_CONFIG.get('config_files', {})
    default_general_config = config_files.get('general_config_file')
    default_user_config = config_files.get('user_config_file')

    search_dirs = [
        Path.cwd(),
        Path(default_user_config).parent if default_user_config else None,
        Path("/etc/extension_shelf") if os.name != 'nt' else None,  # System-wide
    ]
    search_dirs = [d for d in search_dirs if d is not None]

    general_config = None
    user_config = None

    for search_dir in search_dirs:
        if not search_dir.exists():
            continue

        general_path = search_dir / "global_config.json"
        if general_path.exists() and general_config is None:
            general_config = str(general_path)

        user_path = search_dir / "user_config.json"
        if user_path.exists() and user_config is None:
            user_config = str(user_path)

    if general_config is None and default_general_config:
        general_config = default_general_config

    if user_config is None and default_user_config:
        user_config = default_user_config

    return general_config, user_config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="extension-shelf",
        description="Refresh the cached icons of installed browser extensions.",
    )
    parser.add_argument("--force", action="store_true",
                        help="scan all extensions even if no build is pending")
    parser.add_argument("--config", help="general configuration file")
    parser.add_argument("--user-config", help="user configuration file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point: run one icon building pass and exit."""
    args = parse_args(argv)

    try:
        setup_logging()
        logger = logging.getLogger(__name__)
        logger.info("Starting Extension Shelf...")

        qt_app = setup_qt_application()

        general_config, user_config = find_config_files()
        general_config = args.config or general_config
        user_config = args.user_config or user_config
        logger.info(f"Configuration files: general={general_config}, user={user_config}")

        config_manager = ConfigurationManager()
        config_manager.load_configuration(
            general_config_path=general_config,
            user_config_path=user_config,
        )
        apply_logging_config(config_manager)

        app = ExtensionShelfApp(config_manager)

    except Exception as e:
        logger = logging.getLogger(__name__)
        logger.error(f"Failed to start Extension Shelf: {e}", exc_info=True)
        return 1

    def run_build():
        status = 0
        try:
            app.icon_builder.run(force=args.force)
        except Exception as e:
            logging.getLogger(__name__).error(f"Icon building failed: {e}", exc_info=True)
            status = 1
        finally:
            app.shutdown()
            qt_app.exit(status)

    QTimer.singleShot(0, run_build)
    return qt_app.exec()


if __name__ == "__main__":
    sys.exit(main())
