"""
Default configuration values for Extension Shelf.
"""

import os
from pathlib import Path

# Get platform-specific default paths
def get_default_paths():
    """Get platform-specific default paths."""
    home = Path.home()

    if os.name == 'nt':  # Windows
        app_data = Path(os.environ.get('APPDATA', home / 'AppData' / 'Roaming'))
        local_data = Path(os.environ.get('LOCALAPPDATA', home / 'AppData' / 'Local'))
        return {
            'config_dir': app_data / 'ExtensionShelf',
            'data_dir': local_data / 'ExtensionShelf',
            'extensions_dir': local_data / 'Google' / 'Chrome' / 'User Data' / 'Default' / 'Extensions',
        }
    else:  # Linux/macOS
        base_dir = home / '.extension_shelf'
        return {
            'config_dir': base_dir,
            'data_dir': base_dir / 'data',
            'extensions_dir': home / '.config' / 'google-chrome' / 'Default' / 'Extensions',
        }

# Get default paths
_default_paths = get_default_paths()

DEFAULT_CONFIG = {
    "version": "1.0.0",
    "paths": {
        "user_config_path": str(_default_paths['config_dir']),
        "data_directory": str(_default_paths['data_dir']),
        "log_directory": str(_default_paths['config_dir']),
    },
    "config_files": {
        "general_config_file": str(_default_paths['config_dir'] / "global_config.json"),
        "user_config_file": str(_default_paths['config_dir'] / "user_config.json"),
        "auto_create": True,  # Create the user config file on first load
    },
    "database": {
        "path": str(_default_paths['data_dir'] / "extension_shelf.db"),
        "max_concurrent_sessions": 1,
    },
    "icons": {
        "build_delay_ms": 1000,  # Debounce window before a requested pass runs
        "size": 128,  # Edge length of cached icons, in pixels
        "text_icon": {
            "font_family": "Sans Serif",
            "text_color": "#ffffff",
            "palette": [
                "#1677ff",
                "#13a8a8",
                "#52c41a",
                "#fa8c16",
                "#eb2f96",
                "#722ed1",
                "#2f54eb",
                "#fa541c",
            ],
        },
    },
    "external_source": {
        "extensions_dir": str(_default_paths['extensions_dir']),
        "timeout_seconds": 10,
    },
    "performance": {
        "max_concurrent_builds": 1,
    },
    "logging": {
        "level": "INFO", # "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
        "file_enabled": True,
        "file_path": str(_default_paths['config_dir'] / 'extension_shelf.log'),
        "console_enabled": True,
    },
}
