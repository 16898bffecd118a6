"""
Core application components for Extension Shelf.

This module contains the extension metadata cache, the icon building
pipeline and its fallback resolvers, and scene handling.
"""

from .application import ExtensionShelfApp
from .extension_repository import ExtensionRecord, ExtensionRepository, merge_extension_record
from .history_icons import HistoryIconFiller, HistoryRecord
from .icon_builder import BuildResult, ExtensionIconBuilder
from .icon_resolvers import IconResolver
from .message_channel import MessageChannel
from .scene_manager import SceneManager
from .settings_store import LocalOptions, SettingsStore

__all__ = [
    "ExtensionShelfApp",
    "ExtensionRecord",
    "ExtensionRepository",
    "merge_extension_record",
    "HistoryIconFiller",
    "HistoryRecord",
    "BuildResult",
    "ExtensionIconBuilder",
    "IconResolver",
    "MessageChannel",
    "SceneManager",
    "LocalOptions",
    "SettingsStore",
]
