"""
Persisted settings for Extension Shelf.
"""

import logging
from typing import Any, Optional

from ..database.connection import DatabaseManager, database_retry
from ..database.models import Setting


logger = logging.getLogger(__name__)


class SettingsStore:
    """Generic persisted name -> value store backed by the settings table."""

    def __init__(self, database_manager: DatabaseManager):
        self.database_manager = database_manager

    @database_retry(max_retries=3, base_delay=0.05)
    def get_value(self, name: str, default: Any = None) -> Any:
        with self.database_manager.get_session() as session:
            setting = session.get(Setting, name)
            if setting is None or setting.value is None:
                return default
            return setting.get_value()

    @database_retry(max_retries=5, base_delay=0.1)
    def set_value(self, name: str, value: Any) -> None:
        with self.database_manager.get_session() as session:
            setting = session.get(Setting, name)
            if setting is None:
                setting = Setting(name=name)
                session.add(setting)
            setting.set_value(value)

        logger.debug(f"Setting stored: {name} = {value!r}")


class LocalOptions:
    """Named options of this installation, layered on the settings store."""

    NEED_BUILD_EXTENSION_ICON = "needBuildExtensionIcon"
    ACTIVE_SCENE_ID = "activeSceneId"
    SCENES = "scenes"
    SHOW_SEARCH_BAR_DEFAULT = "isShowSearchBarDefault"
    SUPPORT_SEARCH_APP_STORE = "isSupportSearchAppStore"
    EXTENSION_SEARCH_SOURCE = "extensionSearchSource"

    SEARCH_SOURCES = ("default", "crxsoso")

    def __init__(self, settings_store: SettingsStore):
        self.settings_store = settings_store

    def get_need_build_extension_icon(self) -> bool:
        """Whether at least one extension is believed to need icon resolution."""
        return bool(self.settings_store.get_value(self.NEED_BUILD_EXTENSION_ICON, False))

    def set_need_build_extension_icon(self, value: bool) -> None:
        self.settings_store.set_value(self.NEED_BUILD_EXTENSION_ICON, bool(value))

    def get_active_scene_id(self) -> Optional[str]:
        return self.settings_store.get_value(self.ACTIVE_SCENE_ID)

    def set_active_scene_id(self, scene_id: Optional[str]) -> None:
        self.settings_store.set_value(self.ACTIVE_SCENE_ID, scene_id)

    def get_show_search_bar_default(self) -> bool:
        return bool(self.settings_store.get_value(self.SHOW_SEARCH_BAR_DEFAULT, False))

    def set_show_search_bar_default(self, value: bool) -> None:
        self.settings_store.set_value(self.SHOW_SEARCH_BAR_DEFAULT, bool(value))

    def get_support_search_app_store(self) -> bool:
        return bool(self.settings_store.get_value(self.SUPPORT_SEARCH_APP_STORE, False))

    def set_support_search_app_store(self, value: bool) -> None:
        self.settings_store.set_value(self.SUPPORT_SEARCH_APP_STORE, bool(value))

    def get_extension_search_source(self) -> str:
        """Store used for extension search; unknown values read back as 'default'."""
        source = self.settings_store.get_value(self.EXTENSION_SEARCH_SOURCE, "default")
        return source if source in self.SEARCH_SOURCES else "default"

    def set_extension_search_source(self, source: str) -> None:
        if source not in self.SEARCH_SOURCES:
            raise ValueError(f"extension search source must be one of: {list(self.SEARCH_SOURCES)}")
        self.settings_store.set_value(self.EXTENSION_SEARCH_SOURCE, source)
