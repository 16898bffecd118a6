"""
Main application class for Extension Shelf.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal

from ..config.manager import ConfigurationManager
from ..database.connection import DatabaseManager
from ..utils.extension_source import ChromeProfileSource, ExtensionSource
from .extension_repository import ExtensionRepository
from .history_icons import HistoryIconFiller
from .icon_builder import ExtensionIconBuilder
from .icon_resolvers import IconResolver
from .message_channel import MessageChannel
from .scene_manager import SceneManager
from .settings_store import LocalOptions, SettingsStore


logger = logging.getLogger(__name__)


class ExtensionShelfApp(QObject):
    """Wires the extension cache, icon building and scenes together."""

    # Signals
    application_started = Signal()
    application_closing = Signal()

    def __init__(self, config_manager: ConfigurationManager,
                 source: Optional[ExtensionSource] = None):
        super().__init__()
        self.config_manager = config_manager

        self.database_manager: Optional[DatabaseManager] = None
        self.settings_store: Optional[SettingsStore] = None
        self.local_options: Optional[LocalOptions] = None
        self.repository: Optional[ExtensionRepository] = None
        self.source: Optional[ExtensionSource] = source
        self.icon_resolver: Optional[IconResolver] = None
        self.icon_builder: Optional[ExtensionIconBuilder] = None
        self.history_icon_filler: Optional[HistoryIconFiller] = None
        self.message_channel: Optional[MessageChannel] = None
        self.scene_manager: Optional[SceneManager] = None

        self._initialized = False
        self._initialize()

    def _initialize(self) -> None:
        """Initialize application components."""
        logger.info("Initializing Extension Shelf application...")

        self._initialize_database()
        self._initialize_managers()

        self._initialized = True
        logger.info("Application initialization completed successfully")

    def _initialize_database(self) -> None:
        self.database_manager = DatabaseManager(
            self.config_manager.get('database.path'),
            self.config_manager.get('database.max_concurrent_sessions', 1),
        )
        self.database_manager.initialize_database()

    def _initialize_managers(self) -> None:
        """Initialize core application managers."""
        self.settings_store = SettingsStore(self.database_manager)
        self.local_options = LocalOptions(self.settings_store)
        self.repository = ExtensionRepository(self.database_manager)

        if self.source is None:
            self.source = ChromeProfileSource(
                self.config_manager.get('external_source.extensions_dir'),
                timeout=self.config_manager.get('external_source.timeout_seconds', 10),
            )

        self.icon_resolver = IconResolver(self.config_manager, self.repository, self.source)
        self.icon_builder = ExtensionIconBuilder(
            config_manager=self.config_manager,
            repository=self.repository,
            local_options=self.local_options,
            source=self.source,
            resolver=self.icon_resolver,
        )
        self.history_icon_filler = HistoryIconFiller(
            self.icon_resolver, self.local_options, self.icon_builder
        )

        self.message_channel = MessageChannel()
        self.scene_manager = SceneManager(self.local_options, self.message_channel)

    def notify_extension_installed(self, extension_id: str) -> None:
        """Mark the icon cache stale after an installation and schedule a pass."""
        logger.info(f"Extension installed: {extension_id}")
        self.local_options.set_need_build_extension_icon(True)
        self.icon_builder.request_build()

    def notify_extension_uninstalled(self, extension_id: str) -> None:
        logger.info(f"Extension uninstalled: {extension_id}")
        self.repository.delete(extension_id)

    def shutdown(self) -> None:
        """Stop background work and release the database."""
        if not self._initialized:
            return

        logger.info("Extension Shelf shutting down")
        self.application_closing.emit()

        if self.icon_builder:
            self.icon_builder.shutdown()
        if self.database_manager:
            self.database_manager.close()

        self._initialized = False
