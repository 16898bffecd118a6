"""
Shared fixtures for Extension Shelf tests.
"""

import json
import os

# Must be set before any Qt application is created
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QColor, QImage

from extension_shelf.config.manager import ConfigurationManager
from extension_shelf.core.extension_repository import ExtensionRepository
from extension_shelf.core.history_icons import HistoryIconFiller
from extension_shelf.core.icon_builder import ExtensionIconBuilder
from extension_shelf.core.icon_resolvers import IconResolver
from extension_shelf.core.settings_store import LocalOptions, SettingsStore
from extension_shelf.database.connection import DatabaseManager
from extension_shelf.utils.extension_source import ExtensionSource


def make_png_bytes(size: int = 48, color: str = "#ff0000") -> bytes:
    """Encode a plain square as PNG bytes."""
    image = QImage(size, size, QImage.Format_ARGB32)
    image.fill(QColor(color))

    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(byte_array.data())


class FakeExtensionSource(ExtensionSource):
    """In-memory external source that records every call."""

    def __init__(self):
        self.items = {}
        self.icon_data = {}
        self.reachable = True
        self.failing_keys = set()
        self.metadata_calls = []
        self.icon_calls = []

    def add(self, key, name, icon_bytes=None):
        icons = []
        if icon_bytes is not None:
            url = f"https://icons.example/{key}/128.png"
            self.icon_data[url] = icon_bytes
            icons = [
                {"size": 16, "url": f"https://icons.example/{key}/16.png"},
                {"size": 128, "url": url},
            ]
        self.items[key] = {"id": key, "name": name, "version": "1.0.0", "icons": icons}

    def fetch_metadata(self, key):
        self.metadata_calls.append(key)
        if not self.reachable or key in self.failing_keys:
            raise ConnectionError(f"source unreachable for {key}")
        item = self.items.get(key)
        return dict(item) if item else None

    def fetch_icon_bytes(self, reference):
        self.icon_calls.append(reference)
        if not self.reachable:
            raise ConnectionError("source unreachable")
        return self.icon_data.get(reference)

    def list_keys(self):
        if not self.reachable:
            raise ConnectionError("source unreachable")
        return list(self.items)


@pytest.fixture
def config_manager(tmp_path):
    """Configuration pointing every path into a temporary directory."""
    general_config = {
        "paths": {
            "user_config_path": str(tmp_path / "config"),
            "data_directory": str(tmp_path / "data"),
            "log_directory": str(tmp_path / "config"),
        },
        "database": {"path": str(tmp_path / "data" / "extension_shelf.db")},
        "icons": {"build_delay_ms": 0, "size": 64},
        "external_source": {"extensions_dir": str(tmp_path / "Extensions")},
    }
    general_path = tmp_path / "global_config.json"
    general_path.write_text(json.dumps(general_config), encoding="utf-8")

    manager = ConfigurationManager()
    manager.load_configuration(
        general_config_path=str(general_path),
        user_config_path=str(tmp_path / "config" / "user_config.json"),
    )
    return manager


@pytest.fixture
def database_manager(config_manager):
    manager = DatabaseManager(config_manager.get("database.path"))
    manager.initialize_database()
    yield manager
    manager.close()


@pytest.fixture
def repository(database_manager):
    return ExtensionRepository(database_manager)


@pytest.fixture
def settings_store(database_manager):
    return SettingsStore(database_manager)


@pytest.fixture
def local_options(settings_store):
    return LocalOptions(settings_store)


@pytest.fixture
def fake_source():
    return FakeExtensionSource()


@pytest.fixture
def png_bytes(qapp):
    return make_png_bytes()


@pytest.fixture
def icon_resolver(qapp, config_manager, repository, fake_source):
    return IconResolver(config_manager, repository, fake_source)


@pytest.fixture
def icon_builder(qapp, config_manager, repository, local_options, fake_source, icon_resolver):
    builder = ExtensionIconBuilder(config_manager, repository, local_options, fake_source, icon_resolver)
    yield builder
    builder.shutdown()


@pytest.fixture
def history_filler(icon_resolver, local_options, icon_builder):
    return HistoryIconFiller(icon_resolver, local_options, icon_builder)
