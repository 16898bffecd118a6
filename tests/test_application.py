"""
Tests for application wiring and the command line entry point.
"""

import json
import logging

import pytest

from extension_shelf import main as main_module
from extension_shelf.core.application import ExtensionShelfApp
from extension_shelf.core.history_icons import HistoryRecord
from extension_shelf.utils.extension_source import ChromeProfileSource


@pytest.fixture
def app(qapp, config_manager, fake_source):
    shelf = ExtensionShelfApp(config_manager, source=fake_source)
    yield shelf
    shelf.shutdown()


class TestExtensionShelfApp:

    def test_default_source_from_config(self, qapp, config_manager, tmp_path):
        shelf = ExtensionShelfApp(config_manager)
        try:
            assert isinstance(shelf.source, ChromeProfileSource)
            assert shelf.source.extensions_dir == tmp_path / "Extensions"
        finally:
            shelf.shutdown()

    def test_installation_rearms_build(self, qtbot, app, fake_source, png_bytes):
        fake_source.add("ext-1", "Foo", png_bytes)

        with qtbot.waitSignal(app.icon_builder.build_finished, timeout=5000) as blocker:
            app.notify_extension_installed("ext-1")

        assert not blocker.args[0].force
        assert blocker.args[0].resolved == 1
        assert app.repository.get("ext-1").icon is not None

    def test_uninstall_removes_record(self, app, fake_source, png_bytes):
        fake_source.add("ext-1", "Foo", png_bytes)
        app.icon_builder.run(force=True)

        app.notify_extension_uninstalled("ext-1")

        assert app.repository.get("ext-1") is None

    def test_history_filled_from_cache(self, app, fake_source, png_bytes):
        fake_source.add("ext-1", "Foo", png_bytes)
        app.icon_builder.run(force=True)
        records = [HistoryRecord(extension_id="ext-1", name="Foo")]

        app.history_icon_filler.fill(records)

        assert records[0].icon == app.repository.get("ext-1").icon
        assert app.local_options.get_need_build_extension_icon() is False


class TestMain:

    def test_parse_args(self):
        args = main_module.parse_args(["--force", "--config", "general.json"])

        assert args.force
        assert args.config == "general.json"
        assert args.user_config is None

    def test_main_runs_one_pass(self, qapp, tmp_path, monkeypatch):
        extensions_dir = tmp_path / "Extensions"
        version_dir = extensions_dir / "aaa" / "1.0_0"
        version_dir.mkdir(parents=True)
        (version_dir / "manifest.json").write_text(json.dumps({"name": "A"}), encoding="utf-8")

        general_path = tmp_path / "general.json"
        general_path.write_text(json.dumps({
            "paths": {
                "user_config_path": str(tmp_path / "config"),
                "data_directory": str(tmp_path / "data"),
            },
            "database": {"path": str(tmp_path / "data" / "shelf.db")},
            "external_source": {"extensions_dir": str(extensions_dir)},
        }), encoding="utf-8")

        monkeypatch.setattr(main_module, "setup_logging", lambda *args, **kwargs: None)
        monkeypatch.setattr(main_module, "setup_qt_application", lambda: qapp)

        status = main_module.main([
            "--force",
            "--config", str(general_path),
            "--user-config", str(tmp_path / "config" / "user_config.json"),
        ])

        assert status == 0
        assert (tmp_path / "data" / "shelf.db").exists()

    def test_user_log_level_applied(self, qapp, tmp_path, monkeypatch):
        general_path = tmp_path / "general.json"
        general_path.write_text(json.dumps({
            "paths": {
                "user_config_path": str(tmp_path / "config"),
                "data_directory": str(tmp_path / "data"),
            },
            "database": {"path": str(tmp_path / "data" / "shelf.db")},
            "external_source": {"extensions_dir": str(tmp_path / "Extensions")},
        }), encoding="utf-8")
        user_path = tmp_path / "config" / "user_config.json"
        user_path.parent.mkdir(parents=True)
        user_path.write_text(json.dumps({"logging": {"level": "WARNING"}}), encoding="utf-8")

        monkeypatch.setattr(main_module, "setup_logging", lambda *args, **kwargs: None)
        monkeypatch.setattr(main_module, "setup_qt_application", lambda: qapp)

        root_logger = logging.getLogger()
        previous_level = root_logger.level
        try:
            status = main_module.main(["--config", str(general_path), "--user-config", str(user_path)])
            assert status == 0
            assert root_logger.level == logging.WARNING
        finally:
            root_logger.setLevel(previous_level)
