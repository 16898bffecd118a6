"""
Extension icon building for Extension Shelf.

Keeps the icon cache of the extension repository warm: a pass fetches fresh
metadata for every extension that has no icon yet, downloads its icon and
writes the merged record back. Passes are cheap no-ops unless forced or the
persisted ``needBuildExtensionIcon`` flag is set.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot

from ..config.manager import ConfigurationManager
from ..utils.extension_source import ExtensionSource
from .extension_repository import ExtensionRecord, ExtensionRepository, merge_extension_record
from .icon_resolvers import IconResolver
from .settings_store import LocalOptions


logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of one icon building pass."""
    force: bool = False
    skipped: bool = False  # gated out, nothing was read or fetched
    discovered: int = 0  # records seeded from the external source
    scanned: int = 0
    resolved: int = 0
    unresolved: int = 0  # source had no item or no usable icon this pass
    failed: int = 0  # per-key exception, retried on a later pass


class IconBuildWorker(QRunnable):
    """Worker running one icon building pass in a background thread."""

    def __init__(self, builder: "ExtensionIconBuilder", force: bool):
        super().__init__()
        self.builder = builder
        self.force = force

    @Slot()
    def run(self):
        try:
            self.builder.run(self.force)
        except Exception as e:
            logger.error(f"Icon building pass aborted: {e}", exc_info=True)


class ExtensionIconBuilder(QObject):
    """Resolves and caches extension icons in the background."""

    # Signals
    build_started = Signal(bool)  # force
    icon_resolved = Signal(str, str)  # extension_id, icon data URI
    build_finished = Signal(object)  # BuildResult

    _build_requested = Signal(bool)  # force

    def __init__(self, config_manager: ConfigurationManager, repository: ExtensionRepository,
                 local_options: LocalOptions, source: ExtensionSource,
                 resolver: Optional[IconResolver] = None):
        super().__init__()
        self.config_manager = config_manager
        self.repository = repository
        self.local_options = local_options
        self.source = source
        self.resolver = resolver or IconResolver(config_manager, repository, source)

        self.build_delay_ms = self.config_manager.get('icons.build_delay_ms', 1000)

        self.thread_pool = QThreadPool()
        max_threads = self.config_manager.get('performance.max_concurrent_builds', 1)
        self.thread_pool.setMaxThreadCount(max_threads)

        # Requests may come from worker threads; timers are started in ours
        self._build_requested.connect(self._schedule_build)

        logger.info(f"ExtensionIconBuilder initialized (build delay: {self.build_delay_ms} ms)")

    def request_build(self, force: bool = False) -> None:
        """Schedule one pass after the debounce delay. Calls are not coalesced."""
        self._build_requested.emit(force)

    @Slot(bool)
    def _schedule_build(self, force: bool) -> None:
        QTimer.singleShot(self.build_delay_ms, lambda: self._start_worker(force))

    def _start_worker(self, force: bool) -> None:
        self.thread_pool.start(IconBuildWorker(self, force))

    def run(self, force: bool = False) -> BuildResult:
        """Run one pass synchronously."""
        result = BuildResult(force=force)

        # Resolution does file and network I/O, so unforced passes need the flag
        if not force and not self.local_options.get_need_build_extension_icon():
            logger.debug("No extension needs an icon, skipping build")
            result.skipped = True
            self.build_finished.emit(result)
            return result

        logger.info(f"Building extension icons (force={force})")
        self.build_started.emit(force)

        result.discovered = self._discover_new_extensions()

        for key in self.repository.get_keys():
            result.scanned += 1
            try:
                resolved = self._build_one(key)
            except Exception as e:
                result.failed += 1
                logger.warning(f"Icon build failed for {key}: {e}")
                continue

            if resolved is None:
                continue
            if resolved:
                result.resolved += 1
            else:
                result.unresolved += 1

        # Unresolved keys wait for the next external signal to re-arm the flag
        self.local_options.set_need_build_extension_icon(False)

        logger.info(f"Extension icon build finished: {result.resolved} resolved, "
                    f"{result.unresolved} unresolved, {result.failed} failed "
                    f"of {result.scanned} extensions")
        self.build_finished.emit(result)
        return result

    def _build_one(self, key: str) -> Optional[bool]:
        """
        Resolve the icon of one extension.

        Returns:
            None if nothing needed doing, True if an icon was stored,
            False if the extension stays unresolved for this pass
        """
        record = self.repository.get(key)
        if record is None or record.icon:
            return None

        fresh = self.source.fetch_metadata(key)
        if not fresh:
            logger.debug(f"External source has no extension {key}")
            return False

        icon = self.resolver.download(fresh)
        if not icon:
            logger.debug(f"No icon could be downloaded for {key}")
            return False

        merged = merge_extension_record(record, fresh, icon, int(time.time() * 1000))
        self.repository.set(merged)
        self.icon_resolved.emit(key, icon)
        logger.debug(f"Cached icon for {key}")
        return True

    def _discover_new_extensions(self) -> int:
        """Seed bare records for items the source lists but the repository lacks."""
        try:
            listed = self.source.list_keys()
        except Exception as e:
            logger.warning(f"Cannot list external extensions: {e}")
            return 0

        if not listed:
            return 0

        known = set(self.repository.get_keys())
        discovered = 0
        for key in listed:
            if key in known:
                continue
            # Another pass may have stored this key since the snapshot
            if self.repository.add_if_absent(ExtensionRecord(id=key)):
                discovered += 1

        if discovered:
            logger.info(f"Discovered {discovered} new extensions")
        return discovered

    def shutdown(self) -> None:
        """Wait for running passes to complete."""
        logger.info("ExtensionIconBuilder shutting down")
        if not self.thread_pool.waitForDone(5000):
            logger.warning("Some icon building workers did not complete in time")
