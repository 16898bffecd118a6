"""
Cross-context messaging for Extension Shelf.
"""

import logging
from typing import Any, Callable, Dict, List

from PySide6.QtCore import QObject, Signal


logger = logging.getLogger(__name__)


class MessageChannel(QObject):
    """Fire-and-forget message delivery between application contexts."""

    # Signals
    message_received = Signal(str, object)  # name, payload

    def __init__(self):
        super().__init__()
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}

    def add_listener(self, name: str, callback: Callable[[Any], None]) -> None:
        self._listeners.setdefault(name, []).append(callback)

    def remove_listener(self, name: str, callback: Callable[[Any], None]) -> None:
        callbacks = self._listeners.get(name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def send_message(self, name: str, payload: Any = None) -> bool:
        """
        Deliver a message to all listeners.

        Listener failures are logged and never reach the sender.

        Returns:
            True if every listener handled the message
        """
        delivered = True

        for callback in list(self._listeners.get(name, [])):
            try:
                callback(payload)
            except Exception as e:
                delivered = False
                logger.error(f"Listener for '{name}' failed: {e}")

        self.message_received.emit(name, payload)
        return delivered
