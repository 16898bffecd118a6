"""
Scene management for Extension Shelf.
"""

import logging
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from .message_channel import MessageChannel
from .settings_store import LocalOptions


logger = logging.getLogger(__name__)


CURRENT_SCENE_CHANGED = "current-scene-changed"


class SceneManager(QObject):
    """Tracks the active scene and announces changes of it."""

    # Signals
    scene_changed = Signal(object)  # scene dict, or None when all scenes were cancelled

    def __init__(self, local_options: LocalOptions, channel: MessageChannel):
        super().__init__()
        self.local_options = local_options
        self.channel = channel

        logger.info("SceneManager initialized")

    def get_scenes(self) -> List[Dict[str, Any]]:
        """User-defined scenes, in display order."""
        scenes = self.local_options.settings_store.get_value(LocalOptions.SCENES, [])
        return [scene for scene in scenes if isinstance(scene, dict) and scene.get('id')]

    def set_scenes(self, scenes: List[Dict[str, Any]]) -> None:
        self.local_options.settings_store.set_value(LocalOptions.SCENES, list(scenes))

    def get_scene(self, scene_id: str) -> Optional[Dict[str, Any]]:
        for scene in self.get_scenes():
            if scene['id'] == scene_id:
                return scene
        return None

    def get_active_scene(self) -> Optional[Dict[str, Any]]:
        active_id = self.local_options.get_active_scene_id()
        if not active_id:
            return None
        return self.get_scene(active_id)

    def switch_to_scene(self, scene_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Make a scene active, or cancel all scenes with ``None``.

        Raises:
            ValueError: If no scene has the given id
        """
        scene = None
        if scene_id is not None:
            scene = self.get_scene(scene_id)
            if scene is None:
                raise ValueError(f"Unknown scene: {scene_id}")

        logger.info(f"Switching to scene: {scene.get('name', scene_id) if scene else '<none>'}")
        self.local_options.set_active_scene_id(scene_id)

        if not self.channel.send_message(CURRENT_SCENE_CHANGED, scene):
            logger.error("Change current scene notification failed")

        self.scene_changed.emit(scene)
        return scene
