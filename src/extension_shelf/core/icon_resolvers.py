"""
Icon fallback resolvers for Extension Shelf.

Tiers, tried in order by callers:
    1. cached icon from the extension repository
    2. icon downloaded through the external source
    3. text icon synthesized from the display name (never fails)
"""

import logging
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..config.manager import ConfigurationManager
from ..utils.extension_source import ExtensionSource
from ..utils.image_utils import ImageError, build_text_icon, bytes_to_data_uri
from .extension_repository import ExtensionRecord, ExtensionRepository


logger = logging.getLogger(__name__)


TIER_CACHE = 1
TIER_DOWNLOAD = 2
TIER_TEXT = 3


def pick_largest_icon(metadata: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Reference of the largest icon listed in external metadata, or None."""
    if not metadata:
        return None

    icons = metadata.get('icons') or []
    candidates = [
        icon for icon in icons
        if isinstance(icon, Mapping) and icon.get('url')
    ]
    if not candidates:
        return None

    largest = max(candidates, key=_icon_size)
    return str(largest['url'])


def _icon_size(icon: Mapping[str, Any]) -> int:
    try:
        return int(icon.get('size') or 0)
    except (TypeError, ValueError):
        return 0


class IconResolver:
    """The three icon resolver tiers, sharing configuration and collaborators."""

    def __init__(self, config_manager: ConfigurationManager, repository: ExtensionRepository,
                 source: ExtensionSource):
        self.config_manager = config_manager
        self.repository = repository
        self.source = source

        self.icon_size = self.config_manager.get('icons.size', 128)
        self.font_family = self.config_manager.get('icons.text_icon.font_family', 'Sans Serif')
        self.text_color = self.config_manager.get('icons.text_icon.text_color', '#ffffff')
        self.palette = self.config_manager.get('icons.text_icon.palette', ['#1677ff'])

    def resolve(self, extension_id: Optional[str], name: Optional[str]) -> Tuple[str, int]:
        """
        Run the full fallback chain for one extension.

        Returns:
            (icon data URI, tier that produced it)
        """
        cached = self._load_cached(extension_id)
        if cached and cached.icon:
            return cached.icon, TIER_CACHE

        # Only the cached external fields are used here, never a fresh fetch
        icon = self.download(cached.metadata if cached else None)
        if icon:
            return icon, TIER_DOWNLOAD

        return self.text_icon(name), TIER_TEXT

    def _load_cached(self, extension_id: Optional[str]) -> Optional[ExtensionRecord]:
        if not extension_id:
            return None

        try:
            return self.repository.get(extension_id)
        except (SQLAlchemyError, RuntimeError) as e:
            logger.warning(f"Cannot read cached extension {extension_id}: {e}")
            return None

    def download(self, metadata: Optional[Mapping[str, Any]]) -> Optional[str]:
        """Tier 2: fetch the largest listed icon and encode it. Returns None on any failure."""
        reference = pick_largest_icon(metadata)
        if reference is None:
            return None

        try:
            data = self.source.fetch_icon_bytes(reference)
            if not data:
                logger.debug(f"No icon data behind {reference}")
                return None
            return bytes_to_data_uri(data, self.icon_size)
        except ImageError as e:
            logger.warning(f"Cannot decode icon {reference}: {e}")
        except Exception as e:
            logger.warning(f"Icon download failed for {reference}: {e}")
        return None

    def text_icon(self, name: Optional[str]) -> str:
        """Tier 3: deterministic text icon. Always returns a data URI."""
        return build_text_icon(name, self.icon_size, self.palette,
                               font_family=self.font_family, text_color=self.text_color)
