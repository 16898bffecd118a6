"""
External extension sources for Extension Shelf.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class ExtensionSourceError(Exception):
    """Exception raised when the external source cannot be read."""
    pass


class ExtensionSource:
    """
    Authoritative but unreliable provider of extension metadata.

    Implementations may be slow and may fail; callers treat every call as
    fallible and never retry within a pass.
    """

    def fetch_metadata(self, key: str) -> Optional[Dict[str, Any]]:
        """Fresh metadata for an extension id, or None if the source has no such item."""
        raise NotImplementedError

    def fetch_icon_bytes(self, reference: str) -> Optional[bytes]:
        """Raw image bytes behind an icon reference, or None."""
        raise NotImplementedError

    def list_keys(self) -> List[str]:
        """Ids of all items the source knows about (empty when it cannot list)."""
        return []


class ChromeProfileSource(ExtensionSource):
    """Reads extensions installed in a Chromium profile ``Extensions`` directory."""

    def __init__(self, extensions_dir: str, timeout: float = 10):
        self.extensions_dir = Path(extensions_dir)
        self.timeout = timeout

    def list_keys(self) -> List[str]:
        if not self.extensions_dir.is_dir():
            logger.debug(f"Extensions directory not found: {self.extensions_dir}")
            return []

        return sorted(
            entry.name for entry in self.extensions_dir.iterdir()
            if entry.is_dir() and not entry.name.startswith('.') and entry.name != 'Temp'
        )

    def _latest_version_dir(self, key: str) -> Optional[Path]:
        extension_dir = self.extensions_dir / key
        if not extension_dir.is_dir():
            return None

        version_dirs = [d for d in extension_dir.iterdir() if (d / 'manifest.json').is_file()]
        if not version_dirs:
            return None

        return max(version_dirs, key=lambda d: _version_key(d.name))

    def fetch_metadata(self, key: str) -> Optional[Dict[str, Any]]:
        version_dir = self._latest_version_dir(key)
        if version_dir is None:
            return None

        manifest = self._read_json(version_dir / 'manifest.json')
        messages = self._load_messages(version_dir, manifest.get('default_locale'))

        icons = [
            {'size': int(size), 'url': str(version_dir / path.lstrip('/'))}
            for size, path in (manifest.get('icons') or {}).items()
            if str(size).isdigit() and isinstance(path, str)
        ]
        icons.sort(key=lambda icon: icon['size'])

        name = _localize(manifest.get('name', ''), messages)
        return {
            'id': key,
            'name': name,
            'shortName': _localize(manifest.get('short_name', ''), messages) or name,
            'description': _localize(manifest.get('description', ''), messages),
            'version': manifest.get('version', version_dir.name.split('_')[0]),
            'homepageUrl': manifest.get('homepage_url', ''),
            'icons': icons,
            'enabled': True,
            'installType': 'normal',
        }

    def fetch_icon_bytes(self, reference: str) -> Optional[bytes]:
        if not reference:
            return None

        if reference.startswith(('http://', 'https://')):
            response = requests.get(reference, timeout=self.timeout)
            response.raise_for_status()
            return response.content

        icon_path = Path(reference)
        if not icon_path.is_file():
            return None
        return icon_path.read_bytes()

    def _load_messages(self, version_dir: Path, default_locale: Optional[str]) -> Dict[str, Any]:
        if not default_locale:
            return {}

        messages_path = version_dir / '_locales' / default_locale / 'messages.json'
        if not messages_path.is_file():
            return {}

        try:
            return self._read_json(messages_path)
        except ExtensionSourceError as e:
            logger.warning(f"Ignoring unreadable locale messages {messages_path}: {e}")
            return {}

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        try:
            # Chrome writes manifests with a UTF-8 BOM sometimes
            with open(path, 'r', encoding='utf-8-sig') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ExtensionSourceError(f"Cannot read {path}: {e}")

        if not isinstance(data, dict):
            raise ExtensionSourceError(f"{path} must contain a JSON object")
        return data


def _version_key(version: str) -> tuple:
    """Sort key for '1.2.3_0' style version directory names."""
    parts = []
    for part in version.replace('_', '.').split('.'):
        parts.append(int(part) if part.isdigit() else -1)
    return tuple(parts)


def _localize(value: str, messages: Dict[str, Any]) -> str:
    """Resolve a '__MSG_key__' placeholder against locale messages."""
    if not isinstance(value, str):
        return ""
    if not (value.startswith('__MSG_') and value.endswith('__')):
        return value

    message_key = value[len('__MSG_'):-2]
    for key, entry in messages.items():
        if key.lower() == message_key.lower() and isinstance(entry, dict):
            return str(entry.get('message', value))
    return value
