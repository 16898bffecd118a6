"""
Extension metadata repository for Extension Shelf.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..database.connection import DatabaseManager, database_retry
from ..database.models import Extension


logger = logging.getLogger(__name__)


@dataclass
class ExtensionRecord:
    """Cached metadata of one extension, keyed by its stable id."""
    id: str
    name: str = ""
    icon: Optional[str] = None  # data URI, None while unresolved
    metadata: Dict[str, Any] = field(default_factory=dict)  # raw external fields
    record_update_time: Optional[int] = None  # ms since epoch

    @property
    def has_icon(self) -> bool:
        return bool(self.icon)


def merge_extension_record(old: Optional[ExtensionRecord], fresh: Mapping[str, Any],
                           icon: Optional[str], update_time: Optional[int]) -> ExtensionRecord:
    """
    Merge freshly fetched external fields onto a cached record.

    Fresh fields override the cached ones; the resolved icon and the update
    time override both. The id of ``old`` wins when both are present.
    """
    if old is None and not fresh.get('id'):
        raise ValueError("Cannot merge an extension record without an id")

    metadata = dict(old.metadata) if old else {}
    metadata.update(fresh)
    metadata.pop('icon', None)

    extension_id = old.id if old else str(fresh['id'])
    metadata['id'] = extension_id

    name = fresh.get('name') or (old.name if old else "")

    return ExtensionRecord(
        id=extension_id,
        name=str(name),
        icon=icon if icon else (old.icon if old else None),
        metadata=metadata,
        record_update_time=update_time if update_time is not None else (old.record_update_time if old else None),
    )


class ExtensionRepository:
    """Durable key -> ExtensionRecord store."""

    def __init__(self, database_manager: DatabaseManager):
        self.database_manager = database_manager

    @staticmethod
    def _to_record(db_extension: Extension) -> ExtensionRecord:
        return ExtensionRecord(
            id=db_extension.id,
            name=db_extension.name or "",
            icon=db_extension.icon,
            metadata=db_extension.get_extra_data(),
            record_update_time=db_extension.record_update_time,
        )

    @database_retry(max_retries=3, base_delay=0.05)
    def get(self, key: str) -> Optional[ExtensionRecord]:
        """Get the cached record for an extension id, or None."""
        if not key:
            return None

        with self.database_manager.get_session() as session:
            db_extension = session.get(Extension, key)
            if db_extension is None:
                return None
            return self._to_record(db_extension)

    @database_retry(max_retries=5, base_delay=0.1)
    def set(self, record: ExtensionRecord) -> None:
        """Insert or replace the record stored under ``record.id``."""
        with self.database_manager.get_session() as session:
            db_extension = session.get(Extension, record.id)
            if db_extension is None:
                db_extension = Extension(id=record.id)
                session.add(db_extension)

            db_extension.name = record.name or ""
            db_extension.icon = record.icon or None
            db_extension.set_extra_data(record.metadata)
            db_extension.record_update_time = record.record_update_time

        logger.debug(f"Stored extension record: {record.id}")

    @database_retry(max_retries=5, base_delay=0.1)
    def add_if_absent(self, record: ExtensionRecord) -> bool:
        """Insert ``record`` unless its id is already stored; existing rows are left untouched."""
        with self.database_manager.get_session() as session:
            if session.get(Extension, record.id) is not None:
                return False

            db_extension = Extension(id=record.id)
            db_extension.name = record.name or ""
            db_extension.icon = record.icon or None
            db_extension.set_extra_data(record.metadata)
            db_extension.record_update_time = record.record_update_time
            session.add(db_extension)

        logger.debug(f"Added extension record: {record.id}")
        return True

    @database_retry(max_retries=3, base_delay=0.05)
    def get_keys(self) -> List[str]:
        """Get the ids of all cached extensions."""
        with self.database_manager.get_session() as session:
            return [row[0] for row in session.query(Extension.id).all()]

    @database_retry(max_retries=3, base_delay=0.05)
    def get_all(self) -> List[ExtensionRecord]:
        with self.database_manager.get_session() as session:
            return [self._to_record(e) for e in session.query(Extension).all()]

    @database_retry(max_retries=5, base_delay=0.1)
    def delete(self, key: str) -> bool:
        """Remove a cached extension, e.g. after it was uninstalled."""
        with self.database_manager.get_session() as session:
            db_extension = session.get(Extension, key)
            if db_extension is None:
                return False
            session.delete(db_extension)

        logger.info(f"Removed extension record: {key}")
        return True
