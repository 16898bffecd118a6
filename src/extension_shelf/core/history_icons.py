"""
Icon enrichment of history records for Extension Shelf.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from .icon_builder import ExtensionIconBuilder
from .icon_resolvers import TIER_CACHE, IconResolver
from .settings_store import LocalOptions


logger = logging.getLogger(__name__)


@dataclass
class HistoryRecord:
    """One entry of the extension history shown to the user."""
    extension_id: str
    name: str = ""
    icon: Optional[str] = None


RecordSeq = TypeVar("RecordSeq", bound=Sequence)


class HistoryIconFiller:
    """Fills missing icons of history records without waiting for a build pass."""

    def __init__(self, resolver: IconResolver, local_options: LocalOptions,
                 icon_builder: ExtensionIconBuilder):
        self.resolver = resolver
        self.local_options = local_options
        self.icon_builder = icon_builder

    def fill(self, records: RecordSeq) -> RecordSeq:
        """
        Give every record without an icon one, in place.

        Any object with ``extension_id``, ``name`` and ``icon`` attributes is
        accepted. When the repository cache could not serve a record, the
        build flag is re-armed and a forced pass is scheduled so the cache
        catches up with a real icon later.
        """
        used_fallback = False

        for record in records:
            if record.icon:
                continue

            icon, tier = self.resolver.resolve(record.extension_id, record.name)
            record.icon = icon
            if tier != TIER_CACHE:
                used_fallback = True

        if used_fallback:
            try:
                self.local_options.set_need_build_extension_icon(True)
            except (SQLAlchemyError, RuntimeError) as e:
                logger.warning(f"Cannot re-arm extension icon build: {e}")
            self.icon_builder.request_build(force=True)

        return records
