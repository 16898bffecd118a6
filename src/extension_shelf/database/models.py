"""
SQLAlchemy database models for Extension Shelf.
"""

import json
from typing import Any, Dict

from sqlalchemy import Column, String, Text, BigInteger, DateTime
from sqlalchemy.orm import declarative_base, validates
from sqlalchemy.sql import func


Base = declarative_base()


class Extension(Base):
    """Cached metadata of one installed extension."""

    __tablename__ = 'extensions'

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False, default='')
    icon = Column(Text, nullable=True)  # data URI once resolved

    # Raw fields reported by the external source, stored as JSON
    extra_data = Column(Text)

    # Milliseconds since epoch of the last successful external refresh
    record_update_time = Column(BigInteger, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Extension(id='{self.id}', name='{self.name}', has_icon={self.icon is not None})>"

    @validates('id')
    def validate_id(self, key: str, extension_id: str) -> str:
        if not extension_id or not extension_id.strip():
            raise ValueError("Extension id cannot be empty")
        return extension_id

    def get_extra_data(self) -> Dict[str, Any]:
        """Get external fields as dictionary."""
        if self.extra_data:
            try:
                return json.loads(self.extra_data)
            except json.JSONDecodeError:
                return {}
        return {}

    def set_extra_data(self, data: Dict[str, Any]) -> None:
        """Set external fields from dictionary."""
        self.extra_data = json.dumps(data, ensure_ascii=False)


class Setting(Base):
    """Named persisted setting (JSON encoded value)."""

    __tablename__ = 'settings'

    name = Column(String(255), primary_key=True)
    value = Column(Text)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Setting(name='{self.name}')>"

    def get_value(self) -> Any:
        if self.value is None:
            return None
        return json.loads(self.value)

    def set_value(self, value: Any) -> None:
        self.value = json.dumps(value, ensure_ascii=False)
