"""
Database module for Extension Shelf.

This module handles all database operations including models
and connections for the extension metadata cache and settings.
"""

from .models import Base, Extension, Setting
from .connection import DatabaseManager, database_retry

__all__ = [
    "Base",
    "Extension",
    "Setting",
    "DatabaseManager",
    "database_retry",
]
