"""
Extension Shelf - browser extension metadata cache with scene support.

Keeps a local SQLite cache of installed extensions, resolves a display
icon for each of them in the background, and tracks user-defined scenes.
Built with Python 3 and PySide6.
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Package metadata
__all__ = [
    "__version__",
    "__license__",
]
