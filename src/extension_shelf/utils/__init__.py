"""
Utility modules for Extension Shelf.
"""

from .extension_source import ExtensionSource, ChromeProfileSource, ExtensionSourceError
from .image_utils import ImageError, build_text_icon, bytes_to_data_uri, image_to_data_uri

__all__ = [
    "ExtensionSource",
    "ChromeProfileSource",
    "ExtensionSourceError",
    "ImageError",
    "build_text_icon",
    "bytes_to_data_uri",
    "image_to_data_uri",
]
