"""
Image encoding utilities for Extension Shelf.
"""

import base64
import logging
import zlib
from typing import Optional, Sequence

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PySide6.QtGui import QColor, QFont, QImage, QPainter

logger = logging.getLogger(__name__)


DATA_URI_PREFIX = "data:image/png;base64,"


class ImageError(Exception):
    """Exception raised when image bytes cannot be decoded or encoded."""
    pass


def image_to_data_uri(image: QImage) -> str:
    """Encode a QImage as a PNG data URI."""
    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.WriteOnly)
    try:
        if not image.save(buffer, "PNG"):
            raise ImageError("PNG encoding failed")
    finally:
        buffer.close()

    return DATA_URI_PREFIX + base64.b64encode(bytes(byte_array.data())).decode("ascii")


def decode_image(data: bytes) -> QImage:
    """
    Decode raw image bytes (PNG, JPEG, GIF, ICO, ...).

    Raises:
        ImageError: If the bytes are empty or not a decodable image
    """
    if not data:
        raise ImageError("No image data")

    image = QImage()
    if not image.loadFromData(data) or image.isNull():
        raise ImageError("Unsupported or corrupt image data")

    return image


def bytes_to_data_uri(data: bytes, size: int) -> str:
    """Decode image bytes, scale them to fit ``size`` px and encode as PNG data URI."""
    image = decode_image(data)

    if image.width() != size or image.height() != size:
        image = image.scaled(size, size, Qt.KeepAspectRatio, Qt.SmoothTransformation)

    return image_to_data_uri(image)


def glyph_for_name(name: Optional[str]) -> str:
    """First character of the stripped name, upper-cased; '?' for an empty name."""
    stripped = (name or "").strip()
    if not stripped:
        return "?"
    return stripped[0].upper()


def pick_color(name: Optional[str], palette: Sequence[str]) -> str:
    """Stable palette pick for a name (crc32, not the salted builtin hash)."""
    checksum = zlib.crc32((name or "").encode("utf-8"))
    return palette[checksum % len(palette)]


def build_text_icon(name: Optional[str], size: int, palette: Sequence[str],
                    font_family: str = "Sans Serif", text_color: str = "#ffffff") -> str:
    """
    Render a rounded square with the first letter of ``name`` as a PNG data URI.

    Pure function of its arguments; needs a QGuiApplication for font rendering.
    """
    image = QImage(size, size, QImage.Format_ARGB32)
    image.fill(Qt.transparent)

    painter = QPainter(image)
    try:
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setRenderHint(QPainter.TextAntialiasing)

        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(pick_color(name, palette)))
        radius = size * 0.2
        painter.drawRoundedRect(0, 0, size, size, radius, radius)

        font = QFont(font_family)
        font.setPixelSize(max(1, int(size * 0.6)))
        font.setBold(True)
        painter.setFont(font)
        painter.setPen(QColor(text_color))
        painter.drawText(image.rect(), Qt.AlignCenter, glyph_for_name(name))
    finally:
        painter.end()

    return image_to_data_uri(image)
