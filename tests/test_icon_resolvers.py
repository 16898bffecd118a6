"""
Tests for the icon fallback resolvers and image helpers.
"""

import base64

import pytest
from PySide6.QtGui import QImage

from extension_shelf.core.extension_repository import ExtensionRecord
from extension_shelf.core.icon_resolvers import (
    TIER_CACHE, TIER_DOWNLOAD, TIER_TEXT, pick_largest_icon,
)
from extension_shelf.utils.image_utils import (
    DATA_URI_PREFIX, ImageError, bytes_to_data_uri, decode_image, glyph_for_name, pick_color,
)


def decode_data_uri(data_uri: str) -> QImage:
    assert data_uri.startswith(DATA_URI_PREFIX)
    image = QImage()
    assert image.loadFromData(base64.b64decode(data_uri[len(DATA_URI_PREFIX):]))
    return image


class TestImageUtils:
    """Test decoding, encoding and text icon helpers."""

    def test_bytes_to_data_uri_scales(self, png_bytes):
        image = decode_data_uri(bytes_to_data_uri(png_bytes, 32))
        assert (image.width(), image.height()) == (32, 32)

    def test_decode_rejects_garbage(self, qapp):
        with pytest.raises(ImageError):
            decode_image(b"<html>not an image</html>")
        with pytest.raises(ImageError):
            decode_image(b"")

    def test_glyph_for_name(self):
        assert glyph_for_name("dark reader") == "D"
        assert glyph_for_name("  uBlock") == "U"
        assert glyph_for_name("") == "?"
        assert glyph_for_name(None) == "?"

    def test_pick_color_is_stable(self):
        palette = ["#000001", "#000002", "#000003"]
        assert pick_color("Foo", palette) == pick_color("Foo", palette)
        assert pick_color("Foo", palette) in palette


class TestPickLargestIcon:

    def test_picks_largest(self):
        metadata = {"icons": [
            {"size": 16, "url": "a"},
            {"size": 128, "url": "c"},
            {"size": 48, "url": "b"},
        ]}
        assert pick_largest_icon(metadata) == "c"

    def test_missing_or_malformed(self):
        assert pick_largest_icon(None) is None
        assert pick_largest_icon({}) is None
        assert pick_largest_icon({"icons": [{"size": 16}]}) is None
        assert pick_largest_icon({"icons": [{"size": "big", "url": "x"}]}) == "x"


class TestIconResolver:
    """Test each tier and the full chain."""

    def test_download_success(self, icon_resolver, fake_source, png_bytes):
        fake_source.add("ext-1", "Foo", png_bytes)

        icon = icon_resolver.download(fake_source.items["ext-1"])

        image = decode_data_uri(icon)
        assert image.width() == 64
        assert fake_source.icon_calls == ["https://icons.example/ext-1/128.png"]

    def test_download_failures_return_none(self, icon_resolver, fake_source, png_bytes):
        fake_source.add("ext-1", "Foo", png_bytes)
        metadata = fake_source.items["ext-1"]

        assert icon_resolver.download(None) is None
        assert icon_resolver.download({"icons": []}) is None

        fake_source.icon_data[metadata["icons"][-1]["url"]] = b"not an image"
        assert icon_resolver.download(metadata) is None

        fake_source.reachable = False
        assert icon_resolver.download(metadata) is None

    def test_text_icon_is_deterministic(self, icon_resolver):
        first = icon_resolver.text_icon("Foo")
        second = icon_resolver.text_icon("Foo")

        assert first == second
        assert decode_data_uri(first).width() == 64

    def test_text_icon_for_empty_name(self, icon_resolver):
        assert icon_resolver.text_icon("").startswith(DATA_URI_PREFIX)
        assert icon_resolver.text_icon(None).startswith(DATA_URI_PREFIX)

    def test_resolve_prefers_cache(self, icon_resolver, repository, fake_source):
        repository.set(ExtensionRecord(id="ext-1", name="Foo", icon="data:image/png;base64,CACHED"))

        assert icon_resolver.resolve("ext-1", "Foo") == ("data:image/png;base64,CACHED", TIER_CACHE)
        assert fake_source.icon_calls == []

    def test_resolve_downloads_from_cached_metadata(self, icon_resolver, repository, fake_source, png_bytes):
        fake_source.add("ext-1", "Foo", png_bytes)
        repository.set(ExtensionRecord(id="ext-1", name="Foo", metadata=fake_source.items["ext-1"]))

        icon, tier = icon_resolver.resolve("ext-1", "Foo")

        assert tier == TIER_DOWNLOAD
        assert icon.startswith(DATA_URI_PREFIX)
        # No fresh metadata fetch on this path
        assert fake_source.metadata_calls == []

    def test_resolve_falls_back_to_text(self, icon_resolver, fake_source):
        fake_source.reachable = False

        icon, tier = icon_resolver.resolve("unknown", "Foo")

        assert tier == TIER_TEXT
        assert icon == icon_resolver.text_icon("Foo")
