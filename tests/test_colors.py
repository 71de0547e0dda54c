"""Tests for color resolution."""

from __future__ import annotations

import pytest
from openpyxl.styles import Color, PatternFill

from xls_cellmodel.colors import (
    ColorCache,
    ColorDescriptor,
    ColorResolver,
    apply_tint,
    normalize_rgb,
    theme_of,
    tint_of,
)


class _Unreadable:
    """A color whose every attribute access fails."""

    def __getattr__(self, name):
        raise RuntimeError(f"cannot read {name}")


class TestNormalizeRgb:
    """Tests for direct color codes."""

    @pytest.mark.parametrize("code, expected", [
        ("FF00FF00", "00FF00"),
        ("00ff00", "00FF00"),
        ("F00", "FF0000"),
        ("#abc", "AABBCC"),
    ])
    def test_accepts_argb_rgb_and_shorthand(self, code, expected):
        assert normalize_rgb(code) == expected

    @pytest.mark.parametrize("code", ["ZZZZZZ", "12345", "", None, 123])
    def test_rejects_malformed_codes(self, code):
        assert normalize_rgb(code) is None


class TestApplyTint:
    """Tests for tint application."""

    def test_zero_tint_is_identity(self):
        for base in ("808080", "5B9BD5", "000000", "FFFFFF"):
            assert apply_tint(base, 0) == base

    def test_full_tints(self):
        assert apply_tint("808080", 1.0) == "FFFFFF"
        assert apply_tint("808080", -1.0) == "000000"

    def test_partial_tints(self):
        assert apply_tint("5B9BD5", 0.4) == "9CC3E5"
        assert apply_tint("808080", -0.5) == "404040"

    def test_invalid_base_is_returned_unchanged(self):
        assert apply_tint("XYZXYZ", 0.5) == "XYZXYZ"
        assert apply_tint("FFF", 0.5) == "FFF"


class TestColorResolver:
    """Tests for ColorResolver precedence."""

    def test_rgb_wins_over_theme(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor(rgb="FF00FF00", theme=4)) == "00FF00"

    def test_malformed_rgb_falls_through_to_none(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor(rgb="ZZZZZZ")) is None

    def test_malformed_rgb_falls_through_to_theme(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor(rgb="ZZZZZZ", theme=4)) == "5B9BD5"

    def test_indexed_palette(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor(indexed=2)) == "FF0000"
        assert resolver.resolve(ColorDescriptor(indexed=64)) is None

    def test_theme_with_tint(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor(theme=4)) == "5B9BD5"
        assert resolver.resolve(ColorDescriptor(theme=4, tint=0.4)) == "9CC3E5"
        assert resolver.resolve(ColorDescriptor(theme=12)) is None

    def test_auto_resolves_to_black(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor(auto=True)) == "000000"

    def test_nothing_set(self):
        resolver = ColorResolver()
        assert resolver.resolve(ColorDescriptor()) is None
        assert resolver.resolve(None) is None

    def test_openpyxl_colors(self):
        resolver = ColorResolver()
        assert resolver.resolve(Color(rgb="FFFF0000")) == "FF0000"
        assert resolver.resolve(Color(indexed=10)) == "FF0000"
        assert resolver.resolve(Color(theme=4, tint=0.4)) == "9CC3E5"
        assert resolver.resolve("FF0000FF") == "0000FF"

    def test_unreadable_color_never_raises(self):
        resolver = ColorResolver()
        assert resolver.resolve(_Unreadable()) is None

    def test_cache_is_filled_and_reused(self):
        resolver = ColorResolver()
        cache = ColorCache()
        descriptor = ColorDescriptor(theme=4, tint=0.4)

        assert resolver.resolve(descriptor, cache) == "9CC3E5"
        assert descriptor.cache_key in cache
        assert cache.hits == 0

        assert resolver.resolve(ColorDescriptor(theme=4, tint=0.4), cache) == "9CC3E5"
        assert cache.hits == 1
        assert len(cache) == 1

    def test_custom_theme(self):
        resolver = ColorResolver(theme_colors={4: "112233"})
        assert resolver.resolve(ColorDescriptor(theme=4)) == "112233"


class TestBackgroundColor:
    """Tests for the color painted behind a fill."""

    def test_solid_fill_uses_foreground(self):
        fill = PatternFill("solid", fgColor="FFFF00", bgColor="00FF00")
        assert ColorResolver().background_color(fill) == "FFFF00"

    def test_pattern_fill_uses_background(self):
        fill = PatternFill("darkGray", fgColor="FF0000", bgColor="00FF00")
        assert ColorResolver().background_color(fill) == "00FF00"

    def test_no_fill(self):
        assert ColorResolver().background_color(PatternFill()) is None


class TestThemeHelpers:
    """Tests for theme and tint accessors."""

    def test_theme_of(self):
        assert theme_of(Color(theme=4)) == "4"
        assert theme_of(Color(rgb="FF000000")) is None
        assert theme_of(None) is None

    def test_tint_of(self):
        assert tint_of(Color(theme=4, tint=-0.25)) == -0.25
        assert tint_of(None) is None
