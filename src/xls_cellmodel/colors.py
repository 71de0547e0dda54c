"""Color resolution for cell fonts, borders and fills.

A spreadsheet color can be stored as a direct (A)RGB code, an index into
the legacy 64-entry office palette, a theme slot plus tint, or an "auto"
flag. :class:`ColorResolver` walks those encodings in a fixed order and
returns a 6-digit uppercase hex string, or None when nothing usable is set.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")

# Standard office palette (indexed colors 0-63)
INDEXED_COLORS: dict[int, str] = {
    0: "000000", 1: "FFFFFF", 2: "FF0000", 3: "00FF00",
    4: "0000FF", 5: "FFFF00", 6: "FF00FF", 7: "00FFFF",
    8: "000000", 9: "FFFFFF", 10: "FF0000", 11: "00FF00",
    12: "0000FF", 13: "FFFF00", 14: "FF00FF", 15: "00FFFF",
    16: "800000", 17: "008000", 18: "000080", 19: "808000",
    20: "800080", 21: "008080", 22: "C0C0C0", 23: "808080",
    24: "9999FF", 25: "993366", 26: "FFFFCC", 27: "CCFFFF",
    28: "660066", 29: "FF8080", 30: "0066CC", 31: "CCCCFF",
    32: "000080", 33: "FF00FF", 34: "FFFF00", 35: "00FFFF",
    36: "800080", 37: "800000", 38: "008080", 39: "0000FF",
    40: "00CCFF", 41: "CCFFFF", 42: "CCFFCC", 43: "FFFF99",
    44: "99CCFF", 45: "FF99CC", 46: "CC99FF", 47: "FFCC99",
    48: "3366FF", 49: "33CCCC", 50: "99CC00", 51: "FFCC00",
    52: "FF9900", 53: "FF6600", 54: "666699", 55: "969696",
    56: "003366", 57: "339966", 58: "003300", 59: "333300",
    60: "964B00", 61: "993366", 62: "333399", 63: "333333",
}

# Default Office theme (slots 0-11)
THEME_COLORS: dict[int, str] = {
    0: "FFFFFF",  # lt1
    1: "000000",  # dk1
    2: "E7E6E6",  # lt2
    3: "44546A",  # dk2
    4: "5B9BD5",  # accent1
    5: "70AD47",  # accent2
    6: "A5A5A5",  # accent3
    7: "FFC000",  # accent4
    8: "4472C4",  # accent5
    9: "264478",  # accent6
    10: "0563C1",  # hlink
    11: "954F72",  # folHlink
}

AUTO_COLOR = "000000"
TINT_EPSILON = 0.001


@dataclass(frozen=True)
class ColorDescriptor:
    """One color as stored in the document.

    Any combination of fields may be set; :meth:`ColorResolver.resolve`
    decides which one wins.
    """

    rgb: str | None = None
    indexed: int | None = None
    theme: int | None = None
    tint: float | None = None
    auto: bool = False

    @property
    def cache_key(self) -> tuple:
        return (self.rgb, self.theme, self.tint, self.indexed)

    @property
    def is_blank(self) -> bool:
        return self.rgb is None and self.indexed is None and self.theme is None and self.tint is None

    @classmethod
    def from_openpyxl(cls, color: Any) -> ColorDescriptor | None:
        """Build a descriptor from an ``openpyxl.styles.colors.Color``.

        openpyxl keeps a ``type`` discriminator ("rgb", "indexed", "theme",
        "auto") and reports garbage for the fields of the other types, so
        only the field named by ``type`` is read. A field that cannot be
        read is treated as absent.
        """
        if color is None:
            return None
        if isinstance(color, str):
            return cls(rgb=color)

        color_type = _safe_attr(color, "type") or "rgb"
        tint = _safe_attr(color, "tint")
        tint = float(tint) if isinstance(tint, (int, float)) and tint else None

        if color_type == "rgb":
            rgb = _safe_attr(color, "rgb")
            return cls(rgb=rgb if isinstance(rgb, str) else None, tint=tint)
        if color_type == "indexed":
            indexed = _safe_attr(color, "indexed")
            return cls(indexed=indexed if isinstance(indexed, int) else None, tint=tint)
        if color_type == "theme":
            theme = _safe_attr(color, "theme")
            return cls(theme=theme if isinstance(theme, int) else None, tint=tint)
        if color_type == "auto":
            return cls(auto=bool(_safe_attr(color, "auto")), tint=tint)
        return None


class ColorCache:
    """Descriptor-key to resolved-color map, safe to share between threads."""

    def __init__(self):
        self._values: dict[Hashable, str | None] = {}
        self._lock = threading.Lock()
        self.hits = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], str | None]) -> str | None:
        with self._lock:
            if key in self._values:
                self.hits += 1
                return self._values[key]
        value = compute()
        with self._lock:
            self._values.setdefault(key, value)
        return value

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values


def normalize_rgb(code: str | None) -> str | None:
    """Normalize a direct color code to 6 uppercase hex digits.

    Accepts ARGB (8 digits, alpha dropped), RGB (6 digits) and shorthand
    (3 digits, each doubled). Returns None for anything else.

    Example:
        >>> normalize_rgb("FF00FF00")
        '00FF00'
        >>> normalize_rgb("#f00")
        'FF0000'
    """
    if not isinstance(code, str):
        return None
    code = code.strip().lstrip("#")
    if not code or not _HEX_RE.match(code):
        return None
    if len(code) == 8:
        return code[2:].upper()
    if len(code) == 6:
        return code.upper()
    if len(code) == 3:
        return "".join(ch * 2 for ch in code).upper()
    return None


def apply_tint(base_color: str, tint: float) -> str:
    """Lighten (tint > 0) or darken (tint < 0) a 6-digit hex color.

    Example:
        >>> apply_tint("808080", 1.0)
        'FFFFFF'
        >>> apply_tint("808080", -1.0)
        '000000'
    """
    if len(base_color) != 6:
        return base_color
    try:
        channels = [int(base_color[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        return base_color

    tinted = []
    for channel in channels:
        if tint < 0:
            value = int(channel * (1 + tint))
        else:
            value = int(channel + (255 - channel) * tint)
        tinted.append(max(0, min(255, value)))
    return "".join(f"{c:02X}" for c in tinted)


class ColorResolver:
    """Resolve color descriptors to canonical hex strings.

    Resolution order, first success wins:

    1. direct RGB/ARGB code
    2. palette index (0-63)
    3. theme slot (0-11) with tint applied
    4. auto flag, which resolves to black

    Example:
        >>> resolver = ColorResolver()
        >>> resolver.resolve(ColorDescriptor(rgb="FF00FF00", theme=4))
        '00FF00'
    """

    def __init__(
        self,
        indexed_colors: dict[int, str] | None = None,
        theme_colors: dict[int, str] | None = None,
    ):
        self.indexed_colors = indexed_colors or INDEXED_COLORS
        self.theme_colors = theme_colors or THEME_COLORS

    def resolve(self, color: Any, cache: ColorCache | None = None) -> str | None:
        """Resolve a descriptor or an openpyxl ``Color``.

        Args:
            color: ColorDescriptor, openpyxl Color, raw code string, or None.
            cache: Optional cache shared across one worksheet pass.

        Returns:
            6-digit uppercase hex string, or None.
        """
        try:
            descriptor = color if isinstance(color, ColorDescriptor) else ColorDescriptor.from_openpyxl(color)
        except Exception as e:
            logger.debug("Unreadable color %r: %s", color, e)
            return None
        if descriptor is None:
            return None

        if cache is None or descriptor.is_blank:
            return self._resolve(descriptor)
        return cache.get_or_compute(descriptor.cache_key, lambda: self._resolve(descriptor))

    def _resolve(self, descriptor: ColorDescriptor) -> str | None:
        rgb = normalize_rgb(descriptor.rgb)
        if rgb is not None:
            return rgb

        if descriptor.indexed is not None and descriptor.indexed >= 0:
            indexed = self.indexed_colors.get(descriptor.indexed)
            if indexed is not None:
                return indexed

        if descriptor.theme is not None:
            base = self.theme_colors.get(descriptor.theme)
            if base is not None:
                tint = descriptor.tint or 0.0
                if abs(tint) > TINT_EPSILON:
                    return apply_tint(base, tint)
                return base

        if descriptor.auto:
            return AUTO_COLOR

        return None

    def background_color(self, fill: Any, cache: ColorCache | None = None) -> str | None:
        """Color painted behind a cell for an openpyxl fill.

        Solid fills paint their foreground color. Other patterns paint their
        background color, falling back to the foreground color. Gradient
        fills resolve to their first stop.
        """
        stops = _safe_attr(fill, "stop")
        if stops:
            return self.resolve(_safe_attr(stops[0], "color"), cache)
        pattern = _safe_attr(fill, "patternType")
        if pattern is None:
            return None
        if pattern == "solid":
            return self.resolve(_safe_attr(fill, "fgColor"), cache)
        return (
            self.resolve(_safe_attr(fill, "bgColor"), cache)
            or self.resolve(_safe_attr(fill, "fgColor"), cache)
        )


def theme_of(color: Any) -> str | None:
    """Theme slot of an openpyxl color as a string, if it is a theme color."""
    if color is None or _safe_attr(color, "type") != "theme":
        return None
    theme = _safe_attr(color, "theme")
    return str(theme) if theme is not None else None


def tint_of(color: Any) -> float | None:
    tint = _safe_attr(color, "tint") if color is not None else None
    return float(tint) if isinstance(tint, (int, float)) else None


def _safe_attr(obj: Any, name: str) -> Any:
    try:
        return getattr(obj, name, None)
    except Exception:
        return None
