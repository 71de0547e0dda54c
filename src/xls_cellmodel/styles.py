"""Style resolution: font, alignment, border and fill of a cell.

openpyxl keeps every distinct font, alignment, border and fill once in the
workbook and stores per-cell ids into those tables, so the resolved pieces
are cached per id for the duration of a worksheet pass.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Any, Callable, Hashable

from openpyxl.utils.cell import range_boundaries
from openpyxl.worksheet.worksheet import Worksheet

from .colors import ColorCache, ColorResolver, theme_of, tint_of
from .models import AlignmentInfo, BorderInfo, BorderSide, FillInfo, FontInfo

logger = logging.getLogger(__name__)

DEFAULT_FONT_NAME = "Calibri"
DEFAULT_FONT_SIZE = 11.0

_READING_ORDERS = {0: "ContextDependent", 1: "LeftToRight", 2: "RightToLeft"}
_CAMEL_RE = re.compile(r"(^|[^A-Za-z0-9])([a-z])")


def pascal(value: Any, default: str = "None") -> str:
    """Style enum value as a PascalCase name ("mediumDashed" -> "MediumDashed")."""
    if value is None or value == "":
        return default
    text = str(value)
    return _CAMEL_RE.sub(lambda m: m.group(2).upper(), text[0].upper() + text[1:])


# =============================================================================
# Defaults
# =============================================================================


def default_font() -> FontInfo:
    """Font reported for image-only cells."""
    return FontInfo(
        name=DEFAULT_FONT_NAME,
        size=DEFAULT_FONT_SIZE,
        color="000000",
        underline="None",
        charset=1,
        family=2,
    )


def default_alignment() -> AlignmentInfo:
    return AlignmentInfo()


def default_border() -> BorderInfo:
    return BorderInfo()


def default_fill() -> FillInfo:
    return FillInfo()


# =============================================================================
# Cache
# =============================================================================


class StyleCache:
    """Resolved style pieces keyed by ``(kind, style table id)``."""

    def __init__(self):
        self._values: dict[Hashable, Any] = {}
        self._lock = threading.Lock()
        self.hits = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._values:
                self.hits += 1
                return self._values[key]
        value = compute()
        with self._lock:
            return self._values.setdefault(key, value)

    def __len__(self) -> int:
        return len(self._values)


# =============================================================================
# Resolver
# =============================================================================


class StyleResolver:
    """Builds FontInfo, AlignmentInfo, BorderInfo and FillInfo for cells.

    Resolved pieces are shared between records with the same style id and
    must be treated as read-only.

    Example:
        >>> resolver = StyleResolver(ColorResolver(), StyleCache(), ColorCache())
        >>> resolver.font(worksheet["A1"]).name
        'Calibri'
    """

    def __init__(
        self,
        colors: ColorResolver,
        cache: StyleCache | None = None,
        color_cache: ColorCache | None = None,
    ):
        self.colors = colors
        self.cache = cache
        self.color_cache = color_cache

    def _cached(self, key: tuple, compute: Callable[[], Any]) -> Any:
        if self.cache is None or key[1] is None:
            return compute()
        return self.cache.get_or_compute(key, compute)

    def _color(self, color: Any) -> str | None:
        return self.colors.resolve(color, self.color_cache)

    def font(self, cell: Any) -> FontInfo:
        try:
            return self._cached(("font", _style_id(cell, "fontId")), lambda: self._font(cell.font))
        except Exception as e:
            logger.debug("Font of %s unreadable, using default: %s", cell.coordinate, e)
            return default_font()

    def alignment(self, cell: Any) -> AlignmentInfo:
        try:
            return self._cached(
                ("alignment", _style_id(cell, "alignmentId")),
                lambda: self._alignment(cell.alignment),
            )
        except Exception as e:
            logger.debug("Alignment of %s unreadable, using default: %s", cell.coordinate, e)
            return default_alignment()

    def border(self, cell: Any) -> BorderInfo:
        try:
            return self._cached(("border", _style_id(cell, "borderId")), lambda: self._border(cell.border))
        except Exception as e:
            logger.debug("Border of %s unreadable, using default: %s", cell.coordinate, e)
            return default_border()

    def fill(self, cell: Any) -> FillInfo:
        try:
            return self._cached(("fill", _style_id(cell, "fillId")), lambda: self._fill(cell.fill))
        except Exception as e:
            logger.debug("Fill of %s unreadable, using default: %s", cell.coordinate, e)
            return default_fill()

    def merged_border(self, worksheet: Worksheet, range_address: str) -> BorderInfo:
        """Border of a merged range, composed from the cells on its edges.

        Top, left and diagonal come from the top-left cell, bottom from the
        bottom-left cell and right from the top-right cell.
        """
        try:
            min_col, min_row, max_col, max_row = range_boundaries(range_address)
            top_left = worksheet.cell(row=min_row, column=min_col).border
            bottom_left = worksheet.cell(row=max_row, column=min_col).border
            top_right = worksheet.cell(row=min_row, column=max_col).border
            return BorderInfo(
                top=self._side(top_left.top),
                bottom=self._side(bottom_left.bottom),
                left=self._side(top_left.left),
                right=self._side(top_right.right),
                diagonal=self._side(top_left.diagonal),
                diagonal_up=bool(top_left.diagonalUp),
                diagonal_down=bool(top_left.diagonalDown),
            )
        except Exception as e:
            logger.debug("Merged border of %s unreadable, using default: %s", range_address, e)
            return default_border()

    def _font(self, font: Any) -> FontInfo:
        color = font.color
        return FontInfo(
            name=font.name or DEFAULT_FONT_NAME,
            size=float(font.sz) if font.sz is not None else DEFAULT_FONT_SIZE,
            bold=bool(font.b),
            italic=bool(font.i),
            underline=pascal(font.u),
            strike=bool(font.strike),
            color=self._color(color),
            color_theme=theme_of(color),
            color_tint=tint_of(color),
            charset=font.charset,
            scheme=font.scheme,
            family=int(font.family) if font.family is not None else None,
            vertical_align=font.vertAlign,
        )

    def _alignment(self, alignment: Any) -> AlignmentInfo:
        return AlignmentInfo(
            horizontal=pascal(alignment.horizontal, "General"),
            vertical=pascal(alignment.vertical, "Bottom"),
            wrap_text=bool(alignment.wrap_text),
            indent=int(alignment.indent or 0),
            reading_order=_READING_ORDERS.get(int(alignment.readingOrder or 0), "ContextDependent"),
            text_rotation=int(alignment.textRotation or 0),
            shrink_to_fit=bool(alignment.shrink_to_fit),
        )

    def _side(self, side: Any) -> BorderSide:
        if side is None or side.style is None:
            return BorderSide()
        return BorderSide(style=pascal(side.style), color=self._color(side.color))

    def _border(self, border: Any) -> BorderInfo:
        return BorderInfo(
            top=self._side(border.top),
            bottom=self._side(border.bottom),
            left=self._side(border.left),
            right=self._side(border.right),
            diagonal=self._side(border.diagonal),
            diagonal_up=bool(border.diagonalUp),
            diagonal_down=bool(border.diagonalDown),
        )

    def _fill(self, fill: Any) -> FillInfo:
        pattern = getattr(fill, "patternType", None)
        if getattr(fill, "stop", None):
            # Gradient fills have no pattern; report their first stop
            return FillInfo(
                pattern_type="Gradient",
                background_color=self.colors.background_color(fill, self.color_cache),
            )
        if pattern is None:
            return FillInfo()

        bg_color = fill.fgColor if pattern == "solid" else fill.bgColor
        return FillInfo(
            pattern_type=pascal(pattern),
            background_color=self.colors.background_color(fill, self.color_cache),
            pattern_color=self._color(fill.fgColor),
            background_color_theme=theme_of(bg_color),
            background_color_tint=tint_of(bg_color),
        )


def _style_id(cell: Any, name: str) -> int | None:
    style = getattr(cell, "_style", None)
    return getattr(style, name, None) if style is not None else None
