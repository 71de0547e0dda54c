"""Unit conversions and cell geometry.

Column widths are stored in character units, row heights in points and
drawing offsets in EMU (English Metric Units, 914400 per inch). Everything
here converts those into pixels (96 DPI) and centimeters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from openpyxl.utils import column_index_from_string
from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

CHARACTER_WIDTH_PX = 7.0
POINTS_TO_PIXELS = 4.0 / 3.0
EMU_PER_PIXEL = 9525
EMU_PER_INCH = 914400
EMU_PER_CM = EMU_PER_INCH / 2.54
EMU_PER_POINT = 12700

DEFAULT_COLUMN_WIDTH = 8.43
DEFAULT_ROW_HEIGHT = 15.0
DEFAULT_CELL_PIXELS = (100, 20)


def column_width_to_pixels(width: float) -> float:
    return width * CHARACTER_WIDTH_PX


def row_height_to_pixels(height: float) -> float:
    return height * POINTS_TO_PIXELS


def emu_to_pixels(emu: float) -> float:
    return emu / EMU_PER_PIXEL


def emu_to_cm(emu: float) -> float:
    return emu / EMU_PER_CM


def column_width_to_emu(width: float) -> int:
    return int(width * CHARACTER_WIDTH_PX * EMU_PER_PIXEL)


def row_height_to_emu(height: float) -> int:
    return int(height * EMU_PER_POINT)


@dataclass(frozen=True)
class AnchorPoint:
    """A drawing corner: 1-based cell plus EMU offset inside that cell."""

    row: int
    column: int
    row_offset: int = 0
    column_offset: int = 0


class SheetMetrics:
    """Column widths and row heights of one worksheet.

    openpyxl stores ``<col min=".." max="..">`` groups under the letter of
    their first column, so widths are expanded over ``min..max`` once here
    instead of per lookup.
    """

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet
        sheet_format = worksheet.sheet_format
        self.default_column_width = float(sheet_format.defaultColWidth or DEFAULT_COLUMN_WIDTH)
        self.default_row_height = float(sheet_format.defaultRowHeight or DEFAULT_ROW_HEIGHT)

        self._column_widths: dict[int, float] = {}
        for key, dim in worksheet.column_dimensions.items():
            width = dim.width
            if not width or width <= 0:
                continue
            first = dim.min or column_index_from_string(key)
            last = dim.max or first
            for col in range(first, last + 1):
                self._column_widths[col] = float(width)

        self._row_heights: dict[int, float] = {}
        for row, dim in worksheet.row_dimensions.items():
            if dim.height is not None and dim.height > 0:
                self._row_heights[row] = float(dim.height)

    def column_width(self, column: int) -> float:
        """Width of a 1-based column in character units."""
        return self._column_widths.get(column, self.default_column_width)

    def row_height(self, row: int) -> float:
        """Height of a 1-based row in points."""
        return self._row_heights.get(row, self.default_row_height)

    def column_width_emu(self, column: int) -> int:
        return column_width_to_emu(self.column_width(column))

    def row_height_emu(self, row: int) -> int:
        return row_height_to_emu(self.row_height(row))

    def cell_pixel_size(self, row: int, column: int) -> tuple[int, int]:
        """Pixel width and height of a single cell."""
        try:
            width = int(column_width_to_pixels(self.column_width(column)))
            height = int(row_height_to_pixels(self.row_height(row)))
            return width, height
        except (TypeError, ValueError) as e:
            logger.debug("Falling back to default cell size at R%sC%s: %s", row, column, e)
            return DEFAULT_CELL_PIXELS

    def range_pixel_size(self, min_row: int, min_col: int, max_row: int, max_col: int) -> tuple[int, int]:
        """Pixel width and height of a rectangular block of cells."""
        width = sum(column_width_to_pixels(self.column_width(c)) for c in range(min_col, max_col + 1))
        height = sum(row_height_to_pixels(self.row_height(r)) for r in range(min_row, max_row + 1))
        return int(width), int(height)


def anchored_span_emu(metrics: SheetMetrics, start: AnchorPoint, end: AnchorPoint) -> tuple[int, int]:
    """Total width and height in EMU of an object anchored from start to end.

    The first column contributes its width minus the start offset, the last
    column contributes the end offset and columns in between contribute
    their full width. Rows follow the same rule. When start and end share a
    column (or row) the size is simply the offset difference.
    """
    width = 0
    for col in range(start.column, end.column + 1):
        if col == start.column and col == end.column:
            width = end.column_offset - start.column_offset
        elif col == start.column:
            width += metrics.column_width_emu(col) - start.column_offset
        elif col == end.column:
            width += end.column_offset
        else:
            width += metrics.column_width_emu(col)

    height = 0
    for row in range(start.row, end.row + 1):
        if row == start.row and row == end.row:
            height = end.row_offset - start.row_offset
        elif row == start.row:
            height += metrics.row_height_emu(row) - start.row_offset
        elif row == end.row:
            height += end.row_offset
        else:
            height += metrics.row_height_emu(row)

    return width, height


def locate_extent(metrics: SheetMetrics, start: AnchorPoint, cx: int, cy: int) -> AnchorPoint:
    """Find the bottom-right corner of an object of size (cx, cy) EMU.

    Used for one-cell anchors, which store a size instead of an end marker.
    """
    col = start.column
    remaining = cx + start.column_offset
    while remaining > metrics.column_width_emu(col) and col < 16384:
        remaining -= metrics.column_width_emu(col)
        col += 1

    row = start.row
    remaining_h = cy + start.row_offset
    while remaining_h > metrics.row_height_emu(row) and row < 1048576:
        remaining_h -= metrics.row_height_emu(row)
        row += 1

    return AnchorPoint(row=row, column=col, row_offset=remaining_h, column_offset=remaining)


def scale_percentage(display: tuple[float, float], actual: tuple[float, float]) -> float:
    """Mean of the width and height display/actual ratios, in percent.

    Returns 100.0 when the actual size is unknown.
    """
    actual_w, actual_h = actual
    if actual_w <= 0 or actual_h <= 0:
        return 100.0
    scale_x = display[0] / actual_w * 100.0
    scale_y = display[1] / actual_h * 100.0
    return (scale_x + scale_y) / 2.0


def is_scaled(percentage: float) -> bool:
    return abs(percentage - 100.0) > 1.0
