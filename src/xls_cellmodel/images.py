"""Pictures attached to a cell: anchored drawings and in-cell pictures."""

from __future__ import annotations

import base64
import logging

from openpyxl.utils import get_column_letter

from .extractors.drawings import DrawingObject
from .extractors.in_cell import InCellPicture
from .geometry import (
    SheetMetrics,
    anchored_span_emu,
    emu_to_cm,
    emu_to_pixels,
    is_scaled,
    scale_percentage,
)
from .models import CellPosition, ImageInfo
from .sniff import actual_image_size, detect_image_format, image_type_from_name

logger = logging.getLogger(__name__)


def position(row: int, column: int) -> CellPosition:
    return CellPosition(row=row, column=column, address=f"{get_column_letter(column)}{row}")


def image_type_of(name: str | None, data: bytes | None) -> str:
    """Image type from the media file name, else from the magic bytes."""
    return image_type_from_name(name) or detect_image_format(data) or "Unknown"


class ImageResolver:
    """Turns drawing pictures and in-cell pictures into ImageInfo records."""

    def __init__(self, metrics: SheetMetrics, include_data: bool = True):
        self.metrics = metrics
        self.include_data = include_data

    def _payload(self, data: bytes | None) -> str:
        if not data or not self.include_data:
            return ""
        return base64.b64encode(data).decode("ascii")

    def anchored_image(self, picture: DrawingObject, index: int = 0) -> ImageInfo:
        """Describe a picture anchored on the worksheet.

        The displayed size is the anchored span; the original size comes
        from the image header, or the placeholder size when unreadable.
        """
        data = picture.image_data
        actual_w, actual_h = actual_image_size(data)

        width_emu, height_emu = anchored_span_emu(self.metrics, picture.start, picture.end)
        display_w = int(emu_to_pixels(width_emu))
        display_h = int(emu_to_pixels(height_emu))
        width_cm = emu_to_cm(width_emu)
        height_cm = emu_to_cm(height_emu)
        scale = scale_percentage((display_w, display_h), (actual_w, actual_h))

        start, end = picture.start, picture.end
        anchor = position(start.row, start.column)
        summary = (
            f"Original: {actual_w}x{actual_h}px, displayed: {display_w}x{display_h}px "
            f"({width_cm:.2f}x{height_cm:.2f}cm), scale: {scale:.1f}%"
        )

        return ImageInfo(
            name=picture.name or f"Image_{index + 1}",
            description=picture.description or summary,
            image_type=image_type_of(picture.media_name, data),
            width=display_w,
            height=display_h,
            left=emu_to_pixels(start.column_offset),
            top=emu_to_pixels(start.row_offset),
            base64_data=self._payload(data),
            file_name=picture.media_name or f"image_{index + 1}.png",
            file_size=len(data) if data else 0,
            anchor_cell=anchor,
            from_cell=position(start.row, start.column),
            to_cell=position(end.row, end.column),
            hyperlink_address=picture.hyperlink,
            is_in_cell_picture=False,
            alt_text=picture.description,
            original_width=actual_w,
            original_height=actual_h,
            excel_width_cm=width_cm,
            excel_height_cm=height_cm,
            scale_factor=scale / 100.0,
            is_scaled=is_scaled(scale),
            scale_method=f"Scaled {scale:.1f}% (displayed {width_cm:.2f}x{height_cm:.2f}cm)",
        )

    def in_cell_image(
        self,
        picture: InCellPicture,
        bounds: tuple[int, int, int, int] | None = None,
    ) -> ImageInfo:
        """Describe a picture placed in a cell's value slot.

        The picture fills its cell, or the whole merged range when ``bounds``
        (min_row, min_col, max_row, max_col) is given.
        """
        min_row, min_col, max_row, max_col = bounds or (
            picture.row, picture.column, picture.row, picture.column,
        )
        width, height = self.metrics.range_pixel_size(min_row, min_col, max_row, max_col)
        rows = max_row - min_row + 1
        data = picture.image_data
        actual_w, actual_h = actual_image_size(data)
        anchor = position(picture.row, picture.column)

        return ImageInfo(
            name=picture.media_name or f"InCellImage_{anchor.address}",
            description=(
                f"In-cell picture at {anchor.address} ({rows} row(s), {width}x{height}px), "
                f"alt text: {picture.alt_text or 'none'}"
            ),
            image_type=image_type_of(picture.media_name, data),
            width=width,
            height=height,
            base64_data=self._payload(data),
            file_name=picture.media_name or f"incell_{anchor.address}.png",
            file_size=len(data) if data else 0,
            anchor_cell=anchor,
            from_cell=position(min_row, min_col),
            to_cell=position(max_row, max_col),
            is_in_cell_picture=True,
            alt_text=picture.alt_text,
            original_width=actual_w,
            original_height=actual_h,
            scale_factor=1.0,
            is_scaled=False,
            scale_method=f"In-cell picture (fills {rows} row(s))",
        )
