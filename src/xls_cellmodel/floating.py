"""Floating drawing objects (shapes, text boxes, charts, tables) on a cell.

Each DrawingKind has its own accessor that decides which text, style and
hyperlink of the parsed drawing object a record carries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .extractors.drawings import DrawingObject
from .geometry import SheetMetrics, anchored_span_emu, emu_to_pixels
from .images import position
from .models import DrawingKind, FloatingObjectInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectContent:
    """What a record shows for a drawing object."""

    text: str | None = None
    style: str | None = None
    hyperlink: str | None = None


def _shape_content(obj: DrawingObject) -> ObjectContent:
    return ObjectContent(text=obj.text, style=obj.style, hyperlink=obj.hyperlink)


def _chart_content(obj: DrawingObject) -> ObjectContent:
    # Chart titles live in the chart part, which is not read
    return ObjectContent(hyperlink=obj.hyperlink)


def _table_content(obj: DrawingObject) -> ObjectContent:
    return ObjectContent(text=obj.text, hyperlink=obj.hyperlink)


def _picture_content(obj: DrawingObject) -> ObjectContent:
    return ObjectContent(hyperlink=obj.hyperlink)


def _other_content(obj: DrawingObject) -> ObjectContent:
    return ObjectContent(text=obj.text, style=obj.style, hyperlink=obj.hyperlink)


CONTENT_ACCESSORS: dict[DrawingKind, Callable[[DrawingObject], ObjectContent]] = {
    DrawingKind.SHAPE: _shape_content,
    DrawingKind.TEXT_BOX: _shape_content,
    DrawingKind.CHART: _chart_content,
    DrawingKind.TABLE: _table_content,
    DrawingKind.PICTURE: _picture_content,
    DrawingKind.OTHER: _other_content,
}


def object_content(obj: DrawingObject) -> ObjectContent:
    return CONTENT_ACCESSORS[obj.kind](obj)


class FloatingObjectResolver:
    """Turns non-picture drawing objects into FloatingObjectInfo records."""

    def __init__(self, metrics: SheetMetrics):
        self.metrics = metrics

    def floating_object(self, obj: DrawingObject, index: int = 0) -> FloatingObjectInfo:
        content = object_content(obj)
        width_emu, height_emu = anchored_span_emu(self.metrics, obj.start, obj.end)
        start, end = obj.start, obj.end

        return FloatingObjectInfo(
            name=obj.name or f"FloatingObject_{index + 1}",
            object_type=obj.kind,
            description=obj.description or f"Floating {obj.kind.value} ({obj.anchor_type})",
            width=int(emu_to_pixels(width_emu)),
            height=int(emu_to_pixels(height_emu)),
            left=emu_to_pixels(start.column_offset),
            top=emu_to_pixels(start.row_offset),
            text=content.text,
            anchor_cell=position(start.row, start.column),
            from_cell=position(start.row, start.column),
            to_cell=position(end.row, end.column),
            is_floating=True,
            style=content.style,
            hyperlink_address=content.hyperlink,
        )
