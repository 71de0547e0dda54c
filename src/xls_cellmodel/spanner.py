"""Cross-cell spanning of pictures and floating objects.

A picture or shape anchored in an unmerged cell may visually cover several
cells. The presentation layer only understands spans through merges, so the
owning cell is turned into the main cell of a synthesized merge covering the
object's anchor rectangle. Authored merges are never overridden, and a
synthesized merge never intersects one. Floating object text is folded into
the owning cell's text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from openpyxl.utils import get_column_letter
from openpyxl.utils.cell import range_boundaries

from .indexes import MergeIndex
from .models import CellPosition, CellRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rect:
    """Inclusive 1-based cell rectangle."""

    from_row: int
    from_col: int
    to_row: int
    to_col: int

    @property
    def spans_multiple_cells(self) -> bool:
        return self.to_row > self.from_row or self.to_col > self.from_col

    @property
    def address(self) -> str:
        return range_address(self.from_row, self.from_col, self.to_row, self.to_col)

    def exceeds(self, other: Rect) -> bool:
        """True if this rectangle reaches outside ``other`` in any direction."""
        return (
            self.to_row > other.to_row
            or self.to_col > other.to_col
            or self.from_row < other.from_row
            or self.from_col < other.from_col
        )


def range_address(from_row: int, from_col: int, to_row: int, to_col: int) -> str:
    """A1-style range address, e.g. ``range_address(5, 2, 7, 2) == "B5:B7"``."""
    return f"{get_column_letter(from_col)}{from_row}:{get_column_letter(to_col)}{to_row}"


def fold_text(existing: str | None, addition: str | None) -> str:
    """Append ``addition`` on a new line, or use it directly when there is no text yet."""
    existing = existing or ""
    if not addition:
        return existing
    if existing:
        return f"{existing}\n{addition}"
    return addition


def object_rect(record: CellRecord, from_cell: CellPosition | None, to_cell: CellPosition | None) -> Rect:
    """Anchor rectangle of an object, defaulting to the owning cell."""
    from_row = from_cell.row if from_cell else record.position.row
    from_col = from_cell.column if from_cell else record.position.column
    to_row = to_cell.row if to_cell else from_row
    to_col = to_cell.column if to_cell else from_col
    return Rect(from_row, from_col, to_row, to_col)


def merge_rect(record: CellRecord) -> Rect | None:
    """Rectangle of the merge a record belongs to, or None when unmerged."""
    dims = record.dimensions
    if not dims.is_merged or not dims.merged_range_address:
        return None
    min_col, min_row, max_col, max_row = range_boundaries(dims.merged_range_address)
    return Rect(min_row, min_col, max_row, max_col)


def synthesize_merge(record: CellRecord, rect: Rect) -> None:
    """Mark the record as the main cell of a merge covering ``rect``."""
    dims = record.dimensions
    dims.is_merged = True
    dims.is_main_merged_cell = True
    dims.row_span = rect.to_row - rect.from_row + 1
    dims.col_span = rect.to_col - rect.from_col + 1
    dims.merged_range_address = rect.address


class CrossCellSpanner:
    """Reconciles object spans with the merge state of their owning cell.

    With a ``merge_index`` no span is synthesized over a rectangle that
    intersects an authored merge. The walk skips an authored range's
    secondary cells only after its main cell is emitted.
    """

    def __init__(self, merge_index: MergeIndex | None = None):
        self.merge_index = merge_index

    def declared_overlap(self, rect: Rect) -> str | None:
        """Address of an authored merge intersecting ``rect``, or None."""
        if self.merge_index is None:
            return None
        return self.merge_index.overlapping(rect.from_row, rect.from_col, rect.to_row, rect.to_col)

    def span_images(self, record: CellRecord) -> None:
        """Synthesize a merge for the first picture spanning several cells.

        Pictures on an already merged cell are only checked against the
        merge bounds; a picture reaching outside them is logged and left
        alone. So is a picture on an unmerged cell that runs into an
        authored merge.
        """
        for image in record.images or []:
            rect = object_rect(record, image.from_cell, image.to_cell)
            merged = merge_rect(record)
            if merged is not None:
                if rect.exceeds(merged):
                    logger.warning(
                        "Picture %r (%s) exceeds merged range %s at %s, skipping auto-merge",
                        image.name, rect.address, merged.address, record.address,
                    )
            elif rect.spans_multiple_cells:
                overlap = self.declared_overlap(rect)
                if overlap is not None:
                    logger.warning(
                        "Picture %r (%s) overlaps merged range %s at %s, skipping auto-merge",
                        image.name, rect.address, overlap, record.address,
                    )
                    continue
                logger.debug("Picture %r spans %s, synthesizing merge", image.name, rect.address)
                synthesize_merge(record, rect)
                break

    def span_floating_objects(self, record: CellRecord) -> None:
        """Synthesize merges for spanning floating objects and fold their text.

        On a merged cell every object's text is folded, whether or not the
        object fits the merge. On an unmerged cell the first multi-cell
        object synthesizes a merge, folds its text and stops processing;
        single-cell objects and objects running into an authored merge only
        fold their text.
        """
        for obj in record.floating_objects or []:
            rect = object_rect(record, obj.from_cell, obj.to_cell)
            merged = merge_rect(record)
            if merged is not None:
                if rect.exceeds(merged):
                    logger.warning(
                        "Floating object %r (%s) exceeds merged range %s at %s, skipping auto-merge",
                        obj.name, rect.address, merged.address, record.address,
                    )
                record.text = fold_text(record.text, obj.text)
            elif rect.spans_multiple_cells:
                overlap = self.declared_overlap(rect)
                if overlap is not None:
                    logger.warning(
                        "Floating object %r (%s) overlaps merged range %s at %s, skipping auto-merge",
                        obj.name, rect.address, overlap, record.address,
                    )
                    record.text = fold_text(record.text, obj.text)
                    continue
                logger.debug(
                    "Floating %s %r spans %s, synthesizing merge",
                    obj.object_type.value, obj.name, rect.address,
                )
                synthesize_merge(record, rect)
                record.text = fold_text(record.text, obj.text)
                break
            else:
                record.text = fold_text(record.text, obj.text)
