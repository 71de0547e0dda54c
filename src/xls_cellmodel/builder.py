"""Per-cell record assembly and the row-major worksheet walk.

One walk owns a :class:`WalkContext` holding everything that changes while
cells are visited: the exclusion set used to skip cells covered by a merge,
the drawing inspection counter behind the safety ceiling, the style and
color caches, and the errors and warnings collected on the way. Indexes are
built before the walk and only read during it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

from openpyxl.cell.rich_text import CellRichText
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .classifier import ContentClassifier
from .colors import ColorCache, ColorResolver
from .extractors.in_cell import InCellPicture
from .floating import FloatingObjectResolver
from .geometry import SheetMetrics
from .images import ImageResolver, position
from .indexes import Bounds, DrawingIndex, MergeIndex
from .models import (
    CellContentType,
    CellMetadata,
    CellRecord,
    DataType,
    DimensionInfo,
    EmptyWorksheetError,
    ExtractionError,
    ExtractionWarning,
    FloatingObjectInfo,
    ImageInfo,
)
from .spanner import CrossCellSpanner
from .styles import (
    StyleCache,
    StyleResolver,
    default_alignment,
    default_border,
    default_fill,
    default_font,
)
from .values import (
    comment_info,
    data_type_of,
    display_text,
    formula_text,
    hyperlink_info,
    plain_value,
    rich_text_runs,
)

logger = logging.getLogger(__name__)

MAX_DRAWING_CHECKS = 999_999
IN_CELL_PLACEHOLDER = "#VALUE!"


def cell_address(row: int, column: int) -> str:
    return f"{get_column_letter(column)}{row}"


@dataclass
class WalkContext:
    """Mutable state of one worksheet walk.

    Attributes:
        max_drawing_checks: Ceiling on drawing objects inspected per walk.
        exclusions: Addresses still to be skipped, added by main merged cells.
        skipped: Addresses skipped so far, in walk order.
        drawing_checks: Drawing objects inspected so far.
        limit_reached: The ceiling was hit; no more drawings are inspected.
        color_cache: Resolved colors for this walk.
        style_cache: Resolved style pieces for this walk.
        errors: Recovered failures.
        warnings: Limits hit and truncations.
    """

    max_drawing_checks: int = MAX_DRAWING_CHECKS
    exclusions: set[str] = field(default_factory=set)
    skipped: list[str] = field(default_factory=list)
    drawing_checks: int = 0
    limit_reached: bool = False
    color_cache: ColorCache = field(default_factory=ColorCache)
    style_cache: StyleCache = field(default_factory=StyleCache)
    errors: list[ExtractionError] = field(default_factory=list)
    warnings: list[ExtractionWarning] = field(default_factory=list)

    def exclude(self, address: str) -> None:
        self.exclusions.add(address)

    def consume(self, address: str) -> bool:
        """Remove an excluded address; True if the cell must be skipped."""
        if address in self.exclusions:
            self.exclusions.remove(address)
            self.skipped.append(address)
            return True
        return False

    def inspect_drawings(self, count: int, address: str) -> bool:
        """Count ``count`` drawing objects about to be inspected.

        Returns False once the ceiling is exceeded; a warning is recorded the
        first time that happens and nothing is inspected afterwards.
        """
        if self.limit_reached:
            return False
        self.drawing_checks += count
        if self.drawing_checks > self.max_drawing_checks:
            self.limit_reached = True
            message = (
                f"Inspected {self.drawing_checks} drawing objects, "
                f"skipping drawings for the remaining cells"
            )
            logger.warning("%s (at %s)", message, address)
            self.warnings.append(ExtractionWarning("drawings", message, address))
            return False
        return True


class CellRecordBuilder:
    """Builds the CellRecord of one cell.

    Args:
        worksheet: The worksheet being walked (formulas, styles).
        metrics: Column widths and row heights of the worksheet.
        merge_index: Merged range lookup.
        drawing_index: Anchored drawing lookup.
        in_cell_pictures: Pictures placed in cell value slots, by (row, column).
        values_worksheet: ``data_only`` twin supplying cached formula results.
        include_images: Resolve pictures.
        include_image_data: Embed base64 payloads.
        include_floating_objects: Resolve shapes, text boxes, charts, tables.
    """

    def __init__(
        self,
        worksheet: Worksheet,
        metrics: SheetMetrics,
        merge_index: MergeIndex,
        drawing_index: DrawingIndex,
        in_cell_pictures: dict[tuple[int, int], InCellPicture] | None = None,
        values_worksheet: Worksheet | None = None,
        include_images: bool = True,
        include_image_data: bool = True,
        include_floating_objects: bool = True,
        colors: ColorResolver | None = None,
    ):
        self.worksheet = worksheet
        self.metrics = metrics
        self.merge_index = merge_index
        self.drawing_index = drawing_index
        self.in_cell_pictures = in_cell_pictures or {}
        self.values_worksheet = values_worksheet
        self.include_images = include_images
        self.include_floating_objects = include_floating_objects
        self.colors = colors or ColorResolver()

        self.classifier = ContentClassifier(
            drawing_index,
            in_cell_lookup=lambda row, col: (row, col) in self.in_cell_pictures,
        )
        self.images = ImageResolver(metrics, include_data=include_image_data)
        self.floating = FloatingObjectResolver(metrics)
        self.spanner = CrossCellSpanner(merge_index)

    def build(self, cell: Any, ctx: WalkContext) -> CellRecord:
        """Build the record of a cell, or a fallback record if that fails."""
        try:
            return self._build(cell, ctx)
        except Exception as e:
            address = cell_address(cell.row, cell.column)
            logger.exception("Failed to build record for %s", address)
            ctx.errors.append(ExtractionError("cell", str(e), address))
            return self.fallback(cell)

    def fallback(self, cell: Any) -> CellRecord:
        """Minimal record: position, raw value and text, data type ERROR.

        Merge membership is kept so that the walk still skips the cells
        covered by a declared merge.
        """
        row, col = cell.row, cell.column
        value = getattr(cell, "value", None)
        try:
            text = display_text(value)
        except Exception:
            text = str(value) if value is not None else ""
        try:
            dimensions = self._dimensions(row, col)
        except Exception:
            dimensions = DimensionInfo()
        return CellRecord(
            position=position(row, col),
            value=plain_value(value),
            text=text,
            data_type=DataType.ERROR,
            dimensions=dimensions,
        )

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    def _build(self, cell: Any, ctx: WalkContext) -> CellRecord:
        row, col = cell.row, cell.column
        in_cell = self.in_cell_pictures.get((row, col))

        raw = self._raw_value(cell, in_cell)
        formula = formula_text(cell)
        number_format = cell.number_format
        text = display_text(raw, number_format)
        content_type = self.classifier.classify(row, col, text, formula)
        value = plain_value(raw)

        record = CellRecord(
            position=position(row, col),
            value=value,
            text=text,
            formula=formula,
            data_type=data_type_of(raw, has_image=content_type is CellContentType.IMAGE_ONLY),
            value_type=type(value).__name__ if value is not None else None,
            content_type=content_type,
            number_format=number_format,
            number_format_id=_number_format_id(cell),
        )

        styles = StyleResolver(self.colors, ctx.style_cache, ctx.color_cache)
        if content_type is CellContentType.IMAGE_ONLY:
            record.font = default_font()
            record.alignment = default_alignment()
            record.border = default_border()
            record.fill = default_fill()
        else:
            record.font = styles.font(cell)
            record.alignment = styles.alignment(cell)
            record.border = styles.border(cell)
            record.fill = styles.fill(cell)

        record.dimensions = self._dimensions(row, col)
        dims = record.dimensions
        bounds = self.merge_index.bounds(dims.merged_range_address) if dims.is_merged else None
        if dims.is_main_merged_cell:
            record.border = styles.merged_border(self.worksheet, dims.merged_range_address)

        if isinstance(cell.value, CellRichText):
            record.rich_text = rich_text_runs(cell.value, record.font, self.colors, ctx.color_cache)
        record.comment = comment_info(cell.comment)
        record.hyperlink = hyperlink_info(cell.hyperlink)

        secondary = dims.is_merged and not dims.is_main_merged_cell
        if secondary:
            logger.debug("%s is a secondary merged cell, skipping drawings", record.address)
        else:
            record.images = self._images(row, col, in_cell, bounds, ctx)
            record.floating_objects = self._floating_objects(row, col, bounds, ctx)

        self.spanner.span_images(record)
        self.spanner.span_floating_objects(record)

        record.metadata = self._metadata(cell, record)
        return record

    def _raw_value(self, cell: Any, in_cell: InCellPicture | None) -> Any:
        """Cell value, with cached results for formulas and in-cell placeholders dropped."""
        if cell.data_type == "f":
            if self.values_worksheet is None:
                return None
            return self.values_worksheet.cell(row=cell.row, column=cell.column).value
        value = cell.value
        if in_cell is not None and value == IN_CELL_PLACEHOLDER:
            return None
        return value

    def _dimensions(self, row: int, col: int) -> DimensionInfo:
        merge_address = self.merge_index.lookup(row, col)
        dims = DimensionInfo(
            column_width=self.metrics.column_width(col),
            row_height=self.metrics.row_height(row),
            is_merged=merge_address is not None,
        )
        if merge_address is None:
            return dims

        min_row, min_col, max_row, max_col = self.merge_index.bounds(merge_address)
        dims.merged_range_address = merge_address
        dims.is_main_merged_cell = row == min_row and col == min_col
        if dims.is_main_merged_cell:
            dims.row_span = max_row - min_row + 1
            dims.col_span = max_col - min_col + 1
        else:
            dims.row_span = 1
            dims.col_span = 1
        return dims

    def _images(
        self,
        row: int,
        col: int,
        in_cell: InCellPicture | None,
        bounds: Bounds | None,
        ctx: WalkContext,
    ) -> list[ImageInfo] | None:
        """Pictures of the cell.

        An in-cell picture wins over anchored pictures at the same position
        and is returned alone.
        """
        if not self.include_images:
            return None
        if in_cell is not None:
            return [self.images.in_cell_image(in_cell, bounds)]

        pictures = self.drawing_index.pictures_at(row, col)
        if not pictures or not ctx.inspect_drawings(len(pictures), cell_address(row, col)):
            return None

        images = []
        for i, picture in enumerate(pictures):
            try:
                images.append(self.images.anchored_image(picture, i))
            except Exception as e:
                logger.error("Failed to read picture %r at %s: %s", picture.name, cell_address(row, col), e)
                ctx.errors.append(ExtractionError("images", str(e), cell_address(row, col)))
        return images or None

    def _floating_objects(
        self,
        row: int,
        col: int,
        bounds: Bounds | None,
        ctx: WalkContext,
    ) -> list[FloatingObjectInfo] | None:
        """Non-picture objects anchored in the cell, or anywhere in its merge."""
        if not self.include_floating_objects or not self.drawing_index.total_shape_count:
            return None

        min_row, min_col, max_row, max_col = bounds or (row, col, row, col)
        candidates = [
            obj
            for r in range(min_row, max_row + 1)
            for c in range(min_col, max_col + 1)
            for obj in self.drawing_index.shapes_at(r, c)
        ]
        if not candidates or not ctx.inspect_drawings(len(candidates), cell_address(row, col)):
            return None

        objects = []
        for i, obj in enumerate(candidates):
            try:
                objects.append(self.floating.floating_object(obj, i))
            except Exception as e:
                logger.error("Failed to read drawing %r at %s: %s", obj.name, cell_address(row, col), e)
                ctx.errors.append(ExtractionError("floating_objects", str(e), cell_address(row, col)))
        return objects or None

    def _metadata(self, cell: Any, record: CellRecord) -> CellMetadata:
        dims = record.dimensions
        rows = dims.row_span or 1
        columns = dims.col_span or 1
        row, col = record.position.row, record.position.column
        return CellMetadata(
            has_formula=record.formula is not None,
            is_rich_text=isinstance(cell.value, CellRichText),
            style_id=cell.style_id if cell.has_style else 0,
            style_name=cell.style,
            rows=rows,
            columns=columns,
            start=position(row, col),
            end=position(row + rows - 1, col + columns - 1),
        )


def _number_format_id(cell: Any) -> int | None:
    style = getattr(cell, "_style", None)
    return getattr(style, "numFmtId", None) if style is not None else None


# =============================================================================
# Walk
# =============================================================================


@dataclass(frozen=True)
class WalkBounds:
    """Inclusive 1-based rectangle of cells visited by a walk."""

    min_row: int
    min_col: int
    max_row: int
    max_col: int

    @property
    def row_count(self) -> int:
        return self.max_row - self.min_row + 1

    @property
    def column_count(self) -> int:
        return self.max_col - self.min_col + 1

    def contains(self, row: int, col: int) -> bool:
        return self.min_row <= row <= self.max_row and self.min_col <= col <= self.max_col


def worksheet_bounds(worksheet: Worksheet) -> WalkBounds:
    """Populated range of a worksheet.

    Raises:
        EmptyWorksheetError: The worksheet holds no cells.
    """
    if not worksheet._cells:
        raise EmptyWorksheetError(f"Worksheet {worksheet.title!r} has no cells")
    return WalkBounds(
        min_row=worksheet.min_row,
        min_col=worksheet.min_column,
        max_row=worksheet.max_row,
        max_col=worksheet.max_column,
    )


class SheetWalker:
    """Walks a worksheet row by row and emits one record per visible cell.

    A cell covered by a merge (declared or synthesized from an oversized
    drawing) is skipped: the main cell registers every other address of its
    range before the walk moves on, and each registered address is removed
    again when it is reached. After a complete walk the exclusion set of the
    context is empty.

    Example:
        >>> walker = SheetWalker(worksheet, builder, bounds)
        >>> ctx = WalkContext()
        >>> rows = walker.walk(ctx)
        >>> ctx.exclusions
        set()
    """

    def __init__(self, worksheet: Worksheet, builder: CellRecordBuilder, bounds: WalkBounds):
        self.worksheet = worksheet
        self.builder = builder
        self.bounds = bounds

    def iter_rows(self, ctx: WalkContext) -> Iterator[list[CellRecord]]:
        b = self.bounds
        for cells in self.worksheet.iter_rows(
            min_row=b.min_row, max_row=b.max_row, min_col=b.min_col, max_col=b.max_col,
        ):
            records = []
            for cell in cells:
                address = cell_address(cell.row, cell.column)
                if ctx.consume(address):
                    self._warn_covered_drawings(cell.row, cell.column, address)
                    continue
                record = self.builder.build(cell, ctx)
                self._register_merge(record, ctx)
                records.append(record)
            yield records

    def walk(self, ctx: WalkContext) -> list[list[CellRecord]]:
        rows = list(self.iter_rows(ctx))
        if ctx.exclusions:
            logger.warning("%d excluded cells were never reached", len(ctx.exclusions))
        return rows

    def _warn_covered_drawings(self, row: int, column: int, address: str) -> None:
        index = self.builder.drawing_index
        count = len(index.pictures_at(row, column)) + len(index.shapes_at(row, column))
        if count:
            logger.warning(
                "%s is covered by a merge, dropping %d drawing(s) anchored there", address, count,
            )

    def _register_merge(self, record: CellRecord, ctx: WalkContext) -> None:
        """Exclude every non-main cell of the record's merge still ahead in the walk."""
        dims = record.dimensions
        if not dims.is_merged or not dims.is_main_merged_cell:
            return
        row, col = record.position.row, record.position.column
        for r in range(row, row + (dims.row_span or 1)):
            for c in range(col, col + (dims.col_span or 1)):
                if (r, c) == (row, col) or not self.bounds.contains(r, c):
                    continue
                ctx.exclude(cell_address(r, c))
