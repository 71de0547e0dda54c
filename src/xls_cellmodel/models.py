"""
Data models for worksheet cell extraction results.

This module contains the dataclasses used to represent one worksheet pass:
the per-cell record handed to a presentation layer, the resolved style
pieces it carries, anchored pictures and floating drawing objects, and the
worksheet-level grid that owns all records.

Example:
    >>> from xls_cellmodel import extract
    >>> grid = extract("workbook.xlsx")
    >>> for row in grid.rows:
    ...     print([record.text for record in row])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


# =============================================================================
# Enums
# =============================================================================


class CellContentType(Enum):
    """What a cell visibly contains.

    Attributes:
        EMPTY: No text, no formula and no picture.
        TEXT_ONLY: Display text or a formula, no picture.
        IMAGE_ONLY: A picture anchored at (or placed in) the cell, no text.
        MIXED: Both text and a picture.
    """

    EMPTY = "empty"
    TEXT_ONLY = "text_only"
    IMAGE_ONLY = "image_only"
    MIXED = "mixed"


class DataType(Enum):
    """Data type reported for a cell value.

    Attributes:
        EMPTY: No value.
        IMAGE: No value, but the cell holds a picture.
        TEXT: String or rich text.
        NUMBER: Floating point number.
        INTEGER: Integral number.
        BOOLEAN: TRUE/FALSE.
        DATETIME: Date, time or datetime.
        ERROR: The record could not be built; only fallback fields are set.
    """

    EMPTY = "Empty"
    IMAGE = "Image"
    TEXT = "Text"
    NUMBER = "Number"
    INTEGER = "Integer"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    ERROR = "Error"


class DrawingKind(Enum):
    """Kind of an anchored drawing object.

    Each kind has its own accessor for text, style and hyperlink in
    :mod:`xls_cellmodel.floating`.

    Attributes:
        SHAPE: Auto shape or connector (``xdr:sp`` / ``xdr:cxnSp``).
        TEXT_BOX: Shape flagged as a text box (``txBox="1"``).
        CHART: Graphic frame holding a chart.
        TABLE: Graphic frame holding a DrawingML table.
        PICTURE: Embedded picture (``xdr:pic``).
        OTHER: Groups, SmartArt and anything unrecognised.
    """

    SHAPE = "Shape"
    TEXT_BOX = "TextBox"
    CHART = "Chart"
    TABLE = "Table"
    PICTURE = "Picture"
    OTHER = "Other"


# =============================================================================
# Position and style models
# =============================================================================


@dataclass
class CellPosition:
    """A 1-based cell position.

    Attributes:
        row: Row number (1-based).
        column: Column number (1-based).
        address: A1-style address (e.g., "B2").
    """

    row: int
    column: int
    address: str


@dataclass
class FontInfo:
    """Resolved font of a cell.

    Colors are 6-digit uppercase hex strings without a leading '#'.
    """

    name: str | None = None
    size: float | None = None
    bold: bool = False
    italic: bool = False
    underline: str = "None"
    strike: bool = False
    color: str | None = None
    color_theme: str | None = None
    color_tint: float | None = None
    charset: int | None = None
    scheme: str | None = None
    family: int | None = None
    vertical_align: str | None = None


@dataclass
class AlignmentInfo:
    """Resolved alignment of a cell."""

    horizontal: str = "General"
    vertical: str = "Bottom"
    wrap_text: bool = False
    indent: int = 0
    reading_order: str = "ContextDependent"
    text_rotation: int = 0
    shrink_to_fit: bool = False


@dataclass
class BorderSide:
    """One edge of a cell border."""

    style: str = "None"
    color: str | None = None


@dataclass
class BorderInfo:
    """Resolved border of a cell."""

    top: BorderSide = field(default_factory=BorderSide)
    bottom: BorderSide = field(default_factory=BorderSide)
    left: BorderSide = field(default_factory=BorderSide)
    right: BorderSide = field(default_factory=BorderSide)
    diagonal: BorderSide = field(default_factory=BorderSide)
    diagonal_up: bool = False
    diagonal_down: bool = False


@dataclass
class FillInfo:
    """Resolved fill of a cell.

    Attributes:
        pattern_type: Pattern name ("None", "Solid", "DarkGray", ...).
        background_color: The color a renderer should paint behind the text.
        pattern_color: Foreground color of a patterned fill.
        background_color_theme: Theme index of the background color, if any.
        background_color_tint: Tint applied to the background theme color.
    """

    pattern_type: str = "None"
    background_color: str | None = None
    pattern_color: str | None = None
    background_color_theme: str | None = None
    background_color_tint: float | None = None


@dataclass
class DimensionInfo:
    """Size and merge membership of a cell.

    Attributes:
        column_width: Column width in character units.
        row_height: Row height in points.
        is_merged: Cell belongs to a declared or synthesized merge.
        merged_range_address: Range address of the merge (e.g., "B2:C3").
        is_main_merged_cell: Cell is the top-left cell of the merge.
        row_span: Rows covered (main cell) or 1 (secondary cell).
        col_span: Columns covered (main cell) or 1 (secondary cell).
    """

    column_width: float | None = None
    row_height: float | None = None
    is_merged: bool = False
    merged_range_address: str | None = None
    is_main_merged_cell: bool | None = None
    row_span: int | None = None
    col_span: int | None = None


@dataclass
class RichTextRun:
    """One formatted run of a rich text cell."""

    text: str
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strike: bool | None = None
    size: float | None = None
    font_name: str | None = None
    color: str | None = None
    vertical_align: str | None = None


@dataclass
class CommentInfo:
    """A classic cell comment (note)."""

    text: str
    author: str | None = None
    width: float | None = None
    height: float | None = None


@dataclass
class HyperlinkInfo:
    """A cell hyperlink.

    Attributes:
        absolute_uri: The target when it is an absolute URI, else None.
        original_string: Target as written, or "#location" for internal links.
        is_absolute_uri: Whether the target carries a URI scheme.
        location: Internal location (e.g., "Sheet2!A1"), if any.
        tooltip: Hover text, if any.
    """

    absolute_uri: str | None = None
    original_string: str | None = None
    is_absolute_uri: bool = False
    location: str | None = None
    tooltip: str | None = None


@dataclass
class CellMetadata:
    """Bookkeeping flags of a cell."""

    has_formula: bool = False
    is_rich_text: bool = False
    style_id: int | None = None
    style_name: str | None = None
    rows: int = 1
    columns: int = 1
    start: CellPosition | None = None
    end: CellPosition | None = None


# =============================================================================
# Graphical content
# =============================================================================


@dataclass
class ImageInfo:
    """A picture attached to a cell.

    Display sizes come from the anchor span, original sizes from the image
    bytes themselves.

    Attributes:
        name: Drawing name (e.g., "Picture 1").
        description: Alt description, or a generated size summary.
        image_type: "PNG", "JPEG", "GIF", "BMP", "TIFF", "EMF", ...
        width: Displayed width in pixels.
        height: Displayed height in pixels.
        left: Horizontal offset inside the anchor cell, in pixels.
        top: Vertical offset inside the anchor cell, in pixels.
        base64_data: Base64 payload (empty when image data is excluded).
        file_name: Media file name inside the package.
        file_size: Payload size in bytes.
        anchor_cell: Cell holding the top-left corner.
        from_cell: Same as anchor_cell.
        to_cell: Cell holding the bottom-right corner.
        hyperlink_address: Click-through target, if any.
        is_in_cell_picture: Picture is placed in the cell value slot.
        alt_text: Alternative text, if any.
        original_width: Intrinsic pixel width.
        original_height: Intrinsic pixel height.
        excel_width_cm: Displayed width in centimeters.
        excel_height_cm: Displayed height in centimeters.
        scale_factor: Displayed / intrinsic size (1.0 = unscaled).
        is_scaled: Scale deviates from 100% by more than one point.
        scale_method: Human readable scale summary.
    """

    name: str
    description: str = ""
    image_type: str = "PNG"
    width: int = 0
    height: int = 0
    left: float = 0.0
    top: float = 0.0
    base64_data: str = ""
    file_name: str = ""
    file_size: int = 0
    anchor_cell: CellPosition | None = None
    from_cell: CellPosition | None = None
    to_cell: CellPosition | None = None
    hyperlink_address: str | None = None
    is_in_cell_picture: bool = False
    alt_text: str | None = None
    original_width: int = 0
    original_height: int = 0
    excel_width_cm: float = 0.0
    excel_height_cm: float = 0.0
    scale_factor: float = 1.0
    is_scaled: bool = False
    scale_method: str = ""


@dataclass
class FloatingObjectInfo:
    """A non-picture drawing object (shape, text box, chart, ...) on a cell."""

    name: str
    object_type: DrawingKind
    description: str = ""
    width: int = 0
    height: int = 0
    left: float = 0.0
    top: float = 0.0
    text: str | None = None
    anchor_cell: CellPosition | None = None
    from_cell: CellPosition | None = None
    to_cell: CellPosition | None = None
    is_floating: bool = True
    style: str | None = None
    hyperlink_address: str | None = None


# =============================================================================
# Cell record
# =============================================================================


@dataclass
class CellRecord:
    """Normalized description of one visited cell.

    Created once per visited position by
    :class:`xls_cellmodel.builder.CellRecordBuilder` and owned by the
    :class:`SheetGrid` it is placed in.

    Example:
        >>> record = grid.cell("B2")
        >>> record.dimensions.row_span, record.dimensions.col_span
        (2, 2)
    """

    position: CellPosition
    value: Any = None
    text: str = ""
    formula: str | None = None
    data_type: DataType = DataType.EMPTY
    value_type: str | None = None
    content_type: CellContentType = CellContentType.EMPTY
    number_format: str | None = None
    number_format_id: int | None = None
    font: FontInfo = field(default_factory=FontInfo)
    alignment: AlignmentInfo = field(default_factory=AlignmentInfo)
    border: BorderInfo = field(default_factory=BorderInfo)
    fill: FillInfo = field(default_factory=FillInfo)
    dimensions: DimensionInfo = field(default_factory=DimensionInfo)
    rich_text: list[RichTextRun] | None = None
    comment: CommentInfo | None = None
    hyperlink: HyperlinkInfo | None = None
    images: list[ImageInfo] | None = None
    floating_objects: list[FloatingObjectInfo] | None = None
    metadata: CellMetadata = field(default_factory=CellMetadata)

    @property
    def address(self) -> str:
        """A1-style address of the cell."""
        return self.position.address


# =============================================================================
# Worksheet result
# =============================================================================


@dataclass
class ColumnHeader:
    """Column letter, width and index of one walked column."""

    name: str
    width: float
    index: int


@dataclass
class WorksheetInfo:
    """Worksheet-level sizing information."""

    name: str
    total_rows: int
    total_columns: int
    default_col_width: float
    default_row_height: float


@dataclass
class ExtractionError:
    """An error that occurred during extraction.

    Attributes:
        stage: Which step failed (e.g., "cell", "drawings").
        message: Error message.
        address: Cell address, when the failure is tied to one cell.
    """

    stage: str
    message: str
    address: str | None = None


@dataclass
class ExtractionWarning:
    """A warning raised during extraction (limits hit, truncation)."""

    stage: str
    message: str
    address: str | None = None


@dataclass
class SheetGrid:
    """Row-major result of one worksheet pass.

    ``rows[i]`` holds the records of the i-th walked row, in column order.
    Positions subsumed by a merge are not emitted, so rows may be shorter
    than ``total_columns``.

    Attributes:
        file_name: Source file name.
        worksheet_name: Name of the walked worksheet.
        available_worksheets: Names of all worksheets in the workbook.
        column_headers: One entry per walked column.
        content_headers: Row-1 records, built without merge exclusion.
        rows: The record grid.
        total_rows: Rows in the walked range.
        total_columns: Columns in the walked range.
        worksheet_info: Sizing defaults of the worksheet.
        errors: Per-cell or per-stage failures that were recovered.
        warnings: Safety limits hit and truncations.
    """

    file_name: str
    worksheet_name: str
    available_worksheets: list[str] = field(default_factory=list)
    column_headers: list[ColumnHeader] = field(default_factory=list)
    content_headers: list[CellRecord] = field(default_factory=list)
    rows: list[list[CellRecord]] = field(default_factory=list)
    total_rows: int = 0
    total_columns: int = 0
    worksheet_info: WorksheetInfo | None = None
    errors: list[ExtractionError] = field(default_factory=list)
    warnings: list[ExtractionWarning] = field(default_factory=list)

    def iter_records(self) -> Iterator[CellRecord]:
        """Iterate all emitted records in row-major order."""
        for row in self.rows:
            yield from row

    def cell(self, address: str) -> CellRecord | None:
        """Return the record emitted for an address, or None if skipped."""
        address = address.upper()
        for record in self.iter_records():
            if record.position.address == address:
                return record
        return None

    @property
    def record_count(self) -> int:
        return sum(len(row) for row in self.rows)

    @property
    def merged_records(self) -> list[CellRecord]:
        """Main cells of declared or synthesized merges."""
        return [
            r for r in self.iter_records()
            if r.dimensions.is_merged and r.dimensions.is_main_merged_cell
        ]

    @property
    def image_count(self) -> int:
        return sum(len(r.images or []) for r in self.iter_records())

    @property
    def floating_object_count(self) -> int:
        return sum(len(r.floating_objects or []) for r in self.iter_records())


# =============================================================================
# Exceptions
# =============================================================================


class WorksheetNotFoundError(KeyError):
    """The requested worksheet name or index does not exist."""


class EmptyWorksheetError(ValueError):
    """The worksheet has no cells, so there is no range to walk."""
