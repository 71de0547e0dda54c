"""
xls-cellmodel: Per-cell record extraction for Excel worksheets.

This library walks one worksheet of an Excel workbook (.xlsx, .xlsm) and
produces, for every visible cell, a record describing its value, resolved
style, geometry, merge membership and anchored pictures or shapes. Cells
covered by a merged range are folded into the range's top-left cell.

Basic usage:
    >>> from xls_cellmodel import extract
    >>> grid = extract("workbook.xlsx")
    >>> for row in grid.rows:
    ...     print([record.text for record in row])

Several worksheets from one workbook:
    >>> from xls_cellmodel import open_workbook
    >>> with open_workbook("workbook.xlsx") as wb:
    ...     grids = [wb.extract_sheet(name) for name in wb.sheet_names]
"""

from .analyze import extract, open_workbook, ExtractionOptions, WorkbookHandle
from .colors import ColorDescriptor, ColorResolver, apply_tint
from .models import (
    # Main result
    SheetGrid,
    CellRecord,
    # Enums
    CellContentType,
    DataType,
    DrawingKind,
    # Cell pieces
    CellPosition,
    FontInfo,
    AlignmentInfo,
    BorderSide,
    BorderInfo,
    FillInfo,
    DimensionInfo,
    RichTextRun,
    CommentInfo,
    HyperlinkInfo,
    CellMetadata,
    # Graphical content
    ImageInfo,
    FloatingObjectInfo,
    # Worksheet
    ColumnHeader,
    WorksheetInfo,
    # Errors
    ExtractionError,
    ExtractionWarning,
    WorksheetNotFoundError,
    EmptyWorksheetError,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    "extract",
    "open_workbook",
    "ExtractionOptions",
    "WorkbookHandle",
    # Colors
    "ColorDescriptor",
    "ColorResolver",
    "apply_tint",
    # Main result
    "SheetGrid",
    "CellRecord",
    # Enums
    "CellContentType",
    "DataType",
    "DrawingKind",
    # Cell pieces
    "CellPosition",
    "FontInfo",
    "AlignmentInfo",
    "BorderSide",
    "BorderInfo",
    "FillInfo",
    "DimensionInfo",
    "RichTextRun",
    "CommentInfo",
    "HyperlinkInfo",
    "CellMetadata",
    # Graphical content
    "ImageInfo",
    "FloatingObjectInfo",
    # Worksheet
    "ColumnHeader",
    "WorksheetInfo",
    # Errors
    "ExtractionError",
    "ExtractionWarning",
    "WorksheetNotFoundError",
    "EmptyWorksheetError",
]
