"""
Main entry point for worksheet cell extraction.

This module provides the extract() function which turns one worksheet of an
Excel workbook into a row-major grid of cell records.

Example:
    >>> from xls_cellmodel import extract
    >>> grid = extract("workbook.xlsx", sheet="Summary")
    >>> print(grid.total_rows, grid.total_columns)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator
from zipfile import ZipFile

import openpyxl
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .builder import (
    MAX_DRAWING_CHECKS,
    CellRecordBuilder,
    SheetWalker,
    WalkBounds,
    WalkContext,
    worksheet_bounds,
)
from .extractors import DrawingExtractor, DrawingObject, InCellPicture, InCellPictureExtractor
from .geometry import SheetMetrics
from .indexes import DrawingIndex, MergeIndex
from .models import (
    ColumnHeader,
    ExtractionError,
    ExtractionWarning,
    SheetGrid,
    WorksheetInfo,
    WorksheetNotFoundError,
)

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")


@dataclass
class ExtractionOptions:
    """Options for controlling what gets extracted.

    Use this to skip expensive steps you don't need, improving performance
    on large files.

    Attributes:
        include_formula_values: Load cached formula results (default: True).
        include_images: Resolve anchored and in-cell pictures (default: True).
        include_image_data: Embed base64 image payloads (default: True).
        include_floating_objects: Resolve shapes, text boxes, charts and
            tables (default: True).
        include_content_headers: Build the row-1 content headers
            (default: True).
        max_drawing_checks: Drawing objects inspected per worksheet before
            drawings are skipped (default: 999,999).
        max_rows: Maximum rows to walk (default: None = unlimited).

    Example:
        >>> options = ExtractionOptions(
        ...     include_image_data=False,  # Keep the payload small
        ...     max_rows=500,
        ... )
        >>> grid = extract("large_file.xlsx", options=options)
    """

    include_formula_values: bool = True
    include_images: bool = True
    include_image_data: bool = True
    include_floating_objects: bool = True
    include_content_headers: bool = True
    max_drawing_checks: int = MAX_DRAWING_CHECKS
    max_rows: int | None = None


def _validate_path(file_path: str | Path) -> Path:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Not a valid Excel file: {path}")
    return path


def extract(
    file_path: str | Path,
    sheet: str | int | None = None,
    options: ExtractionOptions | None = None,
) -> SheetGrid:
    """Extract the cell grid of one worksheet.

    This is the main entry point for the library. It opens the workbook,
    walks the selected worksheet and returns its records.

    Args:
        file_path: Path to the Excel file (.xlsx, .xlsm, .xltx, .xltm).
        sheet: Worksheet name or 0-based index (default: first worksheet).
        options: Optional configuration for extraction. If not provided,
            everything is extracted.

    Returns:
        SheetGrid with one record per visible cell.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a valid Excel file.
        WorksheetNotFoundError: If the worksheet does not exist.
        EmptyWorksheetError: If the worksheet has no cells.

    Example:
        >>> grid = extract("report.xlsx")
        >>> record = grid.cell("B2")
        >>> record.dimensions.is_merged
        True
    """
    with open_workbook(file_path, options) as handle:
        return handle.extract_sheet(sheet)


@contextmanager
def open_workbook(
    file_path: str | Path,
    options: ExtractionOptions | None = None,
) -> Iterator["WorkbookHandle"]:
    """Open a workbook for extracting several worksheets.

    Args:
        file_path: Path to the Excel file.
        options: Optional configuration shared by every extraction.

    Yields:
        WorkbookHandle for per-sheet extraction.

    Example:
        >>> with open_workbook("book.xlsx") as wb:
        ...     print(wb.sheet_names)
        ...     grids = [wb.extract_sheet(name) for name in wb.sheet_names]
    """
    if options is None:
        options = ExtractionOptions()
    path = _validate_path(file_path)

    try:
        workbook = openpyxl.load_workbook(path, data_only=False, rich_text=True)
        values_workbook = (
            openpyxl.load_workbook(path, data_only=True)
            if options.include_formula_values
            else None
        )
        archive = ZipFile(path, "r")
    except Exception as e:
        raise ValueError(f"Could not open Excel file: {e}") from e

    try:
        yield WorkbookHandle(workbook, path, options, values_workbook, archive)
    finally:
        archive.close()
        workbook.close()
        if values_workbook is not None:
            values_workbook.close()


class WorkbookHandle:
    """Handle for per-sheet extraction from one loaded workbook.

    Each call to :meth:`extract_sheet` is an independent worksheet pass with
    its own indexes and walk context.
    """

    def __init__(
        self,
        workbook: openpyxl.Workbook,
        file_path: Path,
        options: ExtractionOptions,
        values_workbook: openpyxl.Workbook | None = None,
        archive: ZipFile | None = None,
    ):
        self._workbook = workbook
        self._file_path = file_path
        self._options = options
        self._values_workbook = values_workbook
        self._archive = archive

    @property
    def sheet_names(self) -> list[str]:
        """List of sheet names in the workbook."""
        return self._workbook.sheetnames

    @property
    def file_path(self) -> Path:
        """Path to the workbook file."""
        return self._file_path

    def worksheet(self, sheet: str | int | None = None) -> Worksheet:
        """Resolve a worksheet by name or 0-based index.

        Raises:
            WorksheetNotFoundError: If no such worksheet exists.
        """
        names = self.sheet_names
        if sheet is None:
            sheet = 0
        if isinstance(sheet, int):
            if not 0 <= sheet < len(names):
                raise WorksheetNotFoundError(f"Sheet index out of range: {sheet}")
            name = names[sheet]
        elif sheet in names:
            name = sheet
        else:
            raise WorksheetNotFoundError(f"Sheet not found: {sheet}")

        worksheet = self._workbook[name]
        if not isinstance(worksheet, Worksheet):
            raise WorksheetNotFoundError(f"Not a worksheet: {name}")
        return worksheet

    def extract_sheet(self, sheet: str | int | None = None) -> SheetGrid:
        """Walk one worksheet and return its grid.

        Args:
            sheet: Worksheet name or 0-based index (default: first).

        Returns:
            SheetGrid for the worksheet.
        """
        worksheet = self.worksheet(sheet)
        options = self._options
        bounds = worksheet_bounds(worksheet)

        grid = SheetGrid(
            file_name=self._file_path.name,
            worksheet_name=worksheet.title,
            available_worksheets=list(self.sheet_names),
        )
        ctx = WalkContext(max_drawing_checks=options.max_drawing_checks)

        if options.max_rows is not None and bounds.row_count > options.max_rows:
            ctx.warnings.append(ExtractionWarning(
                "rows",
                f"Limited to {options.max_rows} of {bounds.row_count} rows",
            ))
            bounds = WalkBounds(
                bounds.min_row, bounds.min_col, bounds.min_row + options.max_rows - 1, bounds.max_col,
            )

        metrics = SheetMetrics(worksheet)
        merge_index = MergeIndex(worksheet)
        drawing_index = DrawingIndex(self._drawings(worksheet, metrics, ctx.errors))
        in_cell = self._in_cell_pictures(worksheet, ctx.errors)

        values_worksheet = None
        if self._values_workbook is not None:
            values_worksheet = self._values_workbook[worksheet.title]

        builder = CellRecordBuilder(
            worksheet,
            metrics,
            merge_index,
            drawing_index,
            in_cell_pictures=in_cell,
            values_worksheet=values_worksheet,
            include_images=options.include_images,
            include_image_data=options.include_image_data,
            include_floating_objects=options.include_floating_objects,
        )

        grid.column_headers = [
            ColumnHeader(name=get_column_letter(col), width=metrics.column_width(col), index=col)
            for col in range(bounds.min_col, bounds.max_col + 1)
        ]

        if options.include_content_headers:
            header_ctx = WalkContext(max_drawing_checks=options.max_drawing_checks)
            grid.content_headers = [
                builder.build(worksheet.cell(row=bounds.min_row, column=col), header_ctx)
                for col in range(bounds.min_col, bounds.max_col + 1)
            ]

        grid.rows = SheetWalker(worksheet, builder, bounds).walk(ctx)
        grid.total_rows = bounds.row_count
        grid.total_columns = bounds.column_count
        grid.worksheet_info = WorksheetInfo(
            name=worksheet.title,
            total_rows=grid.total_rows,
            total_columns=grid.total_columns,
            default_col_width=metrics.default_column_width,
            default_row_height=metrics.default_row_height,
        )
        grid.errors = ctx.errors
        grid.warnings = ctx.warnings

        logger.info(
            "Extracted %s!%s: %d rows, %d columns, %d records",
            self._file_path.name, worksheet.title,
            grid.total_rows, grid.total_columns, grid.record_count,
        )
        return grid

    def _drawings(
        self,
        worksheet: Worksheet,
        metrics: SheetMetrics,
        errors: list[ExtractionError],
    ) -> list[DrawingObject]:
        options = self._options
        if self._archive is None or not (options.include_images or options.include_floating_objects):
            return []
        try:
            return DrawingExtractor(self._archive, worksheet.title, metrics).extract()
        except Exception as e:
            logger.error("Could not read drawings of %r: %s", worksheet.title, e)
            errors.append(ExtractionError("drawings", str(e)))
            return []

    def _in_cell_pictures(
        self,
        worksheet: Worksheet,
        errors: list[ExtractionError],
    ) -> dict[tuple[int, int], InCellPicture]:
        if self._archive is None:
            return {}
        try:
            return InCellPictureExtractor(self._archive, worksheet.title).extract()
        except Exception as e:
            logger.error("Could not read in-cell pictures of %r: %s", worksheet.title, e)
            errors.append(ExtractionError("in_cell_pictures", str(e)))
            return {}
