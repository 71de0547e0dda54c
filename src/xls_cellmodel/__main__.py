"""CLI entry point for xls-cellmodel.

Usage:
    python -m xls_cellmodel workbook.xlsx -s Summary -o ./output
    xls-cellmodel workbook.xlsx > grid.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="xls-cellmodel",
        description="Extract per-cell records from an Excel worksheet",
    )
    parser.add_argument(
        "input",
        help="Path to Excel file (.xlsx, .xlsm, .xltx, .xltm)",
    )
    parser.add_argument(
        "-s", "--sheet",
        help="Worksheet name or 0-based index (default: first worksheet)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output directory for the JSON file (default: print JSON to stdout)",
    )
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Skip pictures and floating objects",
    )
    parser.add_argument(
        "--no-image-data",
        action="store_true",
        help="Omit base64 image payloads",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Also write a Markdown summary (requires --output)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or per-cell decisions (-vv) to stderr",
    )

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    file_path = Path(args.input)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return 1

    sheet: str | int | None = args.sheet
    if sheet is not None and sheet.isdigit():
        sheet = int(sheet)

    try:
        from . import ExtractionOptions, extract
        from .reports import JSONReportBuilder, MarkdownReportBuilder

        options = ExtractionOptions(
            include_images=not args.no_images,
            include_floating_objects=not args.no_images,
            include_image_data=not args.no_image_data,
        )
        grid = extract(file_path, sheet=sheet, options=options)

        if args.output:
            output_dir = Path(args.output)
            json_path = JSONReportBuilder(grid, output_dir).build()
            print(f"Extraction complete: {grid.file_name} / {grid.worksheet_name}")
            print(f"  Rows: {grid.total_rows}")
            print(f"  Columns: {grid.total_columns}")
            print(f"  Records: {grid.record_count}")
            print(f"  Merged Cells: {len(grid.merged_records)}")
            print(f"  Images: {grid.image_count}")
            print(f"  Floating Objects: {grid.floating_object_count}")
            if grid.errors:
                print(f"  Errors: {len(grid.errors)}")
            if grid.warnings:
                print(f"  Warnings: {len(grid.warnings)}")
            print(f"\nOutput: {json_path}")
            if args.markdown:
                md_path = MarkdownReportBuilder(grid, output_dir).build()
                print(f"  Markdown: {md_path}")
        else:
            print(JSONReportBuilder(grid, Path.cwd()).render())

        return 0

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
