"""JSON serialization of a SheetGrid in the presentation layer's wire shape."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from ..models import SheetGrid

# Keys whose wire name is not the plain camelCase of the field name
_KEY_OVERRIDES = {
    "underline": "underLine",
}


def camel_case(name: str) -> str:
    if name in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_wire(value: Any) -> Any:
    """Convert models to JSON-ready values with camelCase keys."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {camel_case(f.name): to_wire(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    if isinstance(value, dict):
        return {str(k): to_wire(v) for k, v in value.items()}
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def grid_to_dict(grid: SheetGrid) -> dict[str, Any]:
    """Wire payload of a grid.

    ``headers`` holds two lists: the column headers (name, width, index)
    and the row-1 content header records.
    """
    return {
        "fileName": grid.file_name,
        "worksheetName": grid.worksheet_name,
        "availableWorksheets": list(grid.available_worksheets),
        "headers": [to_wire(grid.column_headers), to_wire(grid.content_headers)],
        "rows": to_wire(grid.rows),
        "totalRows": grid.total_rows,
        "totalColumns": grid.total_columns,
        "worksheetInfo": to_wire(grid.worksheet_info),
        "errors": to_wire(grid.errors),
        "warnings": to_wire(grid.warnings),
    }


class JSONReportBuilder:
    """Writes the wire payload of a grid to ``<output_dir>/<name>.json``."""

    def __init__(self, grid: SheetGrid, output_dir: Path, indent: int | None = 2):
        """Initialize the builder.

        Args:
            grid: The extracted worksheet grid
            output_dir: Directory to write the JSON file
            indent: JSON indentation, None for compact output
        """
        self.grid = grid
        self.output_dir = output_dir
        self.indent = indent

    def render(self) -> str:
        return json.dumps(grid_to_dict(self.grid), indent=self.indent, ensure_ascii=False)

    def build(self) -> Path:
        """Generate the JSON file.

        Returns:
            Path to the written file
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stem = Path(self.grid.file_name).stem
        path = self.output_dir / f"{stem}_{_safe_name(self.grid.worksheet_name)}.json"
        path.write_text(self.render(), encoding="utf-8")
        return path


def _safe_name(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in name)
