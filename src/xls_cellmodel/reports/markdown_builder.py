"""Markdown summary of an extracted worksheet grid."""

from __future__ import annotations

from pathlib import Path

from ..models import CellContentType, SheetGrid


class MarkdownReportBuilder:
    """Generates a Markdown summary of one worksheet pass."""

    def __init__(self, grid: SheetGrid, output_dir: Path | None = None):
        """Initialize the builder.

        Args:
            grid: The extracted worksheet grid
            output_dir: Directory to write the markdown file (only needed
                for build())
        """
        self.grid = grid
        self.output_dir = output_dir

    def build(self) -> Path:
        """Write ``summary.md`` and return its path."""
        if self.output_dir is None:
            raise ValueError("output_dir is required to build the report")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / "summary.md"
        path.write_text(self.render(), encoding="utf-8")
        return path

    def render(self) -> str:
        """Render the summary as a Markdown string."""
        sections = [
            self._overview(),
            self._merged_ranges(),
            self._images(),
            self._floating_objects(),
            self._issues(),
        ]
        return "\n".join(section for section in sections if section)

    def _overview(self) -> str:
        g = self.grid
        counts = {content_type: 0 for content_type in CellContentType}
        for record in g.iter_records():
            counts[record.content_type] += 1

        content = f"""# {g.file_name}: {g.worksheet_name}

## At a Glance

| Property | Value |
|----------|-------|
| Worksheets | {', '.join(g.available_worksheets)} |
| Rows | {g.total_rows} |
| Columns | {g.total_columns} |
| Records | {g.record_count} |
| Merged Cells | {len(g.merged_records)} |
| Images | {g.image_count} |
| Floating Objects | {g.floating_object_count} |

## Content

| Type | Cells |
|------|-------|
"""
        for content_type, count in counts.items():
            content += f"| {content_type.value} | {count} |\n"
        return content

    def _merged_ranges(self) -> str:
        records = self.grid.merged_records
        if not records:
            return ""
        content = "## Merged Ranges\n\n| Cell | Range | Rows | Columns |\n|------|-------|------|---------|\n"
        for r in records:
            dims = r.dimensions
            content += f"| {r.address} | {dims.merged_range_address} | {dims.row_span} | {dims.col_span} |\n"
        return content

    def _images(self) -> str:
        rows = [
            (record.address, image)
            for record in self.grid.iter_records()
            for image in record.images or []
        ]
        if not rows:
            return ""
        content = "## Images\n\n| Cell | Name | Type | Size | Scale |\n|------|------|------|------|-------|\n"
        for address, image in rows:
            kind = "in-cell" if image.is_in_cell_picture else image.image_type
            content += (
                f"| {address} | {self._escape(image.name)} | {kind} | "
                f"{image.width}x{image.height}px | {image.scale_factor * 100:.1f}% |\n"
            )
        return content

    def _floating_objects(self) -> str:
        rows = [
            (record.address, obj)
            for record in self.grid.iter_records()
            for obj in record.floating_objects or []
        ]
        if not rows:
            return ""
        content = "## Floating Objects\n\n| Cell | Name | Type | Text |\n|------|------|------|------|\n"
        for address, obj in rows:
            text = self._escape((obj.text or "").replace("\n", " "))
            content += f"| {address} | {self._escape(obj.name)} | {obj.object_type.value} | {text} |\n"
        return content

    def _issues(self) -> str:
        g = self.grid
        if not g.errors and not g.warnings:
            return ""
        content = "## Issues\n\n"
        for error in g.errors:
            where = f" ({error.address})" if error.address else ""
            content += f"- **Error** [{error.stage}]{where}: {error.message}\n"
        for warning in g.warnings:
            where = f" ({warning.address})" if warning.address else ""
            content += f"- **Warning** [{warning.stage}]{where}: {warning.message}\n"
        return content

    @staticmethod
    def _escape(text: str) -> str:
        return text.replace("|", "\\|")
