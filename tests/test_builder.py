"""Tests for record assembly and the worksheet walk."""

from __future__ import annotations

import pytest
from openpyxl import Workbook

import xls_cellmodel.builder as builder_module
from xls_cellmodel.builder import (
    CellRecordBuilder,
    SheetWalker,
    WalkBounds,
    WalkContext,
    cell_address,
    worksheet_bounds,
)
from xls_cellmodel.extractors.drawings import DrawingObject
from xls_cellmodel.geometry import AnchorPoint, SheetMetrics
from xls_cellmodel.indexes import DrawingIndex, MergeIndex
from xls_cellmodel.models import CellContentType, DataType, DrawingKind, EmptyWorksheetError


def picture(start: tuple[int, int], end: tuple[int, int] | None = None, name: str = "Picture") -> DrawingObject:
    end = end or start
    return DrawingObject(
        kind=DrawingKind.PICTURE,
        name=name,
        start=AnchorPoint(row=start[0], column=start[1]),
        end=AnchorPoint(row=end[0], column=end[1]),
        media_name="image1.png",
    )


def make_builder(ws, objects=(), **kwargs) -> CellRecordBuilder:
    return CellRecordBuilder(
        ws, SheetMetrics(ws), MergeIndex(ws), DrawingIndex(list(objects)), **kwargs
    )


def walk(ws, objects=(), ctx: WalkContext | None = None, **kwargs):
    ctx = ctx or WalkContext()
    walker = SheetWalker(ws, make_builder(ws, objects, **kwargs), worksheet_bounds(ws))
    return walker.walk(ctx), ctx


@pytest.fixture
def ws():
    return Workbook().active


class TestWalkContext:
    """Tests for WalkContext."""

    def test_consume_removes_exclusion_once(self):
        ctx = WalkContext()
        ctx.exclude("C3")

        assert ctx.consume("C3") is True
        assert ctx.consume("C3") is False
        assert ctx.exclusions == set()
        assert ctx.skipped == ["C3"]

    def test_inspect_drawings_stops_at_ceiling(self):
        ctx = WalkContext(max_drawing_checks=2)

        assert ctx.inspect_drawings(1, "A1") is True
        assert ctx.inspect_drawings(1, "A2") is True
        assert ctx.inspect_drawings(1, "A3") is False
        assert ctx.inspect_drawings(1, "A4") is False

        assert ctx.limit_reached is True
        assert len(ctx.warnings) == 1
        assert ctx.warnings[0].stage == "drawings"
        assert ctx.warnings[0].address == "A3"

    def test_cell_address(self):
        assert cell_address(1, 1) == "A1"
        assert cell_address(10, 28) == "AB10"


class TestCellRecordBuilder:
    """Tests for CellRecordBuilder."""

    def test_plain_text_cell(self, ws):
        ws["A1"] = "Hello"
        record = make_builder(ws).build(ws["A1"], WalkContext())

        assert record.address == "A1"
        assert record.value == "Hello"
        assert record.text == "Hello"
        assert record.data_type == DataType.TEXT
        assert record.value_type == "str"
        assert record.content_type == CellContentType.TEXT_ONLY
        assert record.font.name == "Calibri"
        assert record.font.size == 11.0
        assert record.images is None
        assert record.floating_objects is None
        assert record.dimensions.is_merged is False
        assert record.metadata.rows == 1
        assert record.metadata.columns == 1

    def test_number_cell(self, ws):
        ws["B2"] = 1234.5
        ws["B2"].number_format = "#,##0.00"
        record = make_builder(ws).build(ws["B2"], WalkContext())

        assert record.value == 1234.5
        assert record.text == "1,234.50"
        assert record.data_type == DataType.NUMBER
        assert record.number_format == "#,##0.00"

    def test_formula_without_cached_value(self, ws):
        ws["A1"] = 1
        ws["A2"] = "=A1*2"
        record = make_builder(ws).build(ws["A2"], WalkContext())

        assert record.value is None
        assert record.text == ""
        assert record.formula == "A1*2"
        assert record.content_type == CellContentType.TEXT_ONLY
        assert record.metadata.has_formula is True

    def test_formula_reads_values_worksheet(self, ws):
        ws["A1"] = "=1+1"
        values = Workbook().active
        values["A1"] = 2
        record = make_builder(ws, values_worksheet=values).build(ws["A1"], WalkContext())

        assert record.value == 2
        assert record.text == "2"
        assert record.data_type == DataType.INTEGER
        assert record.formula == "1+1"

    def test_main_merged_cell(self, ws):
        ws["B2"] = 42
        ws.merge_cells("B2:C3")
        record = make_builder(ws).build(ws["B2"], WalkContext())
        dims = record.dimensions

        assert dims.is_merged is True
        assert dims.is_main_merged_cell is True
        assert dims.merged_range_address == "B2:C3"
        assert (dims.row_span, dims.col_span) == (2, 2)
        assert record.metadata.end.address == "C3"

    def test_secondary_merged_cell(self, ws):
        ws.merge_cells("B2:C3")
        record = make_builder(ws).build(ws["C3"], WalkContext())
        dims = record.dimensions

        assert dims.is_merged is True
        assert dims.is_main_merged_cell is False
        assert (dims.row_span, dims.col_span) == (1, 1)

    def test_failure_produces_fallback_record(self, ws, monkeypatch):
        ws["B2"] = "Broken"
        ws.merge_cells("B2:C3")
        builder = make_builder(ws)

        def explode(cell, record):
            raise RuntimeError("boom")

        monkeypatch.setattr(builder, "_metadata", explode)
        ctx = WalkContext()
        record = builder.build(ws["B2"], ctx)

        assert record.data_type == DataType.ERROR
        assert record.value == "Broken"
        assert record.text == "Broken"
        assert record.dimensions.is_main_merged_cell is True
        assert record.dimensions.merged_range_address == "B2:C3"
        assert len(ctx.errors) == 1
        assert ctx.errors[0].stage == "cell"
        assert ctx.errors[0].address == "B2"
        assert "boom" in ctx.errors[0].message

    def test_unreadable_text_produces_fallback_record(self, ws, monkeypatch):
        ws["A1"] = "Hello"

        def unreadable(value, number_format=None):
            raise ValueError("bad format")

        monkeypatch.setattr(builder_module, "display_text", unreadable)
        ctx = WalkContext()
        record = make_builder(ws).build(ws["A1"], ctx)

        assert record.data_type == DataType.ERROR
        assert record.value == "Hello"
        assert record.text == "Hello"
        assert [e.address for e in ctx.errors] == ["A1"]

    def test_anchored_picture(self, ws):
        record = make_builder(ws, [picture((2, 2), name="Chart image")]).build(ws["B2"], WalkContext())

        assert record.content_type == CellContentType.IMAGE_ONLY
        assert record.data_type == DataType.IMAGE
        assert record.font.name == "Calibri"
        assert len(record.images) == 1
        assert record.images[0].name == "Chart image"
        assert record.images[0].is_in_cell_picture is False

    def test_images_disabled(self, ws):
        builder = make_builder(ws, [picture((2, 2))], include_images=False)
        record = builder.build(ws["B2"], WalkContext())

        assert record.images is None
        assert record.content_type == CellContentType.IMAGE_ONLY

    def test_picture_spanning_rows_synthesizes_merge(self, ws):
        ws["B5"] = "Photo"
        record = make_builder(ws, [picture((5, 2), (7, 2))]).build(ws["B5"], WalkContext())
        dims = record.dimensions

        assert record.content_type == CellContentType.MIXED
        assert dims.is_merged is True
        assert dims.is_main_merged_cell is True
        assert dims.merged_range_address == "B5:B7"
        assert (dims.row_span, dims.col_span) == (3, 1)
        assert record.metadata.rows == 3


class TestSheetWalker:
    """Tests for the row-major walk."""

    def test_worksheet_bounds(self, ws):
        ws["B2"] = 1
        ws["D5"] = 2
        assert worksheet_bounds(ws) == WalkBounds(min_row=2, min_col=2, max_row=5, max_col=4)

    def test_empty_worksheet_raises(self, ws):
        with pytest.raises(EmptyWorksheetError):
            worksheet_bounds(ws)

    def test_bounds_properties(self):
        bounds = WalkBounds(min_row=2, min_col=3, max_row=4, max_col=3)
        assert bounds.row_count == 3
        assert bounds.column_count == 1
        assert bounds.contains(3, 3)
        assert not bounds.contains(1, 3)

    def test_merged_range_is_emitted_once(self, ws):
        ws["A1"] = "Top"
        ws["B2"] = 42
        ws.merge_cells("B2:C3")
        ws["D4"] = "End"

        rows, ctx = walk(ws)

        assert [len(row) for row in rows] == [4, 3, 2, 4]
        assert [r.address for r in rows[1]] == ["A2", "B2", "D2"]
        assert [r.address for r in rows[2]] == ["A3", "D3"]
        assert set(ctx.skipped) == {"C2", "B3", "C3"}
        assert ctx.exclusions == set()

        main = rows[1][1]
        assert main.value == 42
        assert main.dimensions.merged_range_address == "B2:C3"

    def test_no_record_for_covered_cells(self, ws):
        ws["A1"] = "x"
        ws.merge_cells("A1:B2")
        rows, _ = walk(ws)

        addresses = [r.address for row in rows for r in row]
        assert addresses == ["A1"]

    def test_spanning_picture_skips_covered_cells(self, ws):
        ws["A1"] = "Header"
        ws["B5"] = "Photo"
        ws["C8"] = "End"

        rows, ctx = walk(ws, [picture((5, 2), (7, 2))])

        addresses = [r.address for row in rows for r in row]
        assert "B5" in addresses
        assert "B6" not in addresses
        assert "B7" not in addresses
        assert set(ctx.skipped) == {"B6", "B7"}
        assert ctx.exclusions == set()

    def test_drawing_limit_records_warning(self, ws):
        for row in range(1, 4):
            ws.cell(row=row, column=1, value=f"row {row}")
        objects = [picture((row, 1), name=f"Picture {row}") for row in range(1, 4)]

        rows, ctx = walk(ws, objects, ctx=WalkContext(max_drawing_checks=2))

        assert rows[0][0].images is not None
        assert rows[1][0].images is not None
        assert rows[2][0].images is None
        assert ctx.limit_reached is True
        assert [w.stage for w in ctx.warnings] == ["drawings"]

    def test_walk_collects_cell_errors(self, ws, monkeypatch):
        ws["A1"] = "ok"
        ws["A2"] = "bad"
        builder = make_builder(ws)
        original = builder._metadata

        def flaky(cell, record):
            if cell.row == 2:
                raise ValueError("unreadable")
            return original(cell, record)

        monkeypatch.setattr(builder, "_metadata", flaky)
        ctx = WalkContext()
        rows = SheetWalker(ws, builder, worksheet_bounds(ws)).walk(ctx)

        assert rows[0][0].data_type == DataType.TEXT
        assert rows[1][0].data_type == DataType.ERROR
        assert [e.address for e in ctx.errors] == ["A2"]

    def test_spanning_picture_overlapping_authored_merge(self, ws, caplog):
        ws["A1"] = "Top"
        ws["B2"] = 42
        ws.merge_cells("B2:C3")

        rows, ctx = walk(ws, [picture((1, 1), (2, 2))])
        records = [r for row in rows for r in row]

        assert rows[0][0].dimensions.is_merged is False
        assert rows[1][1].address == "B2"
        assert rows[1][1].value == 42
        assert rows[1][1].dimensions.merged_range_address == "B2:C3"
        assert not [r for r in records if r.dimensions.is_merged and not r.dimensions.is_main_merged_cell]
        assert set(ctx.skipped) == {"C2", "B3", "C3"}
        assert ctx.exclusions == set()
        assert "overlaps merged range B2:C3" in caplog.text

    def test_drawings_on_covered_cells_are_reported(self, ws, caplog):
        ws["A1"] = "Top"
        ws["C3"] = "End"
        objects = [picture((1, 1), (2, 2), name="Big"), picture((2, 2), (3, 3), name="Inner")]

        rows, ctx = walk(ws, objects)
        images = [i.name for row in rows for r in row for i in r.images or []]

        assert images == ["Big"]
        assert "B2" in ctx.skipped
        assert "B2 is covered by a merge, dropping 1 drawing(s) anchored there" in caplog.text
