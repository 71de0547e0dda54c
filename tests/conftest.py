"""Pytest fixtures for xls-cellmodel tests."""

from __future__ import annotations

import tempfile
from datetime import datetime
from io import BytesIO
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

import pytest
from openpyxl import Workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont
from openpyxl.comments import Comment
from openpyxl.drawing.image import Image as SheetImage
from openpyxl.styles import Alignment, Border, Color, Font, PatternFill, Side
from openpyxl.worksheet.hyperlink import Hyperlink
from PIL import Image


def png_bytes(width: int = 40, height: int = 20, color: str = "red") -> bytes:
    """Encode a solid PNG of the given size."""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, "PNG")
    return buffer.getvalue()


def patch_archive(path: Path, parts: dict | None = None, edits: dict | None = None) -> None:
    """Rewrite an xlsx package in place.

    Args:
        path: Package to rewrite
        parts: Members to add or replace (name -> str/bytes)
        edits: Members to transform (name -> callable taking and returning bytes)
    """
    with ZipFile(path) as archive:
        contents = {name: archive.read(name) for name in archive.namelist()}
    for name, edit in (edits or {}).items():
        contents[name] = edit(contents[name])
    contents.update(parts or {})
    with ZipFile(path, "w", ZIP_DEFLATED) as archive:
        for name, data in contents.items():
            archive.writestr(name, data)


DRAWING_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<xdr:wsDr xmlns:xdr="http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing"
          xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main"
          xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
  <xdr:twoCellAnchor editAs="oneCell">
    <xdr:from><xdr:col>1</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>1</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
    <xdr:to><xdr:col>2</xdr:col><xdr:colOff>190500</xdr:colOff><xdr:row>2</xdr:row><xdr:rowOff>95250</xdr:rowOff></xdr:to>
    <xdr:pic>
      <xdr:nvPicPr><xdr:cNvPr id="2" name="Picture 1" descr="Logo"/><xdr:cNvPicPr/></xdr:nvPicPr>
      <xdr:blipFill><a:blip r:embed="rId1"/><a:stretch><a:fillRect/></a:stretch></xdr:blipFill>
      <xdr:spPr><a:prstGeom prst="rect"><a:avLst/></a:prstGeom></xdr:spPr>
    </xdr:pic>
    <xdr:clientData/>
  </xdr:twoCellAnchor>
  <xdr:oneCellAnchor>
    <xdr:from><xdr:col>4</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>1</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
    <xdr:ext cx="1000000" cy="100000"/>
    <xdr:sp macro="" textlink="">
      <xdr:nvSpPr><xdr:cNvPr id="5" name="Rectangle 4"/><xdr:cNvSpPr/></xdr:nvSpPr>
      <xdr:spPr>
        <a:prstGeom prst="rect"><a:avLst/></a:prstGeom>
        <a:solidFill><a:schemeClr val="accent1"/></a:solidFill>
      </xdr:spPr>
    </xdr:sp>
    <xdr:clientData/>
  </xdr:oneCellAnchor>
  <xdr:twoCellAnchor>
    <xdr:from><xdr:col>0</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>4</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
    <xdr:to><xdr:col>0</xdr:col><xdr:colOff>400000</xdr:colOff><xdr:row>4</xdr:row><xdr:rowOff>100000</xdr:rowOff></xdr:to>
    <xdr:sp macro="" textlink="">
      <xdr:nvSpPr>
        <xdr:cNvPr id="3" name="TextBox 2"><a:hlinkClick r:id="rId2"/></xdr:cNvPr>
        <xdr:cNvSpPr txBox="1"/>
      </xdr:nvSpPr>
      <xdr:spPr>
        <a:prstGeom prst="rect"><a:avLst/></a:prstGeom>
        <a:solidFill><a:srgbClr val="ffff00"/></a:solidFill>
        <a:ln><a:solidFill><a:srgbClr val="000000"/></a:solidFill></a:ln>
      </xdr:spPr>
      <xdr:txBody><a:bodyPr/><a:lstStyle/><a:p><a:r><a:t>Note text</a:t></a:r></a:p></xdr:txBody>
    </xdr:sp>
    <xdr:clientData/>
  </xdr:twoCellAnchor>
  <xdr:twoCellAnchor>
    <xdr:from><xdr:col>3</xdr:col><xdr:colOff>0</xdr:colOff><xdr:row>4</xdr:row><xdr:rowOff>0</xdr:rowOff></xdr:from>
    <xdr:to><xdr:col>3</xdr:col><xdr:colOff>100000</xdr:colOff><xdr:row>5</xdr:row><xdr:rowOff>100000</xdr:rowOff></xdr:to>
    <xdr:graphicFrame macro="">
      <xdr:nvGraphicFramePr><xdr:cNvPr id="4" name="Table 3"/><xdr:cNvGraphicFramePr/></xdr:nvGraphicFramePr>
      <xdr:xfrm><a:off x="0" y="0"/><a:ext cx="0" cy="0"/></xdr:xfrm>
      <a:graphic>
        <a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/table">
          <a:tbl>
            <a:tr h="0"><a:tc><a:txBody><a:bodyPr/><a:p><a:r><a:t>Q1</a:t></a:r></a:p></a:txBody></a:tc><a:tc><a:txBody><a:bodyPr/><a:p><a:r><a:t>Q2</a:t></a:r></a:p></a:txBody></a:tc></a:tr>
            <a:tr h="0"><a:tc><a:txBody><a:bodyPr/><a:p><a:r><a:t>10</a:t></a:r></a:p></a:txBody></a:tc><a:tc><a:txBody><a:bodyPr/><a:p><a:r><a:t>20</a:t></a:r></a:p></a:txBody></a:tc></a:tr>
          </a:tbl>
        </a:graphicData>
      </a:graphic>
    </xdr:graphicFrame>
    <xdr:clientData/>
  </xdr:twoCellAnchor>
</xdr:wsDr>
"""

DRAWING_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image" Target="../media/image1.png"/>
  <Relationship Id="rId2" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink" Target="https://example.com/notes" TargetMode="External"/>
</Relationships>
"""

METADATA_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<metadata xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main"
          xmlns:xlrd="http://schemas.microsoft.com/office/spreadsheetml/2017/richdata">
  <metadataTypes count="1">
    <metadataType name="XLRICHVALUE" minSupportedVersion="120000" copy="1" pasteAll="1" pasteValues="1" merge="1" splitFirst="1" rowColShift="1" clearFormats="1" clearComments="1" assign="1" coerce="1"/>
  </metadataTypes>
  <futureMetadata name="XLRICHVALUE" count="1">
    <bk><extLst><ext uri="{3e2802c4-a4d2-4d8b-9148-e3be6c30e623}"><xlrd:rvb i="0"/></ext></extLst></bk>
  </futureMetadata>
  <valueMetadata count="1"><bk><rc t="1" v="0"/></bk></valueMetadata>
</metadata>
"""

RICH_VALUE_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<rvData xmlns="http://schemas.microsoft.com/office/spreadsheetml/2017/richdata" count="1">
  <rv s="0"><v>0</v><v>5</v><v>Logo</v></rv>
</rvData>
"""

RICH_VALUE_STRUCTURE_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<rvStructures xmlns="http://schemas.microsoft.com/office/spreadsheetml/2017/richdata" count="1">
  <s t="_localImage"><k n="_rvRel:LocalImageIdentifier" t="i"/><k n="CalcOrigin" t="i"/><k n="Text" t="s"/></s>
</rvStructures>
"""

RICH_VALUE_REL_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<richValueRels xmlns="http://schemas.microsoft.com/office/spreadsheetml/2022/richvaluerel"
               xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
  <rel r:id="rId1"/>
</richValueRels>
"""

RICH_VALUE_REL_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image" Target="../media/image1.png"/>
</Relationships>
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def simple_workbook(temp_dir) -> Path:
    """Create a simple workbook with basic data."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"

    ws["A1"] = "Name"
    ws["B1"] = "Value"
    ws["A2"] = "Item 1"
    ws["B2"] = 100
    ws["A3"] = "Item 2"
    ws["B3"] = 200.5
    ws["A4"] = "Total"
    ws["B4"] = "=SUM(B2:B3)"

    path = temp_dir / "simple.xlsx"
    wb.save(path)
    wb.close()
    return path


@pytest.fixture
def merged_workbook(temp_dir) -> Path:
    """Create a workbook with B2:C3 merged around the value 42."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Merged"

    ws["A1"] = "Top"
    ws["B2"] = 42
    ws.merge_cells("B2:C3")
    ws["D4"] = "End"

    path = temp_dir / "merged.xlsx"
    wb.save(path)
    wb.close()
    return path


@pytest.fixture
def multi_sheet_workbook(temp_dir) -> Path:
    """Create a workbook with three worksheets."""
    wb = Workbook()
    ws1 = wb.active
    ws1.title = "First"
    ws1["A1"] = "one"

    ws2 = wb.create_sheet("Second")
    ws2["A1"] = "two"
    ws2["B2"] = 2

    wb.create_sheet("Blank")

    path = temp_dir / "multi_sheet.xlsx"
    wb.save(path)
    wb.close()
    return path


@pytest.fixture
def styled_workbook(temp_dir) -> Path:
    """Create a workbook with fonts, fills, borders, formats, rich text, comments and links."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Styled"

    thin = Side(style="thin", color="000000")

    ws["A1"] = "Heading"
    ws["A1"].font = Font(name="Arial", size=14, bold=True, underline="single", color="FFFF0000")
    ws["A1"].fill = PatternFill("solid", fgColor="FFFF00")
    ws["A1"].border = Border(top=thin, bottom=Side(style="mediumDashed", color="FF0000FF"))
    ws["A1"].alignment = Alignment(horizontal="center", vertical="top", wrap_text=True)

    ws["B1"] = 1234.5
    ws["B1"].number_format = "#,##0.00"
    ws["C1"] = datetime(2024, 3, 5)
    ws["C1"].number_format = "yyyy-mm-dd"
    ws["D1"] = 0.125
    ws["D1"].number_format = "0.0%"
    ws["E1"] = True

    ws["A2"] = CellRichText(["Plain ", TextBlock(InlineFont(b=True, color="FF0000"), "Bold")])
    ws["B2"] = "Noted"
    ws["B2"].comment = Comment("Check this", "Reviewer")
    ws["C2"] = "Site"
    ws["C2"].hyperlink = "https://example.com"
    ws["D2"] = "Jump"
    ws["D2"].hyperlink = Hyperlink(ref="D2", location="Styled!A1", tooltip="Back to top")
    ws["E2"] = "Theme"
    ws["E2"].font = Font(color=Color(theme=4, tint=0.4))

    path = temp_dir / "styled.xlsx"
    wb.save(path)
    wb.close()
    return path


@pytest.fixture
def drawings_workbook(temp_dir) -> Path:
    """Create a workbook whose drawing part holds a picture, a shape, a text box and a table.

    Layout on sheet "Drawings":
        B2  picture spanning B2:C3
        E2  one-cell anchored rectangle spanning E2:F2
        A5  "Label" with a single-cell text box
        D5  table spanning D5:D6
    """
    image_path = temp_dir / "logo.png"
    image_path.write_bytes(png_bytes(40, 20))

    wb = Workbook()
    ws = wb.active
    ws.title = "Drawings"
    ws["A1"] = "Header"
    ws["A5"] = "Label"
    ws["F7"] = "End"
    ws.add_image(SheetImage(str(image_path)), "B2")

    path = temp_dir / "drawings.xlsx"
    wb.save(path)
    wb.close()

    patch_archive(path, parts={
        "xl/drawings/drawing1.xml": DRAWING_XML,
        "xl/drawings/_rels/drawing1.xml.rels": DRAWING_RELS,
        "xl/media/image1.png": png_bytes(40, 20),
    })
    return path


@pytest.fixture
def in_cell_workbook(temp_dir) -> Path:
    """Create a workbook with a picture placed in cell B2."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Photos"
    ws["A1"] = "Photo"
    ws["B2"] = "#VALUE!"
    ws["C3"] = "Caption"

    path = temp_dir / "in_cell.xlsx"
    wb.save(path)
    wb.close()

    patch_archive(
        path,
        parts={
            "xl/metadata.xml": METADATA_XML,
            "xl/richData/rdrichvalue.xml": RICH_VALUE_XML,
            "xl/richData/rdrichvaluestructure.xml": RICH_VALUE_STRUCTURE_XML,
            "xl/richData/richValueRel.xml": RICH_VALUE_REL_XML,
            "xl/richData/_rels/richValueRel.xml.rels": RICH_VALUE_REL_RELS,
            "xl/media/image1.png": png_bytes(40, 20),
        },
        edits={
            "xl/worksheets/sheet1.xml": lambda xml: xml.replace(b'<c r="B2" ', b'<c r="B2" vm="1" '),
        },
    )
    return path


@pytest.fixture
def empty_workbook(temp_dir) -> Path:
    """Create a workbook whose only worksheet has no cells."""
    wb = Workbook()
    wb.active.title = "Empty"
    path = temp_dir / "empty.xlsx"
    wb.save(path)
    wb.close()
    return path
