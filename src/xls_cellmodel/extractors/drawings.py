"""Drawing objects (pictures, shapes, text boxes, charts) of a worksheet.

openpyxl keeps pictures and charts it can round-trip and drops everything
else, including the names, descriptions and hyperlinks of pictures. The
drawing parts are therefore read directly from the package.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from zipfile import ZipFile

from lxml import etree

from ..geometry import AnchorPoint, SheetMetrics, locate_extent
from ..models import DrawingKind
from .base import DRAWING_REL, NAMESPACES, BaseExtractor, Relationship

logger = logging.getLogger(__name__)

_R_EMBED = f"{{{NAMESPACES['r']}}}embed"
_R_ID = f"{{{NAMESPACES['r']}}}id"

_ANCHOR_TAGS = ("twoCellAnchor", "oneCellAnchor", "absoluteAnchor")
_NON_CONTENT_TAGS = ("from", "to", "ext", "pos", "clientData")


@dataclass
class DrawingObject:
    """One anchored object of a drawing part.

    Attributes:
        kind: Tagged kind of the object.
        name: ``cNvPr/@name``.
        description: ``cNvPr/@descr`` (alt text), if any.
        start: Top-left corner (1-based cell + EMU offsets).
        end: Bottom-right corner; derived from the extent for one-cell anchors.
        text: Text content of shapes and text boxes.
        style: Short fill/line summary of shapes.
        hyperlink: Click-through target, if any.
        image_data: Picture bytes (pictures only).
        media_name: File name of the picture inside the package.
        anchor_type: "twoCellAnchor" or "oneCellAnchor".
    """

    kind: DrawingKind
    name: str
    start: AnchorPoint
    end: AnchorPoint
    description: str | None = None
    text: str | None = None
    style: str | None = None
    hyperlink: str | None = None
    image_data: bytes | None = None
    media_name: str | None = None
    anchor_type: str = "twoCellAnchor"

    @property
    def is_picture(self) -> bool:
        return self.kind is DrawingKind.PICTURE

    @property
    def spans_multiple_cells(self) -> bool:
        return self.end.row > self.start.row or self.end.column > self.start.column


class DrawingExtractor(BaseExtractor):
    """Extracts every anchored drawing object of one worksheet."""

    name = "drawings"

    def __init__(self, archive: ZipFile, sheet_name: str, metrics: SheetMetrics):
        super().__init__(archive, sheet_name)
        self.metrics = metrics

    def extract(self) -> list[DrawingObject]:
        """Extract all drawing objects in document order.

        Returns:
            List of DrawingObject
        """
        sheet_part = self.worksheet_part()
        if sheet_part is None:
            logger.debug("No worksheet part found for %r", self.sheet_name)
            return []

        objects = []
        for rel in self.read_relationships(sheet_part).values():
            if rel.type.endswith(DRAWING_REL) and not rel.external:
                objects.extend(self._parse_drawing(rel.target))

        logger.debug("Sheet %r has %d drawing objects", self.sheet_name, len(objects))
        return objects

    def _parse_drawing(self, drawing_path: str) -> list[DrawingObject]:
        """Parse one ``xl/drawings/drawingN.xml`` part."""
        root = self.parse_xml(drawing_path)
        if root is None:
            return []

        relationships = self.read_relationships(drawing_path)
        objects = []
        for anchor in root:
            if not isinstance(anchor.tag, str):
                continue
            anchor_type = etree.QName(anchor).localname
            if anchor_type not in _ANCHOR_TAGS:
                continue
            if anchor_type == "absoluteAnchor":
                logger.debug("Skipping absolute anchor in %s", drawing_path)
                continue
            try:
                obj = self._parse_anchor(anchor, anchor_type, relationships)
            except (ValueError, TypeError) as e:
                logger.warning("Skipping malformed anchor in %s: %s", drawing_path, e)
                continue
            if obj is not None:
                objects.append(obj)
        return objects

    def _parse_anchor(
        self,
        anchor: etree._Element,
        anchor_type: str,
        relationships: dict[str, Relationship],
    ) -> DrawingObject | None:
        """Parse a two-cell or one-cell anchor element."""
        start = _read_marker(anchor.find("xdr:from", NAMESPACES))
        if start is None:
            return None

        if anchor_type == "twoCellAnchor":
            end = _read_marker(anchor.find("xdr:to", NAMESPACES)) or start
        else:
            ext = anchor.find("xdr:ext", NAMESPACES)
            cx = int(ext.get("cx", 0)) if ext is not None else 0
            cy = int(ext.get("cy", 0)) if ext is not None else 0
            end = locate_extent(self.metrics, start, cx, cy)

        content = _content_element(anchor)
        if content is None:
            return None

        kind = _kind_of(content)
        c_nv_pr = content.find(".//xdr:cNvPr", NAMESPACES)
        name = c_nv_pr.get("name") if c_nv_pr is not None else None
        description = c_nv_pr.get("descr") if c_nv_pr is not None else None

        obj = DrawingObject(
            kind=kind,
            name=name or kind.value,
            start=start,
            end=end,
            description=description or None,
            hyperlink=_read_hyperlink(c_nv_pr, relationships),
            anchor_type=anchor_type,
        )

        if kind is DrawingKind.PICTURE:
            self._attach_image(obj, content, relationships)
        elif kind in (DrawingKind.SHAPE, DrawingKind.TEXT_BOX, DrawingKind.OTHER):
            obj.text = _read_text(content)
            obj.style = _read_style(content)
        elif kind is DrawingKind.TABLE:
            obj.text = _read_table_text(content)

        return obj

    def _attach_image(
        self,
        obj: DrawingObject,
        pic: etree._Element,
        relationships: dict[str, Relationship],
    ) -> None:
        blip = pic.find(".//a:blip", NAMESPACES)
        if blip is None:
            return
        rel = relationships.get(blip.get(_R_EMBED))
        if rel is None or rel.external:
            return
        obj.media_name = posixpath.basename(rel.target)
        obj.image_data = self.read_xml_from_xlsx(rel.target)


def _read_marker(marker: etree._Element | None) -> AnchorPoint | None:
    """Convert an ``xdr:from``/``xdr:to`` marker (0-based) to an AnchorPoint."""
    if marker is None:
        return None

    def value(tag: str) -> int:
        element = marker.find(f"xdr:{tag}", NAMESPACES)
        return int(element.text) if element is not None and element.text else 0

    return AnchorPoint(
        row=value("row") + 1,
        column=value("col") + 1,
        row_offset=value("rowOff"),
        column_offset=value("colOff"),
    )


def _content_element(anchor: etree._Element) -> etree._Element | None:
    """The shape/picture/frame child of an anchor, unwrapping AlternateContent."""
    for child in anchor:
        if not isinstance(child.tag, str):
            continue
        local = etree.QName(child).localname
        if local in _NON_CONTENT_TAGS:
            continue
        if local == "AlternateContent":
            for branch in child:
                for inner in branch:
                    if isinstance(inner.tag, str):
                        return inner
            continue
        return child
    return None


def _kind_of(content: etree._Element) -> DrawingKind:
    local = etree.QName(content).localname
    if local == "sp":
        c_nv_sp_pr = content.find(".//xdr:cNvSpPr", NAMESPACES)
        if c_nv_sp_pr is not None and c_nv_sp_pr.get("txBox") in ("1", "true"):
            return DrawingKind.TEXT_BOX
        return DrawingKind.SHAPE
    if local == "cxnSp":
        return DrawingKind.SHAPE
    if local == "pic":
        return DrawingKind.PICTURE
    if local == "graphicFrame":
        graphic_data = content.find(".//a:graphicData", NAMESPACES)
        uri = graphic_data.get("uri", "") if graphic_data is not None else ""
        if uri.endswith("/chart") or "chart" in uri.lower():
            return DrawingKind.CHART
        if uri.endswith("/table"):
            return DrawingKind.TABLE
    return DrawingKind.OTHER


def _read_text(content: etree._Element) -> str | None:
    """Paragraph text of every ``txBody`` under the element, one line per paragraph."""
    lines = []
    for body in content.iterfind(".//xdr:txBody", NAMESPACES):
        for paragraph in body.iterfind("a:p", NAMESPACES):
            lines.append("".join(t.text or "" for t in paragraph.iterfind(".//a:t", NAMESPACES)))
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) if lines else None


def _read_table_text(content: etree._Element) -> str | None:
    """Rows of a DrawingML table, one line per row with tab-separated cells."""
    lines = []
    for row in content.iterfind(".//a:tbl/a:tr", NAMESPACES):
        cells = []
        for cell in row.iterfind("a:tc", NAMESPACES):
            cells.append(" ".join(t.text or "" for t in cell.iterfind(".//a:t", NAMESPACES)))
        lines.append("\t".join(cells))
    return "\n".join(lines) if lines else None


def _color_of(parent: etree._Element | None) -> str | None:
    if parent is None:
        return None
    srgb = parent.find("a:solidFill/a:srgbClr", NAMESPACES)
    if srgb is not None:
        return f"#{srgb.get('val', '').upper()}"
    scheme = parent.find("a:solidFill/a:schemeClr", NAMESPACES)
    if scheme is not None:
        return f"scheme:{scheme.get('val')}"
    return None


def _read_style(content: etree._Element) -> str | None:
    """Fill and line colors of a shape as "Fill: #RRGGBB; Line: #RRGGBB"."""
    sp_pr = content.find("xdr:spPr", NAMESPACES)
    parts = []
    fill = _color_of(sp_pr)
    if fill:
        parts.append(f"Fill: {fill}")
    line = _color_of(sp_pr.find("a:ln", NAMESPACES) if sp_pr is not None else None)
    if line:
        parts.append(f"Line: {line}")
    return "; ".join(parts) if parts else None


def _read_hyperlink(
    c_nv_pr: etree._Element | None,
    relationships: dict[str, Relationship],
) -> str | None:
    if c_nv_pr is None:
        return None
    click = c_nv_pr.find("a:hlinkClick", NAMESPACES)
    if click is None:
        return None
    rel = relationships.get(click.get(_R_ID))
    return rel.target if rel else None
