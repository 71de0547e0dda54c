"""In-cell pictures ("Place in Cell" images).

A picture placed in a cell is stored as a rich value: the cell carries a
``vm`` (value metadata) index, ``xl/metadata.xml`` maps that index to a rich
value, ``xl/richData/rdrichvalue.xml`` holds the rich value whose
``_rvRel:LocalImageIdentifier`` key points into
``xl/richData/richValueRel.xml``, whose relationships finally name the media
file. openpyxl drops all of this and reports the cell as ``#VALUE!``.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from io import BytesIO

from lxml import etree
from openpyxl.utils.cell import coordinate_to_tuple

from .base import NAMESPACES, BaseExtractor

logger = logging.getLogger(__name__)

RICH_VALUE_TYPE = "XLRICHVALUE"
LOCAL_IMAGE_KEY = "_rvRel:LocalImageIdentifier"
ALT_TEXT_KEY = "Text"

_DEFAULT_PARTS = {
    "sheetMetadata": "xl/metadata.xml",
    "rdRichValue": "xl/richData/rdrichvalue.xml",
    "rdRichValueStructure": "xl/richData/rdrichvaluestructure.xml",
    "richValueRel": "xl/richData/richValueRel.xml",
}


@dataclass
class InCellPicture:
    """A picture stored in a cell's value slot."""

    row: int
    column: int
    image_data: bytes | None
    media_name: str | None = None
    alt_text: str | None = None


@dataclass
class _RichValue:
    image_index: int | None
    alt_text: str | None


def _by_local_name(root: etree._Element, name: str) -> list[etree._Element]:
    return root.xpath(f"//*[local-name()='{name}']")


class InCellPictureExtractor(BaseExtractor):
    """Maps (row, column) to the picture placed in that cell."""

    name = "in_cell_pictures"

    def extract(self) -> dict[tuple[int, int], InCellPicture]:
        """Extract in-cell pictures of the worksheet.

        Returns:
            Dict keyed by 1-based (row, column)
        """
        parts = self._rich_data_parts()
        value_metadata = self._value_metadata(parts["sheetMetadata"])
        if not value_metadata:
            return {}

        sheet_part = self.worksheet_part()
        if sheet_part is None:
            return {}

        rich_values = self._rich_values(parts["rdRichValue"], parts["rdRichValueStructure"])
        image_targets = self._image_targets(parts["richValueRel"])

        pictures = {}
        for row, column, vm in self._cells_with_value_metadata(sheet_part):
            if not 0 < vm <= len(value_metadata):
                continue
            rv_index = value_metadata[vm - 1]
            if rv_index is None or rv_index >= len(rich_values):
                continue
            rich_value = rich_values[rv_index]
            if rich_value.image_index is None or rich_value.image_index >= len(image_targets):
                continue
            target = image_targets[rich_value.image_index]
            pictures[(row, column)] = InCellPicture(
                row=row,
                column=column,
                image_data=self.read_xml_from_xlsx(target) if target else None,
                media_name=posixpath.basename(target) if target else None,
                alt_text=rich_value.alt_text,
            )

        logger.debug("Sheet %r has %d in-cell pictures", self.sheet_name, len(pictures))
        return pictures

    def _rich_data_parts(self) -> dict[str, str]:
        """Locate metadata and rich data parts through the workbook relationships."""
        parts = dict(_DEFAULT_PARTS)
        for rel in self.read_relationships(self.workbook_part()).values():
            rel_kind = rel.type.rsplit("/", 1)[-1]
            for key in parts:
                if rel_kind.lower() == key.lower():
                    parts[key] = rel.target
        return parts

    def _value_metadata(self, metadata_path: str) -> list[int | None]:
        """Rich value index for each value-metadata block (vm is 1-based)."""
        root = self.parse_xml(metadata_path)
        if root is None:
            return []

        type_names = [t.get("name") for t in root.iterfind("main:metadataTypes/main:metadataType", NAMESPACES)]

        future_indexes: list[int | None] = []
        for future in root.iterfind("main:futureMetadata", NAMESPACES):
            if future.get("name") != RICH_VALUE_TYPE:
                continue
            for block in future.iterfind("main:bk", NAMESPACES):
                rvb = block.find(".//xlrd:rvb", NAMESPACES)
                future_indexes.append(int(rvb.get("i")) if rvb is not None else None)

        result: list[int | None] = []
        for block in root.iterfind("main:valueMetadata/main:bk", NAMESPACES):
            rc = block.find("main:rc", NAMESPACES)
            rv_index = None
            if rc is not None:
                type_index = int(rc.get("t", 0)) - 1
                value_index = int(rc.get("v", 0))
                if (
                    0 <= type_index < len(type_names)
                    and type_names[type_index] == RICH_VALUE_TYPE
                    and value_index < len(future_indexes)
                ):
                    rv_index = future_indexes[value_index]
            result.append(rv_index)
        return result

    def _rich_values(self, values_path: str, structures_path: str) -> list[_RichValue]:
        structures_root = self.parse_xml(structures_path)
        values_root = self.parse_xml(values_path)
        if structures_root is None or values_root is None:
            return []

        structures = [
            [k.get("n") for k in _children(s, "k")]
            for s in _by_local_name(structures_root, "s")
        ]

        values = []
        for rv in _by_local_name(values_root, "rv"):
            s_index = int(rv.get("s", 0))
            keys = structures[s_index] if s_index < len(structures) else []
            fields = [v.text for v in _children(rv, "v")]
            record = dict(zip(keys, fields))
            image_index = record.get(LOCAL_IMAGE_KEY)
            values.append(_RichValue(
                image_index=int(image_index) if image_index not in (None, "") else None,
                alt_text=record.get(ALT_TEXT_KEY) or None,
            ))
        return values

    def _image_targets(self, rel_part_path: str) -> list[str | None]:
        root = self.parse_xml(rel_part_path)
        if root is None:
            return []
        relationships = self.read_relationships(rel_part_path)
        targets = []
        for rel in _by_local_name(root, "rel"):
            rel_id = rel.get(f"{{{NAMESPACES['r']}}}id")
            target = relationships.get(rel_id)
            targets.append(target.target if target is not None and not target.external else None)
        return targets

    def _cells_with_value_metadata(self, sheet_part: str):
        """Yield (row, column, vm) for every cell carrying a ``vm`` attribute."""
        content = self.read_xml_from_xlsx(sheet_part)
        if content is None:
            return
        for _, element in etree.iterparse(BytesIO(content), tag=f"{{{NAMESPACES['main']}}}c"):
            vm = element.get("vm")
            ref = element.get("r")
            if vm is not None and ref:
                row, column = coordinate_to_tuple(ref)
                yield row, column, int(vm)
            element.clear()


def _children(element: etree._Element, local_name: str) -> list[etree._Element]:
    return [
        child for child in element
        if isinstance(child.tag, str) and etree.QName(child).localname == local_name
    ]
