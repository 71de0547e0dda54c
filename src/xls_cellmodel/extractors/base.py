"""Base extractor for parts openpyxl does not expose."""

from __future__ import annotations

import logging
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any
from zipfile import BadZipFile, ZipFile

from lxml import etree

logger = logging.getLogger(__name__)

NAMESPACES = {
    "main": "http://schemas.openxmlformats.org/spreadsheetml/2006/main",
    "xdr": "http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
    "xlrd": "http://schemas.microsoft.com/office/spreadsheetml/2017/richdata",
}

OFFICE_DOCUMENT_REL = "/officeDocument"
DRAWING_REL = "/drawing"
IMAGE_REL = "/image"
HYPERLINK_REL = "/hyperlink"


@dataclass
class Relationship:
    """One entry of a ``.rels`` part, with its target resolved to a package path."""

    id: str
    type: str
    target: str
    external: bool = False


class BaseExtractor(ABC):
    """Base class for extractors that read XML parts straight from the archive."""

    name: str = "base"

    def __init__(self, archive: ZipFile, sheet_name: str):
        """Initialize extractor.

        Args:
            archive: The open xlsx package
            sheet_name: Name of the worksheet being walked
        """
        self.archive = archive
        self.sheet_name = sheet_name

    @abstractmethod
    def extract(self) -> Any:
        """Extract data for the worksheet.

        Returns:
            Extracted data (type depends on extractor)
        """

    def read_xml_from_xlsx(self, internal_path: str) -> bytes | None:
        """Read a file from inside the xlsx archive.

        Args:
            internal_path: Path inside the xlsx (e.g., 'xl/workbook.xml')

        Returns:
            File content as bytes, or None if not found
        """
        try:
            return self.archive.read(internal_path)
        except KeyError:
            return None
        except BadZipFile as e:
            logger.warning("Corrupt archive member %s: %s", internal_path, e)
            return None

    def parse_xml(self, internal_path: str) -> etree._Element | None:
        """Parse an XML part, or return None if it is missing."""
        content = self.read_xml_from_xlsx(internal_path)
        if content is None:
            return None
        return etree.fromstring(content)

    def read_relationships(self, part_path: str) -> dict[str, Relationship]:
        """Read the relationships of a part, keyed by relationship id.

        Args:
            part_path: Package path of the source part (e.g., 'xl/workbook.xml')

        Returns:
            Mapping of rId to Relationship with targets resolved against
            the source part's directory.
        """
        directory, file_name = posixpath.split(part_path)
        rels_path = posixpath.join(directory, "_rels", f"{file_name}.rels")
        root = self.parse_xml(rels_path)
        if root is None:
            return {}

        relationships = {}
        for rel in root.findall("rel:Relationship", NAMESPACES):
            target = rel.get("Target", "")
            external = rel.get("TargetMode") == "External"
            if not external:
                target = resolve_part_path(directory, target)
            relationships[rel.get("Id")] = Relationship(
                id=rel.get("Id"),
                type=rel.get("Type", ""),
                target=target,
                external=external,
            )
        return relationships

    def workbook_part(self) -> str:
        """Package path of the workbook part."""
        for rel in self.read_relationships("").values():
            if rel.type.endswith(OFFICE_DOCUMENT_REL):
                return rel.target
        return "xl/workbook.xml"

    def worksheet_part(self) -> str | None:
        """Package path of the worksheet named ``self.sheet_name``."""
        workbook_path = self.workbook_part()
        root = self.parse_xml(workbook_path)
        if root is None:
            return None

        relationships = self.read_relationships(workbook_path)
        for sheet in root.iterfind(".//main:sheets/main:sheet", NAMESPACES):
            if sheet.get("name") != self.sheet_name:
                continue
            rel = relationships.get(sheet.get(f"{{{NAMESPACES['r']}}}id"))
            return rel.target if rel else None
        return None


def resolve_part_path(directory: str, target: str) -> str:
    """Resolve a relationship target against the source part's directory."""
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join(directory, target))
