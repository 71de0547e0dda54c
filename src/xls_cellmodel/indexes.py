"""Build-once lookup structures over one worksheet.

Both indexes are built at the start of a worksheet pass and are read-only
afterwards, so per-cell lookups are O(1) instead of rescanning every merged
range or drawing for every cell.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from openpyxl.worksheet.worksheet import Worksheet

from .extractors.drawings import DrawingObject

logger = logging.getLogger(__name__)

Bounds = tuple[int, int, int, int]  # (min_row, min_col, max_row, max_col)


class MergeIndex:
    """Maps every cell of every merged range to the range address.

    Example:
        >>> index = MergeIndex(worksheet)  # B2:C3 merged
        >>> index.lookup(3, 3)
        'B2:C3'
        >>> index.is_main(2, 2), index.is_main(3, 3)
        (True, False)
    """

    def __init__(self, worksheet: Worksheet):
        self._entries: dict[tuple[int, int], str] = {}
        self._bounds: dict[str, Bounds] = {}

        for merged in worksheet.merged_cells.ranges:
            address = merged.coord
            self._bounds[address] = (merged.min_row, merged.min_col, merged.max_row, merged.max_col)
            for row in range(merged.min_row, merged.max_row + 1):
                for col in range(merged.min_col, merged.max_col + 1):
                    self._entries[(row, col)] = address

        logger.debug("Indexed %d merged ranges (%d cells)", len(self._bounds), len(self._entries))

    def lookup(self, row: int, column: int) -> str | None:
        """Range address containing the cell, or None."""
        return self._entries.get((row, column))

    def bounds(self, address: str) -> Bounds | None:
        return self._bounds.get(address)

    def overlapping(self, min_row: int, min_col: int, max_row: int, max_col: int) -> str | None:
        """First merged range intersecting the rectangle, or None."""
        for address, (r1, c1, r2, c2) in self._bounds.items():
            if r1 <= max_row and min_row <= r2 and c1 <= max_col and min_col <= c2:
                return address
        return None

    def is_main(self, row: int, column: int) -> bool:
        """True if the cell is the top-left cell of its merged range."""
        address = self.lookup(row, column)
        if address is None:
            return False
        min_row, min_col, _, _ = self._bounds[address]
        return row == min_row and column == min_col

    @property
    def merge_count(self) -> int:
        return len(self._bounds)

    @property
    def addresses(self) -> list[str]:
        return list(self._bounds)

    def __contains__(self, key: tuple[int, int]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class DrawingIndex:
    """Buckets drawing objects by the cell of their top-left (*from*) anchor.

    Pictures and non-picture objects are kept in separate buckets. An object
    is stored exactly once, under its *from* cell, never its *to* cell.
    """

    def __init__(self, objects: list[DrawingObject]):
        self._pictures: dict[tuple[int, int], list[DrawingObject]] = defaultdict(list)
        self._shapes: dict[tuple[int, int], list[DrawingObject]] = defaultdict(list)

        for obj in objects:
            key = (obj.start.row, obj.start.column)
            if obj.is_picture:
                self._pictures[key].append(obj)
            else:
                self._shapes[key].append(obj)

        logger.debug(
            "Indexed %d pictures in %d cells, %d other drawing objects",
            self.total_image_count, self.cell_with_image_count, self.total_shape_count,
        )

    def pictures_at(self, row: int, column: int) -> list[DrawingObject]:
        """Pictures whose top-left corner is in the cell, in document order."""
        return self._pictures.get((row, column), [])

    def has_pictures_at(self, row: int, column: int) -> bool:
        return (row, column) in self._pictures

    def shapes_at(self, row: int, column: int) -> list[DrawingObject]:
        """Non-picture objects whose top-left corner is in the cell."""
        return self._shapes.get((row, column), [])

    @property
    def cell_with_image_count(self) -> int:
        return len(self._pictures)

    @property
    def total_image_count(self) -> int:
        return sum(len(bucket) for bucket in self._pictures.values())

    @property
    def total_shape_count(self) -> int:
        return sum(len(bucket) for bucket in self._shapes.values())
