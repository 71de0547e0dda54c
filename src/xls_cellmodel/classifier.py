"""Cell content classification."""

from __future__ import annotations

import logging
from typing import Callable

from .indexes import DrawingIndex
from .models import CellContentType

logger = logging.getLogger(__name__)


def classify(has_text: bool, has_image: bool) -> CellContentType:
    """Map the two content flags to a content type."""
    if has_text and has_image:
        return CellContentType.MIXED
    if has_text:
        return CellContentType.TEXT_ONLY
    if has_image:
        return CellContentType.IMAGE_ONLY
    return CellContentType.EMPTY


class ContentClassifier:
    """Decides whether a cell is empty, text-only, image-only or mixed.

    A cell has text when its display text or formula is non-empty. It has an
    image when a picture is placed in the cell or a picture is anchored at
    the cell's position.
    """

    def __init__(
        self,
        drawing_index: DrawingIndex,
        in_cell_lookup: Callable[[int, int], bool] | None = None,
    ):
        self.drawing_index = drawing_index
        self.in_cell_lookup = in_cell_lookup

    def classify(
        self,
        row: int,
        column: int,
        text: str | None,
        formula: str | None,
    ) -> CellContentType:
        """Classify the cell at (row, column) from its display text and formula.

        Failures reading the text or formula belong to the caller, which
        emits a fallback record for the cell. A failed picture lookup here
        is treated as MIXED so that no content is dropped.
        """
        has_text = bool(text) or bool(formula)
        try:
            has_in_cell = bool(self.in_cell_lookup and self.in_cell_lookup(row, column))
            has_image = has_in_cell or self.drawing_index.has_pictures_at(row, column)
        except Exception as e:
            logger.debug("Picture lookup failed at R%sC%s, assuming mixed: %s", row, column, e)
            return CellContentType.MIXED
        return classify(has_text, has_image)
