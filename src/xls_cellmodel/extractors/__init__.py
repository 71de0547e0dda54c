"""Extractors for worksheet parts read directly from the xlsx package."""

from .base import BaseExtractor, Relationship
from .drawings import DrawingExtractor, DrawingObject
from .in_cell import InCellPicture, InCellPictureExtractor

__all__ = [
    "BaseExtractor",
    "Relationship",
    "DrawingExtractor",
    "DrawingObject",
    "InCellPicture",
    "InCellPictureExtractor",
]
