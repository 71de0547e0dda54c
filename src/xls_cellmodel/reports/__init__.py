"""Report generation for extracted worksheet grids."""

from .json_builder import JSONReportBuilder, grid_to_dict
from .markdown_builder import MarkdownReportBuilder

__all__ = ["JSONReportBuilder", "MarkdownReportBuilder", "grid_to_dict"]
