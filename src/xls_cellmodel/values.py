"""Cell values: data type, display text, formula, rich text, comment, hyperlink."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from urllib.parse import urlparse

from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.styles.numbers import is_date_format
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula

from .colors import ColorCache, ColorResolver
from .models import CommentInfo, DataType, FontInfo, HyperlinkInfo, RichTextRun

logger = logging.getLogger(__name__)

GENERAL_FORMAT = "General"

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_DATE_TOKEN_RE = re.compile(
    r"yyyy|yy|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|AM/PM|A/P|\.0+|\"[^\"]*\"|\\.|.",
    re.IGNORECASE,
)
_ELAPSED_RE = re.compile(r"\[(h+|m+|s+)\]", re.IGNORECASE)
_NUMBER_CORE_RE = re.compile(r"[#0?,]*\.?[#0?]*%?")
_LITERAL_RE = re.compile(r"\[[^\]]*\]|_.|\*.|\\|\"")


# =============================================================================
# Data type and raw value
# =============================================================================


def data_type_of(value: Any, has_image: bool = False) -> DataType:
    """Data type of a cell value.

    A cell without a value reports IMAGE when it holds a picture and EMPTY
    otherwise. ``bool`` is checked before ``int`` since it subclasses it.
    """
    if value is None:
        return DataType.IMAGE if has_image else DataType.EMPTY
    if isinstance(value, (datetime, date, time, timedelta)):
        return DataType.DATETIME
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if isinstance(value, int):
        return DataType.INTEGER
    if isinstance(value, (float, Decimal)):
        return DataType.NUMBER
    return DataType.TEXT


def plain_value(value: Any) -> Any:
    """Value with rich text flattened to a plain string."""
    if isinstance(value, CellRichText):
        return str(value)
    return value


def formula_text(cell: Any) -> str | None:
    """Formula of a cell without the leading '=', or None.

    Array formulas report the formula of their anchor cell. Data table
    formulas have no text and report None.
    """
    value = cell.value
    if isinstance(value, ArrayFormula):
        text = value.text or ""
    elif isinstance(value, DataTableFormula):
        return None
    elif cell.data_type == "f" and isinstance(value, str):
        text = value
    else:
        return None
    text = text[1:] if text.startswith("=") else text
    return text or None


# =============================================================================
# Display text
# =============================================================================


def display_text(value: Any, number_format: str | None = None) -> str:
    """Text a spreadsheet application would show for a value.

    Covers General, fixed decimals, thousands separators, percentages and
    the common date/time codes. Anything else falls back to General.

    Example:
        >>> display_text(1234.5, "#,##0.00")
        '1,234.50'
        >>> display_text(0.125, "0.0%")
        '12.5%'
    """
    if value is None:
        return ""
    if isinstance(value, CellRichText):
        return str(value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, str):
        return value

    fmt = _first_section(number_format or GENERAL_FORMAT)

    if isinstance(value, (datetime, date, time)):
        if fmt != GENERAL_FORMAT and is_date_format(fmt):
            return format_datetime(value, fmt)
        return _default_datetime_text(value)
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, (int, float, Decimal)):
        return format_number(float(value), fmt)
    return str(value)


def _first_section(number_format: str) -> str:
    # TODO: honour the negative and zero sections of multi-section formats
    return number_format.split(";", 1)[0] or GENERAL_FORMAT


def _default_datetime_text(value: date | time) -> str:
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return value.strftime("%H:%M:%S")


def format_general(value: float) -> str:
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return f"{value:.10g}"


def format_number(value: float, fmt: str) -> str:
    """Format a number with a (single-section) number format code."""
    if fmt.strip().lower() == "general" or fmt == "@":
        return format_general(value)

    cleaned = _LITERAL_RE.sub("", fmt)
    match = next((m for m in _NUMBER_CORE_RE.finditer(cleaned) if m.group(0).strip(",")), None)
    if match is None:
        return format_general(value)

    core = match.group(0)
    prefix, suffix = cleaned[:match.start()], cleaned[match.end():]
    percent = core.endswith("%")
    if percent:
        core = core[:-1]
        value *= 100

    decimals = len(core.split(".", 1)[1]) if "." in core else 0
    grouping = "," in core.split(".", 1)[0]
    body = f"{abs(value):{',' if grouping else ''}.{decimals}f}"
    sign = "-" if value < 0 and float(body.replace(",", "")) != 0 else ""
    return f"{sign}{prefix}{body}{'%' if percent else ''}{suffix}"


def format_datetime(value: date | time, fmt: str) -> str:
    """Render a date/time with a spreadsheet date format code."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        moment = datetime(1900, 1, 1, value.hour, value.minute, value.second, value.microsecond)

    # Elapsed-time codes keep their unit, colors and locales are dropped
    fmt = _ELAPSED_RE.sub(r"\1", fmt)
    fmt = re.sub(r"\[[^\]]*\]", "", fmt)
    tokens = _DATE_TOKEN_RE.findall(fmt)
    twelve_hour = any(t.upper() in ("AM/PM", "A/P") for t in tokens)

    out = []
    for i, token in enumerate(tokens):
        lower = token.lower()
        if lower in ("m", "mm") and _is_minute(tokens, i):
            out.append(f"{moment.minute:02d}" if lower == "mm" else str(moment.minute))
        elif lower == "yyyy":
            out.append(f"{moment.year:04d}")
        elif lower == "yy":
            out.append(f"{moment.year % 100:02d}")
        elif lower == "mmmmm":
            out.append(_MONTHS[moment.month - 1][0])
        elif lower == "mmmm":
            out.append(_MONTHS[moment.month - 1])
        elif lower == "mmm":
            out.append(_MONTHS[moment.month - 1][:3])
        elif lower == "mm":
            out.append(f"{moment.month:02d}")
        elif lower == "m":
            out.append(str(moment.month))
        elif lower == "dddd":
            out.append(_DAYS[moment.weekday()])
        elif lower == "ddd":
            out.append(_DAYS[moment.weekday()][:3])
        elif lower == "dd":
            out.append(f"{moment.day:02d}")
        elif lower == "d":
            out.append(str(moment.day))
        elif lower in ("hh", "h"):
            hour = (moment.hour % 12 or 12) if twelve_hour else moment.hour
            out.append(f"{hour:02d}" if lower == "hh" else str(hour))
        elif lower == "ss":
            out.append(f"{moment.second:02d}")
        elif lower == "s":
            out.append(str(moment.second))
        elif lower == "am/pm":
            out.append("AM" if moment.hour < 12 else "PM")
        elif lower == "a/p":
            out.append("A" if moment.hour < 12 else "P")
        elif token.startswith(".") and set(token[1:]) == {"0"}:
            digits = len(token) - 1
            out.append("." + f"{moment.microsecond:06d}"[:digits])
        elif token.startswith('"'):
            out.append(token[1:-1])
        elif token.startswith("\\"):
            out.append(token[1:])
        else:
            out.append(token)
    return "".join(out)


def _is_minute(tokens: list[str], index: int) -> bool:
    """'m'/'mm' means minutes right after an hour or right before seconds."""
    for j in range(index - 1, -1, -1):
        lower = tokens[j].lower()
        if lower in ("h", "hh"):
            return True
        if lower.strip(" :./-"):
            break
    for j in range(index + 1, len(tokens)):
        lower = tokens[j].lower()
        if lower in ("s", "ss"):
            return True
        if lower.strip(" :./-"):
            break
    return False


# =============================================================================
# Rich text, comments, hyperlinks
# =============================================================================


def rich_text_runs(
    value: Any,
    cell_font: FontInfo,
    resolver: ColorResolver,
    cache: ColorCache | None = None,
) -> list[RichTextRun] | None:
    """Runs of a rich text value, or None for plain values.

    The first run inherits size, font name, bold and italic from the cell
    font when it does not set them itself.
    """
    if not isinstance(value, CellRichText) or not len(value):
        return None

    runs = []
    for i, block in enumerate(value):
        if isinstance(block, TextBlock):
            font = block.font
            color = resolver.resolve(font.color, cache) if font.color is not None else None
            run = RichTextRun(
                text=block.text,
                bold=bool(font.b) if font.b is not None else None,
                italic=bool(font.i) if font.i is not None else None,
                underline=bool(font.u) if font.u is not None else None,
                strike=bool(font.strike) if font.strike is not None else None,
                size=float(font.sz) if font.sz is not None else None,
                font_name=font.rFont,
                color=f"#{color}" if color else None,
                vertical_align=font.vertAlign,
            )
        else:
            run = RichTextRun(text=str(block))

        if i == 0:
            if run.size is None:
                run.size = cell_font.size
            if not run.font_name:
                run.font_name = cell_font.name
            if not run.bold and cell_font.bold:
                run.bold = True
            if not run.italic and cell_font.italic:
                run.italic = True
        runs.append(run)
    return runs


def comment_info(comment: Any) -> CommentInfo | None:
    if comment is None:
        return None
    return CommentInfo(
        text=comment.text or "",
        author=comment.author or None,
        width=float(comment.width) if comment.width is not None else None,
        height=float(comment.height) if comment.height is not None else None,
    )


def hyperlink_info(hyperlink: Any) -> HyperlinkInfo | None:
    """Describe a cell hyperlink.

    External links carry a target; links into the workbook only carry a
    location, reported as "#location" in ``original_string``.
    """
    if hyperlink is None:
        return None
    target = hyperlink.target
    location = hyperlink.location
    is_absolute = bool(target and urlparse(target).scheme)
    if target:
        original = target
    elif location:
        original = f"#{location}"
    else:
        original = None
    return HyperlinkInfo(
        absolute_uri=target if is_absolute else None,
        original_string=original,
        is_absolute_uri=is_absolute,
        location=location,
        tooltip=hyperlink.tooltip,
    )
