"""Image format and size detection from raw bytes."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import PurePosixPath

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

PLACEHOLDER_SIZE = (300, 200)
MAX_DIMENSION = 65536

_EXTENSION_TYPES = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".gif": "GIF",
    ".bmp": "BMP",
    ".tiff": "TIFF",
    ".tif": "TIFF",
    ".wmf": "WMF",
    ".emf": "EMF",
    ".webp": "WEBP",
    ".ico": "ICO",
    ".svg": "SVG",
}

_JPEG_SOF_MARKERS = (0xC0, 0xC1, 0xC2)


def image_type_from_name(name: str | None) -> str | None:
    """Image type from a file name extension, or None if unknown."""
    if not name:
        return None
    return _EXTENSION_TYPES.get(PurePosixPath(name).suffix.lower())


def is_emf(data: bytes) -> bool:
    """EMF files carry the " EMF" signature at offset 40."""
    return len(data) >= 44 and data[40:44] == b" EMF"


def detect_image_format(data: bytes | None) -> str | None:
    """Image type from magic bytes, or None if unrecognised."""
    if not data or len(data) < 8:
        return None
    if data[:4] == b"\x89PNG":
        return "PNG"
    if data[:2] == b"\xff\xd8":
        return "JPEG"
    if data[:3] == b"GIF":
        return "GIF"
    if data[:2] == b"BM":
        return "BMP"
    if data[:4] in (b"II*\x00", b"MM\x00*"):
        return "TIFF"
    if is_emf(data):
        return "EMF"
    return None


def _valid(width: int, height: int) -> bool:
    return 0 < width < MAX_DIMENSION and 0 < height < MAX_DIMENSION


def _jpeg_size(data: bytes) -> tuple[int, int] | None:
    pos = 2  # skip SOI
    while pos < len(data) - 8:
        if data[pos] != 0xFF:
            pos += 1
            continue
        marker = data[pos + 1]
        if marker in _JPEG_SOF_MARKERS:
            height = (data[pos + 5] << 8) | data[pos + 6]
            width = (data[pos + 7] << 8) | data[pos + 8]
            if _valid(width, height):
                return width, height
        segment_length = (data[pos + 2] << 8) | data[pos + 3]
        pos += 2 + segment_length
    return None


def sniff_image_size(data: bytes | None) -> tuple[int, int] | None:
    """Read pixel dimensions from PNG, JPEG or GIF headers.

    Returns:
        (width, height), or None when the format is not recognised or the
        header is truncated.
    """
    if not data or len(data) < 24:
        return None
    try:
        if data[:4] == b"\x89PNG":
            width = int.from_bytes(data[16:20], "big")
            height = int.from_bytes(data[20:24], "big")
            return (width, height) if _valid(width, height) else None

        if data[:2] == b"\xff\xd8":
            return _jpeg_size(data)

        if data[:3] == b"GIF":
            width = int.from_bytes(data[6:8], "little")
            height = int.from_bytes(data[8:10], "little")
            return (width, height) if _valid(width, height) else None
    except IndexError as e:
        logger.debug("Truncated image header: %s", e)
    return None


def decoded_image_size(data: bytes | None) -> tuple[int, int] | None:
    """Pixel dimensions as reported by Pillow, or None if it cannot read them.

    Only the header is parsed; pixel data is never decoded.
    """
    if not data:
        return None
    try:
        with Image.open(BytesIO(data)) as image:
            width, height = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.debug("Pillow could not read image header: %s", e)
        return None
    return (width, height) if _valid(width, height) else None


def actual_image_size(data: bytes | None) -> tuple[int, int]:
    """Intrinsic pixel size of an image.

    Pillow is asked first; headers it rejects are sniffed by hand, and the
    placeholder size is used when neither succeeds.
    """
    return decoded_image_size(data) or sniff_image_size(data) or PLACEHOLDER_SIZE
