"""File type detection from magic bytes.

Magic bytes reference:
- PDF:  %PDF
- JPEG: 0xFFD8FF
- PNG:  0x89 P N G
"""

import mimetypes
from typing import Final

MAGIC_BYTES_MAP: Final[dict[bytes, tuple[str, str]]] = {
    b"%PDF": ("pdf", "application/pdf"),
    b"\xff\xd8\xff": ("jpeg", "image/jpeg"),
    b"\x89PNG": ("png", "image/png"),
}

RASTER_MIME_TYPES: Final[frozenset[str]] = frozenset(
    {"image/jpeg", "image/jpg", "image/png"}
)
PASSTHROUGH_MIME_TYPES: Final[frozenset[str]] = frozenset({"application/pdf"})
ACCEPTED_MIME_TYPES: Final[frozenset[str]] = RASTER_MIME_TYPES | PASSTHROUGH_MIME_TYPES


def detect_file_type(header: bytes) -> tuple[str, str] | None:
    """Return ``(file_type, mime_type)`` for a known signature, else None.

    Example:
        >>> detect_file_type(b"%PDF-1.4")
        ('pdf', 'application/pdf')
    """
    for signature, result in MAGIC_BYTES_MAP.items():
        if header.startswith(signature):
            return result
    return None


def guess_mime_type(data: bytes, filename: str = "") -> str:
    """Prefer the magic-byte signature, fall back to the file extension."""
    detected = detect_file_type(data[:8])
    if detected is not None:
        return detected[1]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def format_for_mime(mime_type: str) -> str:
    """Short format name used on CompressionResult, e.g. ``image/png`` -> ``png``."""
    subtype = mime_type.split("/")[-1].lower()
    return "jpeg" if subtype == "jpg" else subtype
