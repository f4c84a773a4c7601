"""Content sniffing, allow-list validation and data URL encoding."""

from __future__ import annotations

import base64
import re

from .exceptions import UnsupportedMediaTypeError


# see https://developer.mozilla.org/en-US/docs/Web/Media/Formats/Image_types
COMMON_WEB_IMAGES: frozenset[str] = frozenset(
    {
        "image/apng",
        "image/avif",
        "image/gif",
        "image/jpeg",
        "image/png",
        "image/svg+xml",
        "image/webp",
    }
)

DATA_URL_PREFIX = "data:"
OCTET_STREAM = "application/octet-stream"

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_AVIF_BRANDS = (b"avif", b"avis")

# Simple prefix signatures, checked in order after the structured formats.
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
)

_SNIFF_LIMIT = 4096
_SVG_PROLOGUE = re.compile(
    rb"""\A(?:\s|<\?xml[^>]*\?>|<!--.*?-->|<!DOCTYPE[^>\[]*(?:\[[^\]]*\])?\s*>)*<svg[\s>/]""",
    re.IGNORECASE | re.DOTALL,
)


def _is_apng(data: bytes) -> bool:
    """Return True when an animation control chunk precedes the image data."""
    offset = len(_PNG_SIGNATURE)
    while offset + 8 <= len(data):
        length = int.from_bytes(data[offset : offset + 4], "big")
        chunk_type = data[offset + 4 : offset + 8]
        if chunk_type == b"acTL":
            return True
        if chunk_type == b"IDAT":
            return False
        offset += 12 + length
    return False


def _is_avif(data: bytes) -> bool:
    if data[4:8] != b"ftyp":
        return False
    if data[8:12] in _AVIF_BRANDS:
        return True
    box_size = min(int.from_bytes(data[0:4], "big"), len(data))
    return any(data[index : index + 4] in _AVIF_BRANDS for index in range(16, box_size - 3, 4))


def _is_svg(data: bytes) -> bool:
    head = data[:_SNIFF_LIMIT]
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:]
    return _SVG_PROLOGUE.match(head) is not None


def _is_text(data: bytes) -> bool:
    head = data[:_SNIFF_LIMIT]
    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError:
        # A multi-byte sequence cut at the sniffing limit is still text.
        if len(data) <= _SNIFF_LIMIT:
            return False
        text = head.decode("utf-8", errors="ignore")
    return not any(ord(char) < 32 and char not in "\t\n\r\f" for char in text)


def detect_media_type(data: bytes) -> str:
    """Return the MIME type of ``data`` based on its content only."""
    if data.startswith(_PNG_SIGNATURE):
        return "image/apng" if _is_apng(data) else "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if _is_avif(data):
        return "image/avif"
    for signature, media_type in _SIGNATURES:
        if data.startswith(signature):
            return media_type
    if _is_svg(data):
        return "image/svg+xml"
    if data and _is_text(data):
        return "text/plain"
    return OCTET_STREAM


def ensure_embeddable(data: bytes) -> str:
    """Return the media type of ``data`` or raise when it cannot be inlined."""
    media_type = detect_media_type(data)
    if media_type not in COMMON_WEB_IMAGES:
        raise UnsupportedMediaTypeError(media_type)
    return media_type


def to_data_url(data: bytes, media_type: str) -> str:
    """Encode ``data`` as a ``data:<type>;base64,<payload>`` literal."""
    payload = base64.b64encode(data).decode("ascii")
    return f"{DATA_URL_PREFIX}{media_type};base64,{payload}"


def is_data_url(source: str) -> bool:
    """Return True when the source is already an inline data URL."""
    return source.startswith(DATA_URL_PREFIX)


__all__ = [
    "COMMON_WEB_IMAGES",
    "DATA_URL_PREFIX",
    "OCTET_STREAM",
    "detect_media_type",
    "ensure_embeddable",
    "is_data_url",
    "to_data_url",
]
