# Overview: Product photo helpers; renders stored images as data URIs.

"""
Photo normalization.

Photos reach the API in several shapes: data URIs typed in by the UI, raw
bytes from the blob column, or bare base64 strings from older imports. The UI
can only display a data URI, so everything is rendered as
``data:<mime>;base64,<payload>`` with the MIME type sniffed from magic bytes
(or from the base64 prefix of those bytes).

Payloads that are already base64 are never re-encoded.
"""

from __future__ import annotations

import base64
import binascii
import re

from ..validation import ValidationError

DEFAULT_MIME = "image/jpeg"

_WHITESPACE = re.compile(r"\s")

_BASE64_PREFIXES = (
    ("/9j/", "image/jpeg"),
    ("iVBORw0KGgo", "image/png"),
    ("R0lGOD", "image/gif"),
    ("UklGR", "image/webp"),
)


def sniff_bytes_mime(data: bytes) -> str:
    """Detect the image MIME type from leading magic bytes."""
    if len(data) >= 8:
        if data[:4] == b"\x89PNG":
            return "image/png"
        if data[:2] == b"\xff\xd8":
            return "image/jpeg"
        if data[:3] == b"GIF":
            return "image/gif"
        if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
            return "image/webp"
    return DEFAULT_MIME


def sniff_base64_mime(payload: str) -> str:
    for prefix, mime in _BASE64_PREFIXES:
        if payload.startswith(prefix):
            return mime
    return DEFAULT_MIME


def normalize_photo(value) -> str | None:
    """
    Render a stored photo as a displayable data URI.

    Returns None when there is no photo.
    """
    if value is None:
        return None

    if isinstance(value, memoryview):
        value = value.tobytes()

    if isinstance(value, (bytes, bytearray)):
        if not value:
            return None
        data = bytes(value)
        mime = sniff_bytes_mime(data)
        payload = base64.b64encode(data).decode("ascii")
        return f"data:{mime};base64,{payload}"

    text = str(value).strip()
    if not text:
        return None
    if text.startswith("data:image/"):
        return text

    payload = _WHITESPACE.sub("", text)
    return f"data:{sniff_base64_mime(payload)};base64,{payload}"


def decode_photo_upload(value) -> bytes | None:
    """
    Convert an inbound JSON photo into bytes for the blob column.

    Accepts a data URI or a bare base64 string; null/empty clears the photo.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("photo must be a base64 string or data URI")

    text = value.strip()
    if not text:
        return None

    if text.startswith("data:"):
        header, sep, text = text.partition(",")
        if not sep or ";base64" not in header:
            raise ValidationError("photo data URI must be base64 encoded")

    payload = _WHITESPACE.sub("", text)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("photo is not valid base64")
