"""Image helpers for building multimodal LLM messages."""

from __future__ import annotations

import base64
import binascii


def detect_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes.

    PNG starts with 89 50 4E 47 0D 0A 1A 0A, WEBP with RIFF....WEBP and
    JPEG with FF D8.  Anything else is assumed to be JPEG, the usual format
    of phone photos of answer sheets.
    """
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:2] == b"\xff\xd8":
        return "image/jpeg"
    return "image/jpeg"


def to_data_uri(image_base64: str) -> str:
    """Wrap a base64 payload in a ``data:`` URI (returned as-is if already one)."""
    if image_base64.startswith("data:"):
        return image_base64
    # 16 base64 chars decode to the 12 bytes the magic check needs.
    try:
        head = base64.b64decode(image_base64[:16], validate=False)
    except (binascii.Error, ValueError):
        head = b""
    return f"data:{detect_media_type(head)};base64,{image_base64}"
