"""
Reference-image helpers.

Uploaded images are kept as ``data:<mime>;base64,<payload>`` URLs (the
preview form); the prefix is stripped again before the bytes go to the
model.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"

_DATA_URL_HEADER = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?$")


def detect_mime_type(image_bytes: bytes) -> str:
    """Sniff the image format with Pillow; unknown formats count as PNG."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        logger.debug("Could not identify image format, assuming %s", DEFAULT_MIME_TYPE)
        return DEFAULT_MIME_TYPE
    return Image.MIME.get(fmt or "", DEFAULT_MIME_TYPE)


def to_data_url(image_bytes: bytes, mime_type: Optional[str] = None) -> str:
    mime = mime_type or detect_mime_type(image_bytes)
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime};base64,{b64}"


def read_image_as_data_url(path: Union[str, Path]) -> str:
    """Read an image file into a data URL for preview and transmission."""
    data = Path(path).read_bytes()
    url = to_data_url(data)
    logger.info("Loaded reference image %s (%d bytes)", Path(path).name, len(data))
    return url


def strip_data_url(image_data: str) -> str:
    """Drop a ``data:...,`` header if present and return the base64 payload."""
    if "," in image_data:
        payload = image_data.split(",", 1)[1]
        if payload:
            return payload
    return image_data


def split_data_url(image_data: str) -> Tuple[str, str]:
    """
    Return ``(mime_type, base64_payload)`` for a data URL or a bare
    base64 string.  Bare strings are assumed to be PNG.
    """
    mime = DEFAULT_MIME_TYPE
    if "," in image_data:
        header = image_data.split(",", 1)[0]
        m = _DATA_URL_HEADER.match(header)
        if m and m.group("mime"):
            mime = m.group("mime")
    return mime, strip_data_url(image_data)


def decode_image_payload(image_data: str) -> Tuple[bytes, str]:
    """Decode a data URL / base64 string into ``(bytes, mime_type)``."""
    mime, payload = split_data_url(image_data)
    try:
        raw = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Reference image is not valid base64") from exc
    return raw, mime


def convert_to_png(image_bytes: bytes) -> bytes:
    """Re-encode any image Pillow can read as PNG."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                img = img.convert("RGBA")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Reference image could not be converted to PNG") from exc
    return buf.getvalue()
