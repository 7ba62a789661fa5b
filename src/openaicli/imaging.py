"""
Image payload helpers: base64 payloads in, PNG bytes out.
"""

import base64
import binascii
import io
import json
import logging
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)

# Modes Pillow can write to PNG as-is; anything else (CMYK, YCbCr...) is converted.
PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


def decode_image_payload(payload: Union[str, bytes]) -> bytes:
    """
    Decode a base64 image payload.

    Accepts the bare ``b64_json`` string returned by the images endpoints and
    the wrapped form ``{"data": "<base64>"}``.
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("ascii")
        except UnicodeDecodeError as e:
            raise ImageDecodeError(f"Image payload is not ASCII base64: {e}") from e
    payload = payload.strip()
    if not payload:
        raise ImageDecodeError("Empty image payload")

    if payload.startswith("{"):
        try:
            wrapped = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ImageDecodeError(f"Invalid image JSON: {e}") from e
        if not isinstance(wrapped, dict) or not isinstance(wrapped.get("data"), str):
            raise ImageDecodeError("Image JSON has no 'data' field")
        payload = wrapped["data"]

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 image data: {e}") from e


def to_png(data: bytes) -> bytes:
    """Re-encode any Pillow-readable image as PNG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            logger.debug(f"Decoded {img.format} image {img.size[0]}x{img.size[1]} ({img.mode})")
            out = img if img.mode in PNG_MODES else img.convert("RGBA")
            buf = io.BytesIO()
            out.save(buf, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return buf.getvalue()


def str_to_image_bytes(payload: Union[str, bytes]) -> bytes:
    return to_png(decode_image_payload(payload))


def image_mime_type(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return Image.MIME.get(fmt, "application/octet-stream")


def image_data_url(path: Union[str, Path]) -> str:
    """Read an image file and inline it as a ``data:`` URL for vision requests."""
    data = Path(path).read_bytes()
    mime = image_mime_type(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"
