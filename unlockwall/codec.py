# unlockwall/codec.py
"""Image file -> fixed-size PNG thumbnail as a data URI."""
from __future__ import annotations
import base64
import binascii
import io
from pathlib import Path
from typing import BinaryIO, Union

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, ReadError

DATA_URI_PREFIX = "data:image/png;base64,"
THUMBNAIL_SIZE = 60


def read_image_file(source: Union[str, Path, BinaryIO]) -> bytes:
    """Raw bytes from a path or an open file (e.g. an uploaded form field)."""
    try:
        if hasattr(source, "read"):
            return source.read()
        return Path(source).read_bytes()
    except OSError as e:
        raise ReadError(f"Failed to read file: {e}") from e


def make_thumbnail(data: bytes, size: int = THUMBNAIL_SIZE) -> str:
    """
    Decode `data` and stretch it to size x size regardless of aspect ratio.
    The result is PNG (lossless), base64-encoded into a data URI.
    """
    if not data:
        raise DecodeError("Failed to load image: empty file")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            # keep transparency where the source has it
            mode = "RGBA" if img.mode in ("RGBA", "LA", "P") else "RGB"
            thumb = img.convert(mode).resize((size, size), Image.LANCZOS)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Failed to load image: {e}") from e

    buf = io.BytesIO()
    thumb.save(buf, format="PNG", optimize=True)
    return DATA_URI_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")


def decode_data_uri(uri: str) -> bytes:
    """Inverse of the base64 wrapping in make_thumbnail (any image/* data URI)."""
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:image/") or not header.endswith(";base64"):
        raise DecodeError("not an image data URI")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise DecodeError(f"bad base64 payload: {e}") from e
