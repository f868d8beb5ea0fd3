"""Utility helpers for data-URL encoding and image decoding."""

from __future__ import annotations

import base64
import binascii
import io
import re
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, UnidentifiedImageError

DEFAULT_MIME = "image/png"
NOT_AN_IMAGE_MESSAGE = "이미지 파일만 업로드 가능합니다."

_DATA_URL_PATTERN = re.compile(r"^data:([^;,]*)(?:;[^,]*)?,(.*)$", re.DOTALL)

_FORMAT_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}


def split_data_url(value: str) -> Tuple[str, str]:
    """Return (mime type, base64 payload) for a data URL or bare base64 string."""
    if value.startswith("data:"):
        match = _DATA_URL_PATTERN.match(value)
        if match:
            mime = match.group(1) or DEFAULT_MIME
            return mime, match.group(2)
    return DEFAULT_MIME, value


def to_data_url(data: Union[bytes, str], mime: str = DEFAULT_MIME) -> str:
    """Wrap raw bytes or base64 text in a data URL."""
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"data:{mime or DEFAULT_MIME};base64,{data}"


def is_image_data_url(value: object) -> bool:
    return isinstance(value, str) and value.startswith("data:image")


def decode_data_url(value: str) -> Tuple[str, bytes]:
    """Return (mime type, raw bytes); raises ValueError on bad base64."""
    mime, payload = split_data_url(value)
    try:
        return mime, base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("이미지 데이터를 해석할 수 없습니다.") from exc


def file_to_data_url(path: Union[str, Path]) -> str:
    """Read an uploaded file and return it as a data URL.

    Pillow verifies the content; anything it cannot identify as an image is
    rejected with a user-facing message.
    """
    raw = Path(path).read_bytes()
    try:
        with Image.open(io.BytesIO(raw)) as image:
            image_format = (image.format or "").upper()
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError(NOT_AN_IMAGE_MESSAGE) from exc
    mime = _FORMAT_MIME.get(image_format, Image.MIME.get(image_format, DEFAULT_MIME))
    return to_data_url(raw, mime)


def data_url_to_image(value: str) -> Image.Image:
    """Decode a data URL into a loaded Pillow image for display."""
    _, raw = decode_data_url(value)
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError("이미지 데이터를 해석할 수 없습니다.") from exc
    return image


def extension_for_mime(mime: str) -> str:
    subtype = (mime or DEFAULT_MIME).split("/", 1)[-1].lower()
    return {"jpeg": "jpg", "svg+xml": "svg"}.get(subtype, subtype or "png")


def placeholder_image(size: Tuple[int, int] = (256, 256)) -> Image.Image:
    """Plain gray tile shown where a stored image cannot be decoded."""
    return Image.new("RGB", size, (200, 200, 200))
