"""Shared fixtures."""

from __future__ import annotations

import base64
import io

import pytest
from PIL import Image


def make_png(color: str = "red", size: tuple[int, int] = (4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def png_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def make_data_url():
    """Factory producing distinct PNG data URLs by colour."""

    def _make(color: str) -> str:
        return "data:image/png;base64," + base64.b64encode(make_png(color)).decode("ascii")

    return _make


@pytest.fixture
def png_file(tmp_path, png_bytes: bytes):
    path = tmp_path / "reference.png"
    path.write_bytes(png_bytes)
    return path
