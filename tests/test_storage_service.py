"""StorageService tests."""

from __future__ import annotations

from modules.services.storage_service import StorageService


def test_save_image_uses_download_name(tmp_path, png_data_url, png_bytes):
    service = StorageService(tmp_path / "out")

    path = service.save_image(png_data_url, timestamp_ms=1700000000000)

    assert path.name == "gemini-generated-1700000000000.png"
    assert path.read_bytes() == png_bytes


def test_jpeg_extension(tmp_path):
    service = StorageService(tmp_path)

    path = service.save_image("data:image/jpeg;base64,AAE=", timestamp_ms=1)

    assert path.suffix == ".jpg"


def test_cleanup_keeps_newest(tmp_path, png_data_url):
    service = StorageService(tmp_path, max_items=2)
    for stamp in (1000, 2000, 3000):
        service.save_image(png_data_url, timestamp_ms=stamp)

    names = sorted(path.name for path in tmp_path.iterdir())

    assert names == ["gemini-generated-2000.png", "gemini-generated-3000.png"]
