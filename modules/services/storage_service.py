"""File storage helpers."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from modules.utils.image_utils import decode_data_url, extension_for_mime

logger = logging.getLogger(__name__)

FILE_PREFIX = "gemini-generated-"


class StorageService:
    """Write generated images to disk so the browser can download them."""

    def __init__(self, output_dir: Path, max_items: int = 100) -> None:
        self.output_dir = Path(output_dir)
        self.max_items = max_items

    def save_image(self, data_url: str, timestamp_ms: Optional[int] = None) -> Path:
        """Persist a data-URL image and return the file path."""
        mime, raw = decode_data_url(data_url)
        stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{FILE_PREFIX}{stamp}.{extension_for_mime(mime)}"
        path.write_bytes(raw)
        logger.info("Saved download %s (%d bytes)", path.name, len(raw))
        self.cleanup(self.max_items)
        return path

    def cleanup(self, max_items: int = 100) -> None:
        """Limit the number of stored artifacts, dropping the oldest first."""
        if not self.output_dir.exists():
            return
        files = sorted(
            (path for path in self.output_dir.glob(f"{FILE_PREFIX}*") if path.is_file()),
            key=lambda path: (path.stat().st_mtime, path.name),
        )
        for path in files[: max(0, len(files) - max_items)]:
            path.unlink(missing_ok=True)
