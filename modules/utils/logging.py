"""Logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from config.settings import AppConfig

LOGGER_NAME = "gemini_image_studio"


def setup_logging(config: AppConfig, level: int = logging.INFO) -> logging.Logger:
    """Configure root handlers (file + console) and return the app logger."""
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_dir / "application.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    # google-genai and httpx log every request body at DEBUG/INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(LOGGER_NAME)


def preview(text: str, limit: int = 100) -> str:
    """Shorten free text for log lines."""
    if text is None:
        return ""
    return text[:limit] + ("..." if len(text) > limit else "")
