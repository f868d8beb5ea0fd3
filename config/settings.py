"""Configuration helpers for the Gemini Image Studio project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    max_prompt_length: int = 2000
    api_timeout: float = 30.0
    request_timeout: float = 30.0
    max_retry_display: int = 3
    host: str = "127.0.0.1"
    port: int = 7860
    api_base_url: Optional[str] = None
    output_dir: Path = Path("outputs")
    log_dir: Path = Path("logs")
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def resolved_api_base_url(self) -> str:
        """Base URL the UI uses to reach the forwarding endpoint."""
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        host = "127.0.0.1" if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}"


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip().strip('"').strip("'")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    output_dir = Path(os.getenv("OUTPUT_DIR", "outputs")).expanduser().resolve()
    log_dir = Path(os.getenv("LOG_DIR", "logs")).expanduser().resolve()

    metadata: dict[str, Any] = {}
    gemini_base_url = os.getenv("GEMINI_BASE_URL")
    if gemini_base_url:
        metadata["gemini_base_url"] = gemini_base_url

    return AppConfig(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
        max_prompt_length=_env_int("MAX_PROMPT_LENGTH", 2000),
        api_timeout=_env_float("GEMINI_API_TIMEOUT", 30.0),
        request_timeout=_env_float("CLIENT_REQUEST_TIMEOUT", 30.0),
        host=os.getenv("APP_HOST") or "127.0.0.1",
        port=_env_int("APP_PORT", 7860),
        api_base_url=os.getenv("API_BASE_URL") or None,
        output_dir=output_dir,
        log_dir=log_dir,
        metadata=metadata,
    )
