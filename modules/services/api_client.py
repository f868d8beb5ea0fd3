"""HTTP client used by the UI to call the forwarding endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config.settings import AppConfig
from modules.pipelines.gemini_image import GenerationResult

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate-image"

FAILED_MESSAGE = "이미지 생성에 실패했습니다."
CLIENT_TIMEOUT_MESSAGE = "요청 시간이 초과되었습니다. 더 짧은 프롬프트를 시도해보세요."
UNKNOWN_ERROR_MESSAGE = "오류가 발생했습니다."


class ApiClientError(RuntimeError):
    """Raised with a user-facing message when a generation request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ImageApiClient:
    """Post generation requests with a client-side timeout."""

    def __init__(
        self,
        config: AppConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.base_url = config.resolved_api_base_url
        self._session = session or requests.Session()

    def generate(
        self,
        prompt: str,
        reference_image: Optional[str] = None,
        previous_images: Optional[List[Dict[str, Any]]] = None,
    ) -> GenerationResult:
        body = {
            "prompt": prompt.strip(),
            "referenceImage": reference_image,
            "previousImages": previous_images or [],
        }
        try:
            response = self._session.post(
                f"{self.base_url}{GENERATE_PATH}",
                json=body,
                headers={"Cache-Control": "no-cache"},
                timeout=self.config.request_timeout,
            )
        except requests.Timeout as exc:
            raise ApiClientError(CLIENT_TIMEOUT_MESSAGE) from exc
        except requests.RequestException as exc:
            logger.warning("Request to image endpoint failed: %s", exc)
            raise ApiClientError(UNKNOWN_ERROR_MESSAGE) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        logger.info(
            "API response status=%s type=%s has_image=%s",
            response.status_code,
            data.get("type"),
            bool(data.get("imageUrl")),
        )
        if not response.ok:
            raise ApiClientError(data.get("error") or FAILED_MESSAGE, response.status_code)
        return GenerationResult.from_payload(data)
