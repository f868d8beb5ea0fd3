"""Mapping of upstream failures to HTTP status codes and user messages."""

from __future__ import annotations

from dataclasses import dataclass

from modules.pipelines.gemini_image import GenerationTimeoutError

TIMEOUT_MESSAGE = "요청 시간이 초과되었습니다. 더 짧은 프롬프트를 시도해보세요."
QUOTA_MESSAGE = "API 사용 한도를 초과했습니다. 잠시 후 다시 시도해주세요."
INVALID_KEY_MESSAGE = "유효하지 않은 API 키입니다. 설정을 확인해주세요."
GENERIC_MESSAGE = "이미지 생성 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."

MISSING_PROMPT_MESSAGE = "프롬프트를 입력해주세요."
EMPTY_PROMPT_MESSAGE = "유효한 프롬프트를 입력해주세요."
MISSING_KEY_MESSAGE = "Gemini API 키가 설정되지 않았습니다."

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    status_code: int
    message: str


def prompt_too_long_message(limit: int, current: int) -> str:
    return f"프롬프트는 {limit}자 이하여야 합니다. 현재: {current}자"


def classify_error(exc: BaseException) -> ErrorResponse:
    """Classify a generation failure by type and message substrings."""
    if isinstance(exc, GenerationTimeoutError):
        return ErrorResponse(408, TIMEOUT_MESSAGE)

    message = str(exc)
    if "quota" in message or "limit" in message:
        return ErrorResponse(429, QUOTA_MESSAGE)
    if "Invalid API key" in message:
        return ErrorResponse(401, INVALID_KEY_MESSAGE)
    return ErrorResponse(500, GENERIC_MESSAGE)
