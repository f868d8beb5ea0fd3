"""HTTP endpoint forwarding prompts to the image model."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config.settings import AppConfig
from modules.api.errors import (
    EMPTY_PROMPT_MESSAGE,
    MISSING_KEY_MESSAGE,
    MISSING_PROMPT_MESSAGE,
    NO_CACHE_HEADERS,
    classify_error,
    prompt_too_long_message,
)
from modules.pipelines.gemini_image import GeminiImageService, GenerationRequest, PreviousImage
from modules.utils.logging import preview
from modules.utils.prompt_utils import enhance_prompt

logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "요청 형식이 올바르지 않습니다."


class PreviousImagePayload(BaseModel):
    """One prompt/image pair of earlier context; unknown keys are ignored."""

    prompt: Optional[str] = ""
    image: Optional[str] = None


class GenerateImagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    reference_image: Optional[str] = Field(default=None, alias="referenceImage")
    previous_images: Optional[List[PreviousImagePayload]] = Field(default=None, alias="previousImages")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=NO_CACHE_HEADERS)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    locations = [tuple(error.get("loc", ())) for error in errors]
    # Unparseable JSON or a non-object body carries no usable prompt.
    if any(error.get("type") == "json_invalid" for error in errors) or any(
        loc[:2] == ("body", "prompt") or loc == ("body",) for loc in locations
    ):
        message = MISSING_PROMPT_MESSAGE
    else:
        message = INVALID_REQUEST_MESSAGE
    logger.info("Rejected malformed request: %s", locations)
    return _error(400, message)


def build_router(config: AppConfig, image_service: GeminiImageService) -> APIRouter:
    """Return the API router bound to a config and an image service."""
    router = APIRouter(prefix="/api")

    @router.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "model": config.gemini_model}

    @router.post("/generate-image")
    def generate_image(payload: GenerateImagePayload) -> JSONResponse:
        previous = payload.previous_images or []
        logger.info(
            "Request received: prompt=%r reference=%s previous=%d",
            preview(payload.prompt or ""),
            bool(payload.reference_image),
            len(previous),
        )

        if not payload.prompt:
            return _error(400, MISSING_PROMPT_MESSAGE)

        trimmed = payload.prompt.strip()
        if not trimmed:
            return _error(400, EMPTY_PROMPT_MESSAGE)

        # the limit applies to what is actually sent upstream
        enhanced = enhance_prompt(trimmed)
        if len(enhanced) > config.max_prompt_length:
            logger.info("Prompt too long: %d", len(enhanced))
            return _error(400, prompt_too_long_message(config.max_prompt_length, len(trimmed)))

        if not config.gemini_api_key:
            logger.error("No API key configured")
            return _error(500, MISSING_KEY_MESSAGE)

        request = GenerationRequest(
            prompt=trimmed,
            reference_image=payload.reference_image or None,
            previous_images=[
                PreviousImage(prompt=item.prompt or "", image=item.image) for item in previous
            ],
        )
        try:
            result = image_service.generate(request)
        except Exception as exc:  # noqa: BLE001
            mapped = classify_error(exc)
            logger.exception("Error generating image (status=%d)", mapped.status_code)
            return _error(mapped.status_code, mapped.message)

        return JSONResponse(result.to_payload(), headers=NO_CACHE_HEADERS)

    return router


def create_api_app(config: AppConfig, image_service: Optional[GeminiImageService] = None) -> FastAPI:
    """Compose the FastAPI application serving the forwarding endpoint."""
    service = image_service or GeminiImageService(config)
    api = FastAPI(title="Gemini Image Studio")
    api.add_exception_handler(RequestValidationError, _validation_error_handler)
    api.include_router(build_router(config, service))
    api.state.image_service = service
    return api
