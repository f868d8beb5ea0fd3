"""Gemini image generation service implementation."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from google import genai
from google.genai import types

from config.settings import AppConfig
from modules.utils.image_utils import DEFAULT_MIME, decode_data_url, to_data_url
from modules.utils.logging import preview
from modules.utils.prompt_utils import contains_korean, enhance_prompt

logger = logging.getLogger(__name__)

GENERATED_IMAGE = "generated_image"
TEXT_ONLY = "text_only"

DEFAULT_IMAGE_TEXT = "Image generated successfully"
DEFAULT_EMPTY_TEXT = "No image was generated. Please try a different prompt."


class GenerationError(RuntimeError):
    """Raised when the upstream model call fails."""


class GenerationTimeoutError(GenerationError):
    """Raised when the upstream model does not answer within the timeout."""


@dataclass(slots=True)
class PreviousImage:
    """A prompt/image pair resubmitted as context."""

    prompt: str
    image: Optional[str] = None


@dataclass(slots=True)
class GenerationRequest:
    """Request data for a single generation call."""

    prompt: str
    reference_image: Optional[str] = None
    previous_images: List[PreviousImage] = field(default_factory=list)


@dataclass(slots=True)
class GenerationResult:
    """Result payload relayed back to the browser."""

    image_url: Optional[str]
    text: str
    type: str = TEXT_ONLY

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GenerationResult":
        image_url = payload.get("imageUrl") or None
        return cls(
            image_url=image_url,
            text=payload.get("text") or "",
            type=GENERATED_IMAGE if image_url else TEXT_ONLY,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": True,
            "imageUrl": self.image_url,
            "type": self.type,
            "text": self.text,
        }


Contents = Union[str, List[types.Content]]


class GeminiImageService:
    """Facade around the google-genai image model."""

    def __init__(self, config: AppConfig, client: Optional[Any] = None) -> None:
        self.config = config
        self._client = client

    def _get_client(self) -> Any:
        """Lazily create the google-genai client.

        The SDK's own HTTP timeout (milliseconds) matches `api_timeout` so an
        abandoned call also ends on the transport side.
        """
        if self._client is not None:
            return self._client
        if not self.config.gemini_api_key:
            raise GenerationError("Gemini API key is not configured")

        http_options: dict[str, Any] = {"timeout": int(self.config.api_timeout * 1000)}
        base_url = self.config.metadata.get("gemini_base_url")
        if base_url:
            http_options["base_url"] = base_url
        self._client = genai.Client(
            api_key=self.config.gemini_api_key,
            http_options=types.HttpOptions(**http_options),
        )
        return self._client

    def build_contents(self, request: GenerationRequest) -> Contents:
        """Shape prompt and images into the model's `contents` argument."""
        prompt = enhance_prompt(request.prompt)
        if not request.reference_image:
            return prompt

        contents: List[types.Content] = []
        for previous in request.previous_images:
            if not previous.image:
                continue
            contents.append(_image_turn(enhance_prompt(previous.prompt or ""), previous.image))
        contents.append(_image_turn(prompt, request.reference_image))
        return contents

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Call the model and return the parsed result."""
        client = self._get_client()
        contents = self.build_contents(request)
        logger.info(
            "Calling %s (korean=%s, reference=%s, previous=%d): %s",
            self.config.gemini_model,
            contains_korean(request.prompt),
            bool(request.reference_image),
            len(request.previous_images),
            preview(request.prompt),
        )

        # One worker per call: a hung upstream call must not hold a slot
        # that later requests wait on.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gemini")
        try:
            future = executor.submit(
                client.models.generate_content,
                model=self.config.gemini_model,
                contents=contents,
            )
            try:
                response = future.result(timeout=self.config.api_timeout)
            except FutureTimeoutError as exc:
                logger.warning("Gemini call exceeded %.1fs", self.config.api_timeout)
                raise GenerationTimeoutError("API request timed out") from exc
        finally:
            executor.shutdown(wait=False)

        return self.parse_response(response)

    def parse_response(self, response: Any) -> GenerationResult:
        """Extract the first image and the text from the model response."""
        image_data: Optional[Union[bytes, str]] = None
        image_mime = DEFAULT_MIME
        text = ""

        try:
            candidates = getattr(response, "candidates", None) or []
            content = getattr(candidates[0], "content", None) if candidates else None
            parts = getattr(content, "parts", None) or []
            if not parts:
                logger.warning("No valid structure found in response")
            for part in parts:
                part_text = getattr(part, "text", None)
                inline_data = getattr(part, "inline_data", None)
                if part_text:
                    text = part_text
                elif inline_data is not None and getattr(inline_data, "data", None):
                    image_data = inline_data.data
                    image_mime = getattr(inline_data, "mime_type", None) or DEFAULT_MIME
        except (AttributeError, IndexError, TypeError) as exc:
            logger.warning("Error processing response: %s", exc)

        logger.info("Response parsed (image=%s, text_length=%d)", image_data is not None, len(text))
        if image_data:
            return GenerationResult(
                image_url=to_data_url(image_data, image_mime),
                text=text or DEFAULT_IMAGE_TEXT,
                type=GENERATED_IMAGE,
            )
        return GenerationResult(image_url=None, text=text or DEFAULT_EMPTY_TEXT, type=TEXT_ONLY)


def _image_turn(prompt: str, image: str) -> types.Content:
    mime, data = decode_data_url(image)
    return types.Content(
        role="user",
        parts=[
            types.Part.from_text(text=prompt),
            types.Part.from_bytes(data=data, mime_type=mime),
        ],
    )
