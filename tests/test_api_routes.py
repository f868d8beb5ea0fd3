"""Forwarding endpoint contract tests."""

from __future__ import annotations

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from config.settings import AppConfig
from modules.api import errors
from modules.api.routes import INVALID_REQUEST_MESSAGE, create_api_app
from modules.pipelines.gemini_image import (
    GenerationRequest,
    GenerationResult,
    GenerationTimeoutError,
)
from modules.utils.prompt_utils import ENGLISH_PREFIX

URL = "/api/generate-image"


class DummyImageService:
    """Stub image service capturing the last request."""

    def __init__(self, result: Optional[GenerationResult] = None, error: Optional[Exception] = None) -> None:
        self.result = result or GenerationResult(
            image_url="data:image/png;base64,AAE=",
            text="Image generated successfully",
            type="generated_image",
        )
        self.error = error
        self.last_request: Optional[GenerationRequest] = None

    def generate(self, request: GenerationRequest) -> GenerationResult:
        self.last_request = request
        if self.error is not None:
            raise self.error
        return self.result


def build_client(service: Optional[DummyImageService] = None, **config_kwargs) -> TestClient:
    config_kwargs.setdefault("gemini_api_key", "test-key")
    config = AppConfig(**config_kwargs)
    return TestClient(create_api_app(config, image_service=service or DummyImageService()))


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, errors.MISSING_PROMPT_MESSAGE),
        ({"prompt": ""}, errors.MISSING_PROMPT_MESSAGE),
        ({"prompt": 42}, errors.MISSING_PROMPT_MESSAGE),
        ({"prompt": "   "}, errors.EMPTY_PROMPT_MESSAGE),
    ],
)
def test_rejects_missing_or_empty_prompt(body, message):
    response = build_client().post(URL, json=body)

    assert response.status_code == 400
    assert response.json() == {"error": message}


def test_rejects_non_object_body():
    response = build_client().post(URL, json=["prompt"])

    assert response.status_code == 400
    assert response.json() == {"error": errors.MISSING_PROMPT_MESSAGE}


def test_rejects_unparseable_json_body():
    response = build_client().post(URL, content="{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": errors.MISSING_PROMPT_MESSAGE}


def test_rejects_malformed_previous_images():
    response = build_client().post(URL, json={"prompt": "cat", "previousImages": "nope"})

    assert response.status_code == 400
    assert response.json() == {"error": INVALID_REQUEST_MESSAGE}


def test_rejects_overlong_prompt_reporting_trimmed_length():
    response = build_client().post(URL, json={"prompt": "a" * 2001})

    assert response.status_code == 400
    assert response.json()["error"] == errors.prompt_too_long_message(2000, 2001)


def test_length_limit_applies_to_enhanced_prompt():
    prompt = "가" * (2000 - len(ENGLISH_PREFIX) + 1)
    response = build_client().post(URL, json={"prompt": prompt})

    assert response.status_code == 400
    assert f"현재: {len(prompt)}자" in response.json()["error"]


def test_missing_api_key_yields_500():
    service = DummyImageService()
    response = build_client(service, gemini_api_key=None).post(URL, json={"prompt": "a cat"})

    assert response.status_code == 500
    assert response.json() == {"error": errors.MISSING_KEY_MESSAGE}
    assert service.last_request is None


@pytest.mark.parametrize(
    "error, status, message",
    [
        (GenerationTimeoutError("API request timed out"), 408, errors.TIMEOUT_MESSAGE),
        (RuntimeError("Resource exhausted: quota exceeded"), 429, errors.QUOTA_MESSAGE),
        (RuntimeError("rate limit reached"), 429, errors.QUOTA_MESSAGE),
        (RuntimeError("Invalid API key provided"), 401, errors.INVALID_KEY_MESSAGE),
        (RuntimeError("boom"), 500, errors.GENERIC_MESSAGE),
    ],
)
def test_upstream_errors_are_classified(error, status, message):
    response = build_client(DummyImageService(error=error)).post(URL, json={"prompt": "a cat"})

    assert response.status_code == status
    assert response.json() == {"error": message}


def test_success_with_generated_image():
    service = DummyImageService()
    response = build_client(service).post(URL, json={"prompt": "  a cat  "})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "imageUrl": "data:image/png;base64,AAE=",
        "type": "generated_image",
        "text": "Image generated successfully",
    }
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert service.last_request.prompt == "a cat"
    assert service.last_request.reference_image is None


def test_success_text_only_with_reference_and_history():
    service = DummyImageService(GenerationResult(image_url=None, text="just words", type="text_only"))
    body = {
        "prompt": "make it blue",
        "referenceImage": "data:image/png;base64,AAE=",
        "previousImages": [
            {"prompt": "a cat", "image": "data:image/png;base64,AAI="},
            {"prompt": "style", "image": None, "description": "스타일 참조용", "isMain": False},
        ],
    }

    response = build_client(service).post(URL, json=body)

    assert response.status_code == 200
    assert response.json() == {"success": True, "imageUrl": None, "type": "text_only", "text": "just words"}
    request = service.last_request
    assert request.reference_image == "data:image/png;base64,AAE="
    assert [(item.prompt, item.image) for item in request.previous_images] == [
        ("a cat", "data:image/png;base64,AAI="),
        ("style", None),
    ]


def test_error_responses_are_not_cached():
    response = build_client().post(URL, json={})

    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["expires"] == "0"


def test_health():
    response = build_client(gemini_model="gemini-test").get("/api/health")

    assert response.json() == {"status": "ok", "model": "gemini-test"}
