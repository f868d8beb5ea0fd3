"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from config.settings import AppConfig
from modules.pipelines.gemini_image import GenerationResult
from modules.services.api_client import ApiClientError, ImageApiClient
from modules.services.composite import active_count, build_composite_request, slots_from_inputs
from modules.services.history_service import ConversationTurn
from modules.services.session_state import StudioSession
from modules.services.storage_service import StorageService
from modules.utils.image_utils import (
    data_url_to_image,
    file_to_data_url,
    is_image_data_url,
    placeholder_image,
)

logger = logging.getLogger(__name__)

EMPTY_PROMPT_MESSAGE = "프롬프트를 입력해주세요."
RETRY_EXHAUSTED_MESSAGE = "여러 번 시도했지만 실패했습니다. 잠시 후 다시 시도해주세요."
CANCELLED_MESSAGE = "요청이 취소되었습니다."
READY_MESSAGE = "준비 완료."

GeneratorView = Tuple[
    StudioSession,  # session
    str,  # prompt box
    Any,  # result image
    str,  # result text
    str,  # status
    List[Tuple[Any, str]],  # history gallery
    Any,  # reference preview
    str,  # reference label
    Optional[str],  # retry button label, None hides it
]


def _safe_image(data_url: Optional[str]) -> Any:
    if not data_url:
        return None
    try:
        return data_url_to_image(data_url)
    except ValueError:
        logger.warning("Could not decode image for display")
        return None


def build_callbacks(
    config: AppConfig,
    client: Optional[ImageApiClient] = None,
    storage: Optional[StorageService] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    api_client = client or ImageApiClient(config)
    storage_service = storage or StorageService(config.output_dir)
    max_length = config.max_prompt_length
    max_retries = config.max_retry_display

    def _too_long_message() -> str:
        return f"프롬프트는 {max_length}자 이하여야 합니다."

    def _retry_label(session: StudioSession) -> Optional[str]:
        if session.error is None or session.tracker.in_flight:
            return None
        if session.retry_count >= max_retries:
            return None
        if session.retry_count > 0:
            return f"다시 시도 ({session.retry_count}/{max_retries})"
        return "다시 시도"

    def _status(session: StudioSession) -> str:
        if session.error:
            message = f"⚠️ {session.error}"
            if session.retry_count >= max_retries:
                message += f"\n\n{RETRY_EXHAUSTED_MESSAGE}"
            return message
        if session.result is not None:
            if session.result.image_url:
                return "이미지가 생성되었습니다."
            return "이미지가 생성되지 않았습니다. 응답 텍스트를 확인하세요."
        return READY_MESSAGE

    def _gallery(session: StudioSession) -> List[Tuple[Any, str]]:
        # One item per turn so gallery indices match history indices.
        items: List[Tuple[Any, str]] = []
        for index, turn in enumerate(session.history):
            caption = f"{index + 1}단계: {turn.prompt}"
            image = _safe_image(turn.result.image_url)
            if image is None:
                image = placeholder_image()
                caption += " (이미지 없음)"
            items.append((image, caption))
        return items

    def _view(session: StudioSession, prompt: str) -> GeneratorView:
        result = session.result
        return (
            session,
            prompt,
            _safe_image(result.image_url) if result else None,
            result.text if result else "",
            _status(session),
            _gallery(session),
            _safe_image(session.reference_image),
            session.reference_label() if session.reference_image else "",
            _retry_label(session),
        )

    def on_prompt_change(prompt: str) -> str:
        length = len(prompt or "")
        counter = f"{length} / {max_length}"
        if length > max_length:
            counter += f" · 프롬프트가 너무 깁니다. {length - max_length}자를 줄여주세요."
        return counter

    def on_upload_reference(session: StudioSession, prompt: str, file_path: Optional[str]) -> GeneratorView:
        if not file_path:
            return _view(session, prompt)
        try:
            session.reference_image = file_to_data_url(file_path)
            session.error = None
        except (ValueError, OSError) as exc:
            session.error = str(exc)
        return _view(session, prompt)

    def on_clear_reference(session: StudioSession, prompt: str) -> GeneratorView:
        session.reference_image = None
        return _view(session, prompt)

    def on_toggle_multi_turn(session: StudioSession, prompt: str, enabled: bool) -> GeneratorView:
        session.multi_turn = bool(enabled)
        if not session.multi_turn:
            session.reset_conversation()
        return _view(session, prompt)

    def on_reset_conversation(session: StudioSession, prompt: str) -> GeneratorView:
        session.reset_conversation()
        return _view(session, prompt)

    def on_select_history(session: StudioSession, prompt: str, index: int) -> GeneratorView:
        """Roll back to a turn: its image becomes the reference."""
        if index is None or not 0 <= index < len(session.history):
            return _view(session, prompt)
        turn = session.history[index]
        if turn.result.image_url:
            session.reference_image = turn.result.image_url
            session.history.truncate(index)
        return _view(session, prompt)

    def _record_turn(session: StudioSession, prompt: str, result: GenerationResult) -> bool:
        if not (session.multi_turn and result.image_url):
            return False
        if not is_image_data_url(result.image_url):
            logger.error("Invalid image URL format, not added to history")
            return False
        session.history.append(
            ConversationTurn(
                prompt=prompt,
                result=result,
                reference_image=session.reference_image,
            )
        )
        session.reference_image = result.image_url
        logger.info("History length is now %d", len(session.history))
        return True

    def _generate(session: StudioSession, prompt: str, is_retry: bool) -> GeneratorView:
        ticket = session.tracker.begin()
        trimmed = (prompt or "").strip()
        if not trimmed:
            session.tracker.finish(ticket)
            session.error = EMPTY_PROMPT_MESSAGE
            return _view(session, prompt)
        if len(prompt) > max_length:
            session.tracker.finish(ticket)
            session.error = _too_long_message()
            return _view(session, prompt)

        session.error = None
        if not is_retry:
            session.result = None
            session.retry_count = 0

        previous = session.history.as_previous_images() if session.multi_turn else []
        try:
            result = api_client.generate(trimmed, session.reference_image, previous)
        except ApiClientError as exc:
            if session.tracker.finish(ticket):
                session.error = exc.message
            return _view(session, prompt)

        if not session.tracker.finish(ticket):
            # superseded or cancelled while waiting
            return _view(session, prompt)

        session.result = result
        session.retry_count = 0
        if _record_turn(session, trimmed, result):
            prompt = ""
        return _view(session, prompt)

    def on_generate(session: StudioSession, prompt: str) -> GeneratorView:
        return _generate(session, prompt, is_retry=False)

    def on_retry(session: StudioSession, prompt: str) -> GeneratorView:
        session.retry_count += 1
        return _generate(session, prompt, is_retry=True)

    def on_cancel(session: StudioSession, prompt: str) -> GeneratorView:
        if session.tracker.cancel():
            logger.info("Request cancelled by user")
        return _view(session, prompt)

    def on_download(session: StudioSession) -> Optional[str]:
        if session.result is None or not session.result.image_url:
            return None
        return str(storage_service.save_image(session.result.image_url))

    def on_composite_change(*images: Optional[str]) -> str:
        return f"{sum(1 for image in images if image)}개 이미지 업로드됨"

    def on_remove_slot() -> tuple[None, str]:
        """Clear a slot's image together with its prompt."""
        return None, ""

    def on_generate_composite(
        main_prompt: str,
        main_slot_id: str,
        images: Sequence[Optional[str]],
        prompts: Sequence[str],
        descriptions: Sequence[str],
    ) -> tuple[Any, str, str]:
        try:
            encoded = [file_to_data_url(path) if path else None for path in images]
        except (ValueError, OSError) as exc:
            return None, "", f"⚠️ {exc}"

        slots = slots_from_inputs(encoded, prompts, descriptions, main_slot_id)
        try:
            request = build_composite_request(slots, main_prompt)
        except ValueError as exc:
            return None, "", f"⚠️ {exc}"

        logger.info("Sending %d images to the composite request", active_count(slots))
        try:
            result = api_client.generate(
                request.prompt,
                request.reference_image,
                request.previous_images,
            )
        except ApiClientError as exc:
            return None, "", f"⚠️ {exc.message}"
        status = "이미지가 생성되었습니다." if result.image_url else "이미지가 생성되지 않았습니다."
        return _safe_image(result.image_url), result.text, status

    return {
        "on_prompt_change": on_prompt_change,
        "on_upload_reference": on_upload_reference,
        "on_clear_reference": on_clear_reference,
        "on_toggle_multi_turn": on_toggle_multi_turn,
        "on_reset_conversation": on_reset_conversation,
        "on_select_history": on_select_history,
        "on_generate": on_generate,
        "on_retry": on_retry,
        "on_cancel": on_cancel,
        "on_download": on_download,
        "on_composite_change": on_composite_change,
        "on_remove_slot": on_remove_slot,
        "on_generate_composite": on_generate_composite,
    }
