"""Conversation history and session state tests."""

from __future__ import annotations

import pytest

from modules.pipelines.gemini_image import GenerationResult
from modules.services.history_service import ConversationHistory, ConversationTurn
from modules.services.session_state import RequestTracker, StudioSession


def turn(prompt: str, image: str | None) -> ConversationTurn:
    return ConversationTurn(
        prompt=prompt,
        result=GenerationResult(image_url=image, text="", type="generated_image" if image else "text_only"),
    )


def build_history() -> ConversationHistory:
    history = ConversationHistory()
    for number in range(3):
        history.append(turn(f"step {number}", f"data:image/png;base64,{number}"))
    return history


def test_append_and_previous_images_keep_order():
    history = build_history()

    assert len(history) == 3
    assert history.as_previous_images() == [
        {"prompt": "step 0", "image": "data:image/png;base64,0"},
        {"prompt": "step 1", "image": "data:image/png;base64,1"},
        {"prompt": "step 2", "image": "data:image/png;base64,2"},
    ]


def test_truncate_keeps_selected_turn():
    history = build_history()

    history.truncate(1)

    assert [item.prompt for item in history] == ["step 0", "step 1"]


def test_truncate_out_of_range():
    with pytest.raises(IndexError):
        build_history().truncate(5)


def test_index_of_image_and_clear():
    history = build_history()

    assert history.index_of_image("data:image/png;base64,2") == 2
    assert history.index_of_image("data:image/png;base64,9") == -1
    assert history.index_of_image(None) == -1

    history.clear()
    assert len(history) == 0


def test_request_tracker_last_request_wins():
    tracker = RequestTracker()

    first = tracker.begin()
    second = tracker.begin()

    assert not tracker.is_current(first)
    assert tracker.finish(first) is False
    assert tracker.in_flight
    assert tracker.finish(second) is True
    assert not tracker.in_flight


def test_request_tracker_cancel():
    tracker = RequestTracker()
    ticket = tracker.begin()

    assert tracker.cancel() is True
    assert tracker.finish(ticket) is False
    assert tracker.cancel() is False


def test_session_reference_label():
    session = StudioSession(history=build_history())

    session.reference_image = "data:image/png;base64,1"
    assert session.reference_label() == "2단계에서 생성됨"

    session.reference_image = "data:image/png;base64,uploaded"
    assert session.reference_label() == "시작 이미지"

    session.reset_conversation()
    assert session.reference_image is None
    assert len(session.history) == 0
