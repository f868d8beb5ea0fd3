"""Multi-image composite request tests."""

from __future__ import annotations

import pytest

from modules.services import composite


def test_default_slots_have_single_main():
    slots = composite.default_slots()

    assert len(slots) == 5
    assert [slot.slot_id for slot in slots if slot.is_main] == ["1"]


def test_set_main_moves_flag():
    slots = composite.set_main(composite.default_slots(), "3")

    assert [slot.slot_id for slot in slots if slot.is_main] == ["3"]


def test_requires_an_uploaded_image():
    with pytest.raises(ValueError, match=composite.NO_IMAGES_MESSAGE):
        composite.build_composite_request(composite.default_slots(), "combine")


def test_requires_main_prompt():
    slots = composite.default_slots()
    slots[0].image = "data:image/png;base64,A"

    with pytest.raises(ValueError, match=composite.NO_MAIN_PROMPT_MESSAGE):
        composite.build_composite_request(slots, "   ")


def test_request_orders_uploaded_slots():
    slots = composite.slots_from_inputs(
        images=[None, "data:image/png;base64,STYLE", None, "data:image/png;base64,EXTRA", None],
        prompts=["", "스타일만", "", "", ""],
        descriptions=["메인 이미지", "스타일 참조용", "배경 참조용", "추가 요소 1", "추가 요소 2"],
        main_slot_id="4",
    )

    request = composite.build_composite_request(slots, "merge them")

    assert request.reference_image == "data:image/png;base64,STYLE"
    assert request.previous_images == [{"prompt": "추가 요소 1", "image": "data:image/png;base64,EXTRA"}]
    assert request.prompt == (
        "\nImage 1 (참조용): 스타일 참조용 - 스타일만\n"
        "Image 2 (MAIN - 변환 대상): 추가 요소 1"
        "\n\n요청사항: merge them"
    )
    assert composite.active_count(slots) == 2


def test_slot_choices_labels():
    choices = composite.slot_choices(composite.default_slots())

    assert choices[0] == ("1. 메인 이미지", "1")
