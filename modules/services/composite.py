"""Multi-image composite requests."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

DEFAULT_MAIN_PROMPT = "Please composite the provided images according to your request."

NO_IMAGES_MESSAGE = "최소 1개 이상의 이미지를 업로드해주세요."
NO_MAIN_PROMPT_MESSAGE = "메인 프롬프트를 입력해주세요."

MAIN_ROLE = "(MAIN - 변환 대상)"
REFERENCE_ROLE = "(참조용)"


@dataclass(slots=True)
class ImageSlot:
    """An upload slot with the role text sent alongside its image."""

    slot_id: str
    description: str
    prompt: str = ""
    image: Optional[str] = None
    is_main: bool = False


@dataclass(slots=True)
class CompositeRequest:
    prompt: str
    reference_image: str
    previous_images: List[Dict[str, Optional[str]]]


def default_slots() -> List[ImageSlot]:
    return [
        ImageSlot("1", "메인 이미지", "해당 이미지를 중심으로 이미지가 생성되어야 합니다.", is_main=True),
        ImageSlot("2", "스타일 참조용", "스타일 참조용 입니다. 해당 이미지가 직접적으로 사용되어서는 안됩니다."),
        ImageSlot("3", "배경 참조용", "배경 참조용 입니다. 배경 외에는 사용되어서는 안됩니다."),
        ImageSlot("4", "추가 요소 1"),
        ImageSlot("5", "추가 요소 2"),
    ]


def set_main(slots: Sequence[ImageSlot], slot_id: str) -> List[ImageSlot]:
    """Return slots with exactly ``slot_id`` flagged as main."""
    return [replace(slot, is_main=slot.slot_id == slot_id) for slot in slots]


def active_count(slots: Sequence[ImageSlot]) -> int:
    return sum(1 for slot in slots if slot.image)


def describe_slots(slots: Sequence[ImageSlot]) -> str:
    lines = []
    for number, slot in enumerate(slots, start=1):
        role = MAIN_ROLE if slot.is_main else REFERENCE_ROLE
        suffix = f" - {slot.prompt}" if slot.prompt else ""
        lines.append(f"Image {number} {role}: {slot.description}{suffix}")
    return "\n".join(lines)


def build_composite_request(slots: Sequence[ImageSlot], main_prompt: str) -> CompositeRequest:
    """Order uploaded slots into a single request.

    The first uploaded slot travels as the reference image and the others as
    previous images; the prompt labels every image with its role so the
    model knows which one to transform.
    """
    uploaded = [slot for slot in slots if slot.image]
    if not uploaded:
        raise ValueError(NO_IMAGES_MESSAGE)
    if not (main_prompt or "").strip():
        raise ValueError(NO_MAIN_PROMPT_MESSAGE)

    structured = f"\n{describe_slots(uploaded)}\n\n요청사항: {main_prompt}"
    previous = [
        {"prompt": slot.prompt or slot.description, "image": slot.image}
        for slot in uploaded[1:]
    ]
    return CompositeRequest(
        prompt=structured,
        reference_image=uploaded[0].image or "",
        previous_images=previous,
    )


def slots_from_inputs(
    images: Sequence[Optional[str]],
    prompts: Sequence[str],
    descriptions: Sequence[str],
    main_slot_id: str,
) -> List[ImageSlot]:
    """Rebuild slots from the flat component values of the UI."""
    slots = default_slots()
    rebuilt: List[ImageSlot] = []
    for slot, image, prompt, description in zip(slots, images, prompts, descriptions):
        rebuilt.append(
            replace(
                slot,
                image=image or None,
                prompt=prompt or "",
                description=description or slot.description,
            )
        )
    return set_main(rebuilt, main_slot_id)


def slot_choices(slots: Sequence[ImageSlot]) -> List[Tuple[str, str]]:
    return [(f"{slot.slot_id}. {slot.description}", slot.slot_id) for slot in slots]
