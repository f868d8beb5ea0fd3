"""Prompt shaping helpers applied before a prompt reaches the image model."""

from __future__ import annotations

import re

ENGLISH_PREFIX = "Please create and modify according to the request below: "

_HANGUL_PATTERN = re.compile(r"[ㄱ-ㅎㅏ-ㅣ가-힣]")


def contains_korean(text: str) -> bool:
    """Return True when the text contains any Hangul jamo or syllable."""
    return bool(text) and _HANGUL_PATTERN.search(text) is not None


def enhance_prompt(text: str) -> str:
    """Prefix Korean prompts with an English instruction.

    The image model follows edit requests more reliably when they are
    introduced in English, so Korean prompts get a fixed lead-in. Other
    prompts are returned unchanged.
    """
    if contains_korean(text):
        return f"{ENGLISH_PREFIX}{text}"
    return text
