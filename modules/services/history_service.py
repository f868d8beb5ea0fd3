"""Multi-turn conversation history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from modules.pipelines.gemini_image import GenerationResult


@dataclass(slots=True)
class ConversationTurn:
    """One prompt, the reference it was sent with, and what came back."""

    prompt: str
    result: GenerationResult
    reference_image: Optional[str] = None


class ConversationHistory:
    """Ordered, in-memory log of conversation turns."""

    def __init__(self) -> None:
        self._turns: List[ConversationTurn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self._turns)

    def __getitem__(self, index: int) -> ConversationTurn:
        return self._turns[index]

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def truncate(self, index: int) -> None:
        """Keep turns up to and including ``index``."""
        if index < 0 or index >= len(self._turns):
            raise IndexError(f"History index {index} out of range")
        del self._turns[index + 1 :]

    def clear(self) -> None:
        self._turns.clear()

    def index_of_image(self, image_url: Optional[str]) -> int:
        """Return the index of the turn that produced ``image_url`` or -1."""
        if not image_url:
            return -1
        for index, turn in enumerate(self._turns):
            if turn.result.image_url == image_url:
                return index
        return -1

    def as_previous_images(self) -> List[Dict[str, Optional[str]]]:
        """Return the history in the request's ``previousImages`` shape."""
        return [{"prompt": turn.prompt, "image": turn.result.image_url} for turn in self._turns]
