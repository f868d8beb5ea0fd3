"""Per-browser-session state for the generator tab."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from modules.pipelines.gemini_image import GenerationResult
from modules.services.history_service import ConversationHistory


class RequestTracker:
    """Hands out tickets so that only the latest request may update the UI."""

    def __init__(self) -> None:
        self._issued = 0
        self._current: Optional[int] = None

    @property
    def in_flight(self) -> bool:
        return self._current is not None

    def begin(self) -> int:
        """Start a request, superseding any request still in flight."""
        self._issued += 1
        self._current = self._issued
        return self._current

    def is_current(self, ticket: int) -> bool:
        return self._current == ticket

    def finish(self, ticket: int) -> bool:
        """Mark ``ticket`` done; returns False when it had been superseded."""
        if self._current != ticket:
            return False
        self._current = None
        return True

    def cancel(self) -> bool:
        cancelled = self._current is not None
        self._current = None
        return cancelled


@dataclass
class StudioSession:
    """State the generator tab keeps between events of one browser session."""

    history: ConversationHistory = field(default_factory=ConversationHistory)
    reference_image: Optional[str] = None
    multi_turn: bool = True
    retry_count: int = 0
    result: Optional[GenerationResult] = None
    error: Optional[str] = None
    tracker: RequestTracker = field(default_factory=RequestTracker)

    def reset_conversation(self) -> None:
        self.history.clear()
        self.reference_image = None

    def reference_label(self) -> str:
        """Describe where the current reference image came from."""
        index = self.history.index_of_image(self.reference_image)
        if index >= 0:
            return f"{index + 1}단계에서 생성됨"
        return "시작 이미지"
