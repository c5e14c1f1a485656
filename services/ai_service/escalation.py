"""
Escalation triggers: explicit requests for a human and signs the user is stuck.
"""

from typing import Optional, Sequence

from services.ai_service import domain_content
from services.ai_service.classifiers import normalize_text
from services.ai_service.similarity import distance
from services.chat_service.models import Message, Sender


class EscalationDetector:
    """
    Decides when a conversation should be handed to human support.

    Repetition looks only at the last ``repetition_window`` user messages
    before the current one and needs that many to exist. A message counts as
    repeated when one text contains the other or their edit distance is
    below ``distance_threshold``.
    """

    def __init__(self,
                 phrases: Sequence[str] = domain_content.ESCALATION_PHRASES,
                 repetition_window: int = 3,
                 distance_threshold: int = 10,
                 max_history: Optional[int] = None):
        self.phrases = tuple(phrase.lower() for phrase in phrases)
        self.repetition_window = repetition_window
        self.distance_threshold = distance_threshold
        self.max_history = max_history

    def is_explicit_request(self, text: str) -> bool:
        normalized = normalize_text(text)
        return any(phrase in normalized for phrase in self.phrases)

    def recent_user_texts(self, history: Sequence[Message]) -> list:
        user_texts = [message.text for message in history if message.sender == Sender.USER]
        return user_texts[-self.repetition_window:]

    def is_repetition(self, text: str, history: Sequence[Message]) -> bool:
        """``history`` holds the messages before the current one"""
        previous = self.recent_user_texts(history)
        if len(previous) < self.repetition_window:
            return False

        current = normalize_text(text)
        for earlier in previous:
            earlier = normalize_text(earlier)
            if current in earlier or earlier in current:
                return True
            if distance(earlier, current) < self.distance_threshold:
                return True
        return False

    def is_long_conversation(self, history: Sequence[Message]) -> bool:
        if self.max_history is None:
            return False
        return len(history) > self.max_history
