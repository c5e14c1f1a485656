"""
Detects generated answers that admit they cannot actually answer.
"""

from typing import Sequence, Tuple

from services.ai_service import domain_content
from services.ai_service.classifiers import normalize_text


class UncertaintyDetector:

    def __init__(self,
                 hedging_phrases: Sequence[str] = domain_content.HEDGING_PHRASES,
                 support_topics: Sequence[Tuple[str, Sequence[str]]] = domain_content.SUPPORT_TOPICS,
                 default_topic: str = domain_content.DEFAULT_SUPPORT_TOPIC):
        self.hedging_phrases = tuple(phrase.lower() for phrase in hedging_phrases)
        self.support_topics = tuple(support_topics)
        self.default_topic = default_topic

    def seems_unable(self, answer: str) -> bool:
        normalized = normalize_text(answer)
        return any(phrase in normalized for phrase in self.hedging_phrases)

    def topic_label(self, user_text: str) -> str:
        """Label for the support message, taken from the user's question, not the answer"""
        normalized = normalize_text(user_text)
        for label, keywords in self.support_topics:
            if any(keyword in normalized for keyword in keywords):
                return label
        return self.default_topic
