"""
AI service fallback texts.
Every fixed reply the assistant can give lives here, so routing code never builds strings itself.
"""

from typing import Optional

from config.app_config import AppConfig, get_config
from services.ai_service import domain_content
from infrastructure.monitoring.logging_service import get_logger


class FallbackService:
    """
    Service for the fixed replies used when the assistant must not, or cannot,
    produce a generated answer.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()

    @property
    def _contact(self) -> dict:
        return {
            "email": self.config.chatbot.support_email,
            "phone": self.config.chatbot.support_phone,
        }

    def greeting(self) -> str:
        return self.config.ui.greeting_message

    def refusal(self) -> str:
        return domain_content.REFUSAL_MESSAGE

    def off_topic(self) -> str:
        return domain_content.OFF_TOPIC_MESSAGE

    def escalation(self) -> str:
        return domain_content.ESCALATION_MESSAGE.format(**self._contact)

    def generation_failure(self) -> str:
        return domain_content.GENERATION_FAILURE_MESSAGE

    def support_message(self, topic: str) -> str:
        """
        Reply used instead of a generated answer that hedges

        Args:
            topic: Topic label derived from the user's question

        Returns:
            Message pointing the user to human support for that topic
        """
        return domain_content.SUPPORT_MESSAGE.format(topic=topic, **self._contact)

