"""
Tests for the fixed replies
"""

from config.app_config import AppConfig
from services.ai_service import domain_content
from services.ai_service.fallback_service import FallbackService


class TestFallbackService:
    """Test fixed reply texts"""

    def setup_method(self):
        self.config = AppConfig()
        self.fallback = FallbackService(self.config)

    def test_greeting_from_config(self):
        assert self.fallback.greeting() == self.config.ui.greeting_message

    def test_escalation_contains_contact_details(self):
        message = self.fallback.escalation()

        assert self.config.chatbot.support_email in message
        assert self.config.chatbot.support_phone in message

    def test_support_message_names_topic(self):
        message = self.fallback.support_message("shipping and delivery")

        assert "shipping and delivery" in message
        assert self.config.chatbot.support_email in message

    def test_fixed_messages(self):
        assert self.fallback.refusal() == domain_content.REFUSAL_MESSAGE
        assert self.fallback.off_topic() == domain_content.OFF_TOPIC_MESSAGE
        assert self.fallback.generation_failure() == domain_content.GENERATION_FAILURE_MESSAGE

    def test_contact_details_configurable(self):
        self.config.chatbot.support_email = "help@example.com"
        assert "help@example.com" in self.fallback.escalation()
