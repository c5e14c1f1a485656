"""
Tests for escalation triggers
"""

from services.ai_service.escalation import EscalationDetector
from services.chat_service.models import Message, Sender


def _history(*user_texts, with_replies=True):
    messages = []
    for i, text in enumerate(user_texts):
        messages.append(Message(id=f"u{i}", text=text, sender=Sender.USER))
        if with_replies:
            messages.append(Message(id=f"b{i}", text="Happy to help with that.", sender=Sender.BOT))
    return messages


class TestExplicitRequest:
    """Test explicit requests for a human"""

    def setup_method(self):
        self.detector = EscalationDetector()

    def test_phrases(self):
        assert self.detector.is_explicit_request("Can I speak to someone please")
        assert self.detector.is_explicit_request("I want CUSTOMER SUPPORT")
        assert self.detector.is_explicit_request("let me talk to a human")

    def test_regular_question(self):
        assert not self.detector.is_explicit_request("I love your fabrics")


class TestRepetition:
    """Test repeated question detection"""

    def setup_method(self):
        self.detector = EscalationDetector()

    def test_needs_full_window(self):
        """Test two previous user messages are not enough, however similar"""
        history = _history("track order please", "track order please")
        assert not self.detector.is_repetition("track order please", history)

    def test_near_duplicate_questions(self):
        history = _history("how do I track my order", "how can I track an order", "track order please")
        assert self.detector.is_repetition("track order pls", history)

    def test_containment_counts(self):
        history = _history("a", "b", "Where is my order? It has been three weeks since I paid")
        assert self.detector.is_repetition("where is my order?", history)

    def test_case_insensitive(self):
        history = _history("x", "y", "TRACK ORDER PLEASE")
        assert self.detector.is_repetition("track order please", history)

    def test_distinct_questions(self):
        history = _history(
            "what fabrics do you carry for uniforms",
            "can you embroider a logo on jackets",
            "how much is shipping to canada",
        )
        assert not self.detector.is_repetition("do you offer organic cotton t-shirts in bulk", history)

    def test_only_last_window_considered(self):
        history = _history(
            "track order please",
            "a completely different question about fabrics",
            "another unrelated question on embroidery",
            "yet another topic entirely about returns",
        )
        assert not self.detector.is_repetition("track order please", history)

    def test_bot_messages_ignored(self):
        history = [
            Message(id="1", text="track order please", sender=Sender.BOT),
            Message(id="2", text="track order please", sender=Sender.USER),
            Message(id="3", text="track order please", sender=Sender.BOT),
            Message(id="4", text="track order please", sender=Sender.USER),
        ]
        assert not self.detector.is_repetition("track order please", history)

    def test_recent_user_texts(self):
        history = _history("one", "two", "three", "four")
        assert self.detector.recent_user_texts(history) == ["two", "three", "four"]

    def test_custom_window_and_threshold(self):
        detector = EscalationDetector(repetition_window=1, distance_threshold=2)
        history = _history("track order please")

        assert detector.is_repetition("track order pleas", history)
        assert not detector.is_repetition("track my parcel now", history)


class TestLongConversation:
    """Test the opt-in long conversation trigger"""

    def test_disabled_by_default(self):
        detector = EscalationDetector()
        assert not detector.is_long_conversation(_history(*[f"q{i}" for i in range(20)]))

    def test_threshold(self):
        detector = EscalationDetector(max_history=4)

        assert not detector.is_long_conversation(_history("a", "b"))
        assert detector.is_long_conversation(_history("a", "b", "c"))
