"""
Chat service data models for the support conversation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Sender(str, Enum):
    """Author of a chat message"""
    USER = "user"
    BOT = "bot"


@dataclass(frozen=True)
class Message:
    """Individual message in a conversation, immutable once created"""
    id: str
    text: str
    sender: Sender
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_user(self) -> bool:
        return self.sender == Sender.USER


class Route(str, Enum):
    """How the pipeline arrived at a bot reply"""
    KNOWLEDGE_BASE = "knowledge_base"
    ESCALATION_REQUESTED = "escalation_requested"
    POLICY_REFUSAL = "policy_refusal"
    OFF_TOPIC = "off_topic"
    GENERATED = "generated"
    UNCERTAIN = "uncertain"
    GENERATION_FAILED = "generation_failed"
    ESCALATION_REPETITION = "escalation_repetition"
    ESCALATION_LONG_CONVERSATION = "escalation_long_conversation"


@dataclass(frozen=True)
class Resolution:
    """Final bot answer for one user message"""
    text: str
    route: Route
