"""
Conversation session - the state behind the support chat widget.

A session is Idle or Awaiting (one submission in flight). Only one
submission runs at a time; a second one while Awaiting is rejected. A reset
does not cancel an in-flight submission. Each reset bumps the epoch, and a
reply produced under an older epoch is dropped instead of being appended to
the fresh conversation.
"""

import itertools
import threading
import uuid
from typing import List, Optional, Tuple

from config.app_config import AppConfig, get_config
from infrastructure.monitoring.logging_service import get_logger, log_conversation_event
from services.ai_service.fallback_service import FallbackService
from services.ai_service.pipeline import QueryResolutionPipeline, get_pipeline
from services.chat_service.models import Message, Sender


class ConversationSession:
    """
    UI-facing surface: ``messages``, ``is_open``, ``is_loading``,
    ``submit``, ``toggle`` and ``reset``.
    """

    def __init__(self,
                 pipeline: QueryResolutionPipeline,
                 fallback_service: Optional[FallbackService] = None,
                 session_id: Optional[str] = None):
        self.logger = get_logger(__name__)
        self.pipeline = pipeline
        self.fallback_service = fallback_service or pipeline.fallback_service
        self.session_id = session_id or uuid.uuid4().hex

        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._epoch = 0
        self._is_open = False
        self._is_loading = False
        self._messages: List[Message] = [self._greeting()]

    @classmethod
    def create(cls, config: Optional[AppConfig] = None, generator=None) -> 'ConversationSession':
        """
        Session wired to a pipeline

        Without arguments every session shares the global pipeline. Passing a
        config or generator builds a private pipeline the caller must close.
        """
        if config is None and generator is None:
            return cls(get_pipeline())
        pipeline = QueryResolutionPipeline.from_config(config or get_config(), generator=generator)
        return cls(pipeline)

    @property
    def messages(self) -> Tuple[Message, ...]:
        with self._lock:
            return tuple(self._messages)

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def _new_message(self, text: str, sender: Sender) -> Message:
        return Message(id=str(next(self._ids)), text=text, sender=sender)

    def _greeting(self) -> Message:
        return self._new_message(self.fallback_service.greeting(), Sender.BOT)

    def toggle(self) -> bool:
        """Show or hide the chat window; messages are untouched"""
        self._is_open = not self._is_open
        return self._is_open

    def reset(self):
        """Start over with a single greeting"""
        with self._lock:
            self._epoch += 1
            if self._is_loading:
                self.logger.info("Reset while a reply is pending; the late reply will be discarded")
            self._messages = [self._greeting()]

        log_conversation_event(self.logger, "reset", self.session_id)

    def submit(self, text: str) -> Optional[Message]:
        """
        Resolve one user message and append the bot reply

        Returns:
            The bot message, or None when the text is blank, another
            submission is in flight, or the session was reset meanwhile
        """
        if not text or not text.strip():
            return None

        with self._lock:
            if self._is_loading:
                self.logger.warning("Submission rejected: a reply is already pending")
                return None

            user_message = self._new_message(text, Sender.USER)
            history = tuple(self._messages)
            self._messages.append(user_message)
            self._is_loading = True
            epoch = self._epoch

        log_conversation_event(self.logger, "message_submitted", self.session_id,
                               message_id=user_message.id, length=len(text))

        resolution = None
        bot_message = None
        try:
            resolution = self.pipeline.resolve(text, history)
        finally:
            # Back to Idle in the same step that appends the reply
            with self._lock:
                self._is_loading = False
                if resolution is not None and epoch == self._epoch:
                    bot_message = self._new_message(resolution.text, Sender.BOT)
                    self._messages.append(bot_message)

        if bot_message is None:
            log_conversation_event(self.logger, "stale_reply_discarded", self.session_id,
                                   route=resolution.route.value)
            return None

        log_conversation_event(self.logger, "resolved", self.session_id,
                               message_id=bot_message.id, route=resolution.route.value)
        return bot_message
