"""
Tests for the LLM client behind the generation stage
"""

from unittest.mock import Mock, patch

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from config.app_config import AppConfig, GenerationConfig
from infrastructure.resilience import RetryService
from services.ai_service.llm_client import (
    GenerationError,
    GenerationTimeoutError,
    LLMClient,
    MalformedResponseError,
)
from services.chat_service.models import Message, Sender


REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestLLMClient:
    """Test generation through ChatOpenAI"""

    def setup_method(self):
        self.config = AppConfig()
        self.config.api.openai_api_key = "test-key"
        self.config.llm.retry_base_delay = 0.0
        self.langfuse_client = Mock()
        self.langfuse_client.get_callback_handler.return_value = None
        self.langfuse_client.get_prompt.return_value = None
        self.client = LLMClient(self.config, retry_service=RetryService(), langfuse_client=self.langfuse_client)

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_generate(self, mock_chat):
        mock_chat.return_value.invoke.return_value = AIMessage(content=" We ship worldwide. ")

        answer = self.client.generate("Do you ship to Norway?", [])

        assert answer == "We ship worldwide."
        kwargs = mock_chat.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.7
        assert kwargs["top_p"] == 0.95
        assert kwargs["max_tokens"] == 1024
        assert kwargs["max_retries"] == 0
        assert kwargs["timeout"] == self.config.chatbot.generation_timeout_seconds

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_llm_cached_per_generation_config(self, mock_chat):
        mock_chat.return_value.invoke.return_value = AIMessage(content="ok")

        self.client.generate("a", [])
        self.client.generate("b", [])
        self.client.generate("c", [], GenerationConfig(temperature=0.1))

        assert mock_chat.call_count == 2

    def test_build_messages(self):
        history = [
            Message(id="1", text="Hi there!", sender=Sender.BOT),
            Message(id="2", text="Do you sell linen?", sender=Sender.USER),
            Message(id="3", text="Yes, in six colors.", sender=Sender.BOT),
        ]

        messages = self.client.build_messages("Which colors?", history)

        assert [type(message) for message in messages] == [
            SystemMessage, AIMessage, HumanMessage, AIMessage, HumanMessage
        ]
        assert messages[0].content == self.config.llm.system_prompt
        assert messages[-1].content == "Which colors?"

    def test_managed_system_prompt(self):
        self.langfuse_client.get_prompt.return_value = "You are a managed prompt."

        messages = self.client.build_messages("hi", [])

        assert messages[0].content == "You are a managed prompt."

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_callback_handler_attached(self, mock_chat):
        handler = object()
        self.langfuse_client.get_callback_handler.return_value = handler
        mock_chat.return_value.invoke.return_value = AIMessage(content="ok")

        self.client.generate("hi", [])

        assert mock_chat.return_value.invoke.call_args.kwargs["config"] == {"callbacks": [handler]}

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_missing_api_key(self, mock_chat):
        self.config.api.openai_api_key = ""

        with pytest.raises(GenerationError):
            self.client.generate("hi", [])
        mock_chat.assert_not_called()

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_malformed_response(self, mock_chat):
        mock_chat.return_value.invoke.return_value = AIMessage(content=[])

        with pytest.raises(MalformedResponseError):
            self.client.generate("hi", [])

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_timeout_mapped(self, mock_chat):
        self.config.llm.max_retries = 0
        mock_chat.return_value.invoke.side_effect = openai.APITimeoutError(request=REQUEST)

        with pytest.raises(GenerationTimeoutError):
            self.client.generate("hi", [])

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_other_errors_mapped(self, mock_chat):
        mock_chat.return_value.invoke.side_effect = ValueError("unexpected")

        with pytest.raises(GenerationError) as exc_info:
            self.client.generate("hi", [])
        assert isinstance(exc_info.value.__cause__, ValueError)

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_transient_error_retried(self, mock_chat):
        self.config.llm.max_retries = 1
        mock_chat.return_value.invoke.side_effect = [
            openai.APIConnectionError(request=REQUEST),
            AIMessage(content="Recovered."),
        ]

        assert self.client.generate("hi", []) == "Recovered."
        assert mock_chat.return_value.invoke.call_count == 2

    @patch('services.ai_service.llm_client.ChatOpenAI')
    def test_open_circuit_fails_fast(self, mock_chat):
        self.config.llm.max_retries = 0
        self.config.llm.circuit_failure_threshold = 1
        mock_chat.return_value.invoke.side_effect = openai.APIConnectionError(request=REQUEST)

        with pytest.raises(GenerationError):
            self.client.generate("hi", [])
        with pytest.raises(GenerationError) as exc_info:
            self.client.generate("hi", [])

        assert "Circuit breaker" in str(exc_info.value)
        assert mock_chat.return_value.invoke.call_count == 1
