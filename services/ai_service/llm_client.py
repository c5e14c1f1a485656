"""
LLM client - the generation collaborator behind the support pipeline.
Wraps ChatOpenAI with retries, a circuit breaker, a deadline and optional Langfuse tracing.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import openai
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from config.app_config import AppConfig, GenerationConfig, get_config
from infrastructure.external.langfuse_client import LangfuseClient, get_langfuse_client
from infrastructure.monitoring.logging_service import get_logger, log_execution_time
from infrastructure.resilience import (
    CircuitBreakerError,
    DeadlineExceededError,
    RetryService,
    get_retry_service,
)
from services.chat_service.models import Message, Sender

SYSTEM_PROMPT_NAME = "fabrix-support-system"
CIRCUIT_BREAKER_NAME = "generation"


class GenerationError(Exception):
    """The generation backend could not produce an answer"""
    pass


class GenerationTimeoutError(GenerationError):
    """The generation backend did not answer in time"""
    pass


class MalformedResponseError(GenerationError):
    """The generation backend answered with something that is not text"""
    pass


class LLMClient:
    """
    Client for generated answers.

    ``generate`` is the only call the pipeline relies on; any object with the
    same signature can stand in for it.
    """

    def __init__(self,
                 config: Optional[AppConfig] = None,
                 retry_service: Optional[RetryService] = None,
                 langfuse_client: Optional[LangfuseClient] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self.retry_service = retry_service or get_retry_service()
        self.langfuse_client = langfuse_client or get_langfuse_client()
        self._llms: Dict[Tuple, ChatOpenAI] = {}
        self._system_prompt: Optional[str] = None

    def get_llm(self, generation_config: GenerationConfig) -> ChatOpenAI:
        """
        Get a ChatOpenAI instance for the given sampling parameters

        top_k has no OpenAI equivalent and is not forwarded.
        """
        key = (generation_config.temperature, generation_config.top_p, generation_config.max_output_tokens)
        if key not in self._llms:
            api_key = self.config.api.openai_api_key
            if not api_key:
                raise GenerationError("OpenAI API key not configured")

            self._llms[key] = ChatOpenAI(
                model=self.config.llm.model_name,
                temperature=generation_config.temperature,
                top_p=generation_config.top_p,
                max_tokens=generation_config.max_output_tokens,
                timeout=self.config.chatbot.generation_timeout_seconds,
                # Retries are handled by the retry service within the deadline
                max_retries=0,
                openai_api_key=api_key
            )
            self.logger.info(f"LLM initialized: {self.config.llm.model_name} {key}")

        return self._llms[key]

    def get_system_prompt(self) -> str:
        """Managed prompt from Langfuse when available, configured prompt otherwise"""
        if self._system_prompt is None:
            managed = self.langfuse_client.get_prompt(SYSTEM_PROMPT_NAME)
            self._system_prompt = managed or self.config.llm.system_prompt
        return self._system_prompt

    def build_messages(self, user_message: str, history: Sequence[Message]) -> List[BaseMessage]:
        """System prompt, then history as user/model turns, then the current message"""
        messages: List[BaseMessage] = [SystemMessage(content=self.get_system_prompt())]
        for message in history:
            if message.sender == Sender.USER:
                messages.append(HumanMessage(content=message.text))
            else:
                messages.append(AIMessage(content=message.text))
        messages.append(HumanMessage(content=user_message))
        return messages

    def _invoke(self, llm: ChatOpenAI, messages: List[BaseMessage]) -> str:
        invoke_config = {}
        handler = self.langfuse_client.get_callback_handler()
        if handler is not None:
            invoke_config["callbacks"] = [handler]

        response = llm.invoke(messages, config=invoke_config or None)

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError(f"Unexpected response content: {content!r}")
        return content.strip()

    def generate(self,
                 user_message: str,
                 history: Sequence[Message],
                 generation_config: Optional[GenerationConfig] = None) -> str:
        """
        Generate an answer to ``user_message`` given recent ``history``

        Raises:
            GenerationError: on any backend, network, timeout or response problem
        """
        generation_config = generation_config or self.config.llm.generation
        llm_config = self.config.llm
        circuit_breaker = self.retry_service.get_circuit_breaker(
            CIRCUIT_BREAKER_NAME,
            failure_threshold=llm_config.circuit_failure_threshold,
            recovery_timeout=llm_config.circuit_recovery_timeout
        )

        try:
            llm = self.get_llm(generation_config)
            messages = self.build_messages(user_message, history)

            with log_execution_time(self.logger, "generation", history_length=len(history)):
                return self.retry_service.retry_with_circuit_breaker(
                    lambda: self._invoke(llm, messages),
                    circuit_breaker=circuit_breaker,
                    max_retries=llm_config.max_retries,
                    base_delay=llm_config.retry_base_delay,
                    deadline_seconds=self.config.chatbot.generation_timeout_seconds
                )

        except GenerationError:
            raise
        except (openai.APITimeoutError, DeadlineExceededError) as e:
            raise GenerationTimeoutError(str(e)) from e
        except CircuitBreakerError as e:
            raise GenerationError(str(e)) from e
        except Exception as e:
            raise GenerationError(f"{e.__class__.__name__}: {e}") from e


# Global client instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the global LLM client instance"""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
