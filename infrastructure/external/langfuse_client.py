"""
Langfuse client adapter.
Traces generation calls and serves the managed support prompt when configured.
"""

from langfuse import Langfuse
from langfuse.langchain import CallbackHandler
from typing import Optional

from config.app_config import AppConfig, get_config
from infrastructure.monitoring.logging_service import get_logger


class LangfuseClient:
    """
    Optional observability for the generation backend.
    Every accessor returns None when Langfuse is not configured or unreachable.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self._client: Optional[Langfuse] = None
        self._callback_handler: Optional[CallbackHandler] = None

    def is_enabled(self) -> bool:
        langfuse_config = self.config.get_langfuse_config()
        return bool(
            self.config.logging.enable_langfuse_tracing
            and langfuse_config["secret_key"]
            and langfuse_config["public_key"]
        )

    def get_client(self) -> Optional[Langfuse]:
        """Get configured Langfuse client, or None if tracing is disabled"""
        if self._client is None:
            if not self.is_enabled():
                self.logger.debug("Langfuse keys not configured, skipping initialization")
                return None

            langfuse_config = self.config.get_langfuse_config()
            try:
                self._client = Langfuse(
                    secret_key=langfuse_config["secret_key"],
                    public_key=langfuse_config["public_key"],
                    host=langfuse_config["host"]
                )
                self.logger.info("Langfuse client initialized successfully")
            except Exception as e:
                self.logger.warning(f"Failed to initialize Langfuse client: {e}")
                return None

        return self._client

    def get_callback_handler(self) -> Optional[CallbackHandler]:
        """Get Langfuse callback handler for LangChain integration"""
        if self._callback_handler is None:
            if self.get_client() is None:
                return None

            try:
                self._callback_handler = CallbackHandler()
                self.logger.debug("Langfuse callback handler created")
            except Exception as e:
                self.logger.warning(f"Failed to create Langfuse callback handler: {e}")
                return None

        return self._callback_handler

    def get_prompt(self, prompt_name: str, version: Optional[int] = None) -> Optional[str]:
        """
        Get prompt text from Langfuse prompt management

        Returns:
            Optional[str]: Prompt content or None if not available
        """
        client = self.get_client()
        if client is None:
            return None

        try:
            if version:
                prompt = client.get_prompt(prompt_name, version=version)
            else:
                prompt = client.get_prompt(prompt_name)
            return prompt.prompt
        except Exception as e:
            self.logger.warning(f"Failed to get prompt '{prompt_name}': {e}")
            return None


# Global client instance
_langfuse_client: Optional[LangfuseClient] = None


def get_langfuse_client() -> LangfuseClient:
    """Get the global Langfuse client instance"""
    global _langfuse_client
    if _langfuse_client is None:
        _langfuse_client = LangfuseClient()
    return _langfuse_client
