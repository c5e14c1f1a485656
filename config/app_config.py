"""
Unified Configuration System for the FabriX support assistant

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
from pathlib import Path


@dataclass
class APIConfig:
    """API configuration settings"""
    openai_api_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_host: str = "https://cloud.langfuse.com"

    @classmethod
    def from_env(cls) -> 'APIConfig':
        """Load API config from environment variables"""
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            langfuse_secret_key=os.getenv("LANGFUSE_SECRET_KEY", ""),
            langfuse_public_key=os.getenv("LANGFUSE_PUBLIC_KEY", ""),
            langfuse_host=os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com")
        )

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        # In test environment, prefer environment variables
        if os.getenv("PYTEST_CURRENT_TEST") is not None:
            return cls.from_env()

        try:
            return cls(
                openai_api_key=st.secrets.get("OPENAI_API_KEY", ""),
                langfuse_secret_key=st.secrets.get("LANGFUSE_SECRET_KEY", ""),
                langfuse_public_key=st.secrets.get("LANGFUSE_PUBLIC_KEY", ""),
                langfuse_host=st.secrets.get("LANGFUSE_HOST", "https://cloud.langfuse.com")
            )
        except Exception:
            # No secrets.toml outside of a Streamlit deployment
            return cls.from_env()


@dataclass
class GenerationConfig:
    """Sampling parameters sent with every generation request"""
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 1024

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "top_k": self.top_k,
            "top_p": self.top_p,
            "max_output_tokens": self.max_output_tokens
        }


@dataclass
class LLMConfig:
    """Language model configuration"""
    model_name: str = "gpt-4o-mini"
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    max_retries: int = 2
    retry_base_delay: float = 0.5
    circuit_failure_threshold: int = 5
    circuit_recovery_timeout: int = 60
    system_prompt: str = (
        "You are the FabriX support assistant. FabriX sells custom clothing and "
        "premium fabrics, mostly in bulk to businesses. Answer questions about "
        "products, materials, customization, orders, shipping, returns and "
        "accounts concisely. If you do not know the answer, say so plainly."
    )


@dataclass
class ChatbotConfig:
    """Thresholds and tables used by the query resolution pipeline"""
    # Minimum knowledge base entry score: one query token matching the question
    kb_min_score: int = 2
    # Edit distance below which two user messages count as the same question
    repetition_distance_threshold: int = 10
    # Number of previous user messages compared for repetition
    repetition_window: int = 3
    # Greetings like "hi" are never treated as off-topic
    short_message_length: int = 10
    # Messages forwarded to the generator as context
    history_window: int = 5
    generation_timeout_seconds: float = 10.0
    # "substring" or "word_boundary"
    term_matching: str = "substring"
    # Escalate once the conversation history is longer than this; None disables it
    max_history_before_escalation: Optional[int] = None
    support_email: str = "info@fabrix.com"
    support_phone: str = "+1 (555) 123-4567"


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "FabriX Support"
    greeting_message: str = "Hi there! Welcome to FabriX. How can I help you today?"
    input_placeholder: str = "Ask about products, orders, shipping or returns..."


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"
    enable_langfuse_tracing: bool = True


VALID_TERM_MATCHING = ("substring", "word_boundary")


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    chatbot: ChatbotConfig = field(default_factory=ChatbotConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load the base configuration; environment overrides live in config.environments"""
        config = cls()

        # Load API configuration from secrets/environment
        config.api = APIConfig.from_secrets()

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        # Check required API keys
        if not self.api.openai_api_key:
            errors.append("OpenAI API key is required")

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        chatbot = self.chatbot
        if chatbot.term_matching not in VALID_TERM_MATCHING:
            errors.append(f"Unknown term matching strategy '{chatbot.term_matching}'")
        if chatbot.kb_min_score < 1:
            errors.append("kb_min_score must be at least 1")
        if chatbot.repetition_window < 1:
            errors.append("repetition_window must be at least 1")
        if chatbot.generation_timeout_seconds <= 0:
            errors.append("generation_timeout_seconds must be positive")

        return errors

    def get_langfuse_config(self) -> Dict[str, str]:
        """Get Langfuse configuration"""
        return {
            "secret_key": self.api.langfuse_secret_key,
            "public_key": self.api.langfuse_public_key,
            "host": self.api.langfuse_host
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()
