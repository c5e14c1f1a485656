"""
Development environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, APIConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""

    def __post_init__(self):

        self.environment = "development"
        self.debug = True

        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-app.log"

        self.ui.app_title = "FabriX Support (DEV)"

        # Fail fast so broken generation shows up quickly while testing
        self.llm.max_retries = 0
        self.chatbot.generation_timeout_seconds = 5.0


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    config = DevelopmentConfig()
    config.api = APIConfig.from_secrets()
    return config
