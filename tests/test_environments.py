"""
Test environment-specific configurations
"""

import os
import pytest
from config.environments import get_environment_config
from config.environments.development import get_development_config
from config.environments.production import get_production_config


class TestEnvironmentConfigs:
    """Test environment-specific configuration loading"""

    def test_development_config(self):
        """Test development configuration"""
        config = get_development_config()

        assert config.environment == "development"
        assert config.debug == True
        assert config.logging.level == "DEBUG"
        assert "DEV" in config.ui.app_title
        assert config.llm.max_retries == 0
        assert config.chatbot.generation_timeout_seconds == 5.0

    def test_production_config(self):
        """Test production configuration"""
        config = get_production_config()

        assert config.environment == "production"
        assert config.debug == False
        assert config.logging.level == "INFO"
        assert "DEV" not in config.ui.app_title
        assert config.llm.generation.temperature == 0.3

    def test_environment_overrides_do_not_leak(self):
        """Test overrides only touch the instance they were applied to"""
        get_production_config()
        config = get_development_config()

        assert config.llm.generation.temperature == 0.7

    def test_environment_selection_development(self):
        """Test environment selection for development"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ["APP_ENV"] = "development"
            config = get_environment_config()
            assert config.environment == "development"
            assert config.debug == True
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env
            else:
                os.environ.pop("APP_ENV", None)

    def test_environment_selection_production(self):
        """Test environment selection for production"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ["APP_ENV"] = "production"
            config = get_environment_config()
            assert config.environment == "production"
            assert config.debug == False
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env
            else:
                os.environ.pop("APP_ENV", None)

    def test_unknown_environment_uses_base_config(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "staging")

        config = get_environment_config()

        assert config.environment == "staging"
        assert config.ui.app_title == "FabriX Support"


if __name__ == "__main__":
    pytest.main([__file__])
