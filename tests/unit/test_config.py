"""Unit tests for configuration management."""

import pytest

from recipe_generator.utils.config import ALLOWED_IMAGE_SIZES, Config, load_config


class TestConfigInitialization:
    """Test Config class initialization and environment variable loading."""

    def test_config_loads_default_values(self, make_config):
        """Test that Config uses default values when env vars not set."""
        config = make_config()

        assert config.OPENAI_BASE_URL == "https://api.openai.com/v1"
        assert config.CHAT_COMPLETION_ENDPOINT == "/chat/completions"
        assert config.IMAGE_GENERATION_ENDPOINT == "/images/generations"
        assert config.CHAT_MODEL == "gpt-4o-mini"
        assert config.IMAGE_SIZE == "1024x1024"
        assert config.IMAGE_COUNT == 1
        assert config.API_TIMEOUT_SECONDS == 30
        assert config.IMAGE_TIMEOUT_SECONDS == 30
        assert config.MAX_IMAGE_SIZE_MB == 10
        assert config.COMPRESS_IMG is True

    def test_config_loads_from_environment(self, make_config):
        """Test that Config loads values from environment variables."""
        config = make_config(
            OPENAI_BASE_URL="http://localhost:8080/v1/",
            CHAT_MODEL="custom-model",
            IMAGE_SIZE="512x512",
            IMAGE_TIMEOUT_SECONDS="5.5",
            COMPRESS_IMG="false",
        )

        assert config.OPENAI_BASE_URL == "http://localhost:8080/v1"
        assert config.CHAT_MODEL == "custom-model"
        assert config.IMAGE_SIZE == "512x512"
        assert config.IMAGE_TIMEOUT_SECONDS == 5.5
        assert config.COMPRESS_IMG is False

    def test_config_converts_numeric_types(self, make_config, monkeypatch):
        """Test that Config properly converts numeric environment variables."""
        monkeypatch.setenv("MAX_TOKENS", "2000")
        monkeypatch.setenv("TEMPERATURE", "0.2")
        monkeypatch.setenv("MAX_RETRIES", "3")

        config = make_config()

        assert config.MAX_TOKENS == 2000
        assert isinstance(config.MAX_TOKENS, int)
        assert config.TEMPERATURE == 0.2
        assert isinstance(config.TEMPERATURE, float)
        assert config.MAX_RETRIES == 3

    def test_config_is_read_only(self, config):
        """Test that Config attributes cannot be changed after construction."""
        with pytest.raises(AttributeError, match="read-only"):
            config.CHAT_MODEL = "other"

        assert config.CHAT_MODEL == "gpt-4o-mini"


class TestConfigValidation:
    """Test Config.validate() rules."""

    def test_validate_accepts_defaults(self, config):
        """Test that a config with only the API key set is valid."""
        config.validate()

    def test_validate_requires_api_key(self, make_config):
        """Test that a blank API key is rejected."""
        config = make_config(OPENAI_API_KEY="  ")

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            config.validate()

    @pytest.mark.parametrize(
        "name, value, match",
        [
            ("OPENAI_BASE_URL", "ftp://example.com", "OPENAI_BASE_URL"),
            ("CHAT_COMPLETION_ENDPOINT", "chat/completions", "CHAT_COMPLETION_ENDPOINT"),
            ("MAX_TOKENS", "100", "MAX_TOKENS"),
            ("TEMPERATURE", "2.5", "TEMPERATURE"),
            ("TOP_P", "0", "TOP_P"),
            ("CHOICES_COUNT", "11", "CHOICES_COUNT"),
            ("IMAGE_COUNT", "0", "IMAGE_COUNT"),
            ("IMAGE_SIZE", "800x600", "IMAGE_SIZE"),
            ("IMAGE_TIMEOUT_SECONDS", "0", "IMAGE_TIMEOUT_SECONDS"),
            ("IMAGE_PUBLIC_BASE_URL", "cdn.example.com", "IMAGE_PUBLIC_BASE_URL"),
            ("MAX_RETRIES", "0", "MAX_RETRIES"),
        ],
    )
    def test_validate_rejects_out_of_range_values(self, make_config, name, value, match):
        """Test that each out-of-range value fails validation with its name in the message."""
        config = make_config(**{name: value})

        with pytest.raises(ValueError, match=match):
            config.validate()

    def test_allowed_image_sizes_include_square_sizes(self):
        """Test the supported image sizes."""
        assert {"256x256", "512x512", "1024x1024"} <= set(ALLOWED_IMAGE_SIZES)


class TestLoadConfig:
    """Test the load_config() entry point."""

    def test_load_config_returns_validated_config(self, make_config):
        """Test that load_config builds a Config."""
        make_config()

        config = load_config()

        assert isinstance(config, Config)
        assert config.OPENAI_API_KEY == "test-key"

    def test_load_config_raises_on_invalid_config(self, make_config):
        """Test that load_config surfaces validation errors."""
        make_config(IMAGE_SIZE="huge")

        with pytest.raises(ValueError, match="IMAGE_SIZE"):
            load_config()
