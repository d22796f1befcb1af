"""Configuration management for the recipe generation pipeline.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults

A Config is built once at process start (see load_config), validated once,
and then passed by reference into every client. It is read-only after
construction.
"""

import os
from typing import Any

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


ALLOWED_IMAGE_SIZES = ("256x256", "512x512", "1024x1024", "1792x1024", "1024x1792")

DEFAULT_SYSTEM_MESSAGE = (
    "You are a professional chef and nutritionist. "
    "Always answer with a single valid JSON object and no surrounding text."
)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Pipeline configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # OpenAI-compatible API access
        self.OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
        self.OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.CHAT_COMPLETION_ENDPOINT: str = os.getenv("CHAT_COMPLETION_ENDPOINT", "/chat/completions")
        self.IMAGE_GENERATION_ENDPOINT: str = os.getenv("IMAGE_GENERATION_ENDPOINT", "/images/generations")

        # Chat completion parameters
        self.SYSTEM_MESSAGE: str = os.getenv("SYSTEM_MESSAGE", DEFAULT_SYSTEM_MESSAGE)
        # Default: gpt-4o-mini (fast, cost-effective, reliable JSON output)
        self.CHAT_MODEL: str = os.getenv("CHAT_MODEL", "gpt-4o-mini")
        # Max Tokens: a full recipe with nutrition fits comfortably in 1500
        self.MAX_TOKENS: int = int(os.getenv("MAX_TOKENS", "1500"))
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        self.TOP_P: float = float(os.getenv("TOP_P", "1.0"))
        # Choices Count: only choices[0] is ever read
        self.CHOICES_COUNT: int = int(os.getenv("CHOICES_COUNT", "1"))

        # Image generation parameters
        self.IMAGE_COUNT: int = int(os.getenv("IMAGE_COUNT", "1"))
        self.IMAGE_SIZE: str = os.getenv("IMAGE_SIZE", "1024x1024")

        # Timeouts (seconds)
        # API_TIMEOUT_SECONDS: request-scoped timeout for the chat completion call
        self.API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "30"))
        # IMAGE_TIMEOUT_SECONDS: hard deadline for image generation, enforced by a watchdog
        self.IMAGE_TIMEOUT_SECONDS: float = float(os.getenv("IMAGE_TIMEOUT_SECONDS", "30"))
        # RELOCATION_TIMEOUT_SECONDS: timeout for downloading the generated image
        self.RELOCATION_TIMEOUT_SECONDS: float = float(os.getenv("RELOCATION_TIMEOUT_SECONDS", "20"))

        # Durable image storage
        self.IMAGE_STORAGE_DIR: str = os.getenv("IMAGE_STORAGE_DIR", "generated-recipe-images")
        # Public base URL for stored images. Empty: return file:// URIs
        self.IMAGE_PUBLIC_BASE_URL: str = os.getenv("IMAGE_PUBLIC_BASE_URL", "").rstrip("/")
        # Maximum generated image size (in MB) accepted for relocation. Default: 10 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "10"))
        # Image Compression: re-encode relocated images as progressive JPEG
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Image Compression Threshold: only compress images at least this large (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))

        # Calling-layer retry configuration
        # MAX_RETRIES: total attempts per generate_meal call (1 = no retry)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "1"))
        # DELAY_BETWEEN_RETRIES: initial delay in seconds (doubled each retry if EXPONENTIAL_BACKOFF)
        self.DELAY_BETWEEN_RETRIES: float = float(os.getenv("DELAY_BETWEEN_RETRIES", "2"))
        self.EXPONENTIAL_BACKOFF: bool = _env_bool("EXPONENTIAL_BACKOFF", "true")

        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"Config is read-only, cannot set {name}")
        super().__setattr__(name, value)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a required value is missing or a value is out of range.
        """
        if not self.OPENAI_API_KEY.strip():
            raise ValueError("OPENAI_API_KEY environment variable is required")
        if not self.OPENAI_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(f"OPENAI_BASE_URL must be an http(s) URL, got: {self.OPENAI_BASE_URL}")
        for name in ("CHAT_COMPLETION_ENDPOINT", "IMAGE_GENERATION_ENDPOINT"):
            if not getattr(self, name).startswith("/"):
                raise ValueError(f"{name} must start with '/', got: {getattr(self, name)}")
        if not self.SYSTEM_MESSAGE.strip():
            raise ValueError("SYSTEM_MESSAGE must not be blank")
        if not self.CHAT_MODEL.strip():
            raise ValueError("CHAT_MODEL must not be blank")
        if self.MAX_TOKENS < 256:
            raise ValueError(f"MAX_TOKENS must be at least 256, got: {self.MAX_TOKENS}")
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}")
        if not (0.0 < self.TOP_P <= 1.0):
            raise ValueError(f"TOP_P must be in (0.0, 1.0], got: {self.TOP_P}")
        if not (1 <= self.CHOICES_COUNT <= 10):
            raise ValueError(f"CHOICES_COUNT must be between 1 and 10, got: {self.CHOICES_COUNT}")
        if not (1 <= self.IMAGE_COUNT <= 10):
            raise ValueError(f"IMAGE_COUNT must be between 1 and 10, got: {self.IMAGE_COUNT}")
        if self.IMAGE_SIZE not in ALLOWED_IMAGE_SIZES:
            raise ValueError(
                f"IMAGE_SIZE must be one of {', '.join(ALLOWED_IMAGE_SIZES)}, got: {self.IMAGE_SIZE}"
            )
        for name in ("API_TIMEOUT_SECONDS", "IMAGE_TIMEOUT_SECONDS", "RELOCATION_TIMEOUT_SECONDS"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than 0, got: {getattr(self, name)}")
        if not self.IMAGE_STORAGE_DIR.strip():
            raise ValueError("IMAGE_STORAGE_DIR must not be blank")
        if self.IMAGE_PUBLIC_BASE_URL and not self.IMAGE_PUBLIC_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"IMAGE_PUBLIC_BASE_URL must be empty or an http(s) URL, got: {self.IMAGE_PUBLIC_BASE_URL}"
            )
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}")
        if self.COMPRESS_IMG_THRESHOLD_KB < 0:
            raise ValueError(
                f"COMPRESS_IMG_THRESHOLD_KB must not be negative, got: {self.COMPRESS_IMG_THRESHOLD_KB}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}")
        if self.DELAY_BETWEEN_RETRIES < 0:
            raise ValueError(f"DELAY_BETWEEN_RETRIES must not be negative, got: {self.DELAY_BETWEEN_RETRIES}")


def load_config() -> Config:
    """Build and validate the process-wide configuration.

    Call once at startup and pass the result into the pipeline factory.

    Raises:
        ValueError: If validation fails.
    """
    config = Config()
    config.validate()
    return config
