"""Shared fixtures for unit tests.

No test touches the network: aiohttp sessions are replaced by the fakes in
fakes.py.
"""

import pytest

from recipe_generator.utils.config import Config


@pytest.fixture
def make_config(monkeypatch, tmp_path):
    """Factory building a Config from a clean environment plus overrides."""

    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("IMAGE_STORAGE_DIR", str(tmp_path / "images"))
    for name in (
        "OPENAI_BASE_URL",
        "CHAT_MODEL",
        "IMAGE_SIZE",
        "IMAGE_COUNT",
        "API_TIMEOUT_SECONDS",
        "IMAGE_TIMEOUT_SECONDS",
        "IMAGE_PUBLIC_BASE_URL",
        "COMPRESS_IMG",
        "COMPRESS_IMG_THRESHOLD_KB",
        "MAX_IMAGE_SIZE_MB",
        "MAX_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)

    def _make(**overrides: str) -> Config:
        for name, value in overrides.items():
            monkeypatch.setenv(name, value)
        return Config()

    return _make


@pytest.fixture
def config(make_config) -> Config:
    return make_config()
