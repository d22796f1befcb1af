"""Shared HTTP plumbing for the OpenAI-compatible generation services."""

import asyncio
from typing import Any, Optional

import aiohttp

from recipe_generator.utils.config import Config
from recipe_generator.utils.errors import ClientStage, FailureCause, GenerationFailure
from recipe_generator.utils.logger import logger


# Upstream error bodies are logged, truncated, and never surfaced to callers
MAX_LOGGED_BODY_CHARS = 500


class GenerationServiceClient:
    """Base client holding immutable configuration and one aiohttp session.

    The session is created lazily on first use and closed by disconnect() or
    when leaving the async context manager.
    """

    stage: ClientStage

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None) -> None:
        if not config.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY is required")

        self.config = config
        self.base_url = config.OPENAI_BASE_URL
        self.session = session
        self.headers = {
            "Authorization": f"Bearer {config.OPENAI_API_KEY}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self) -> None:
        """Initialize HTTP session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(headers=self.headers)

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _post_json(self, endpoint: str, payload: dict[str, Any], timeout_seconds: float) -> str:
        """POST a JSON payload and return the raw response body.

        Makes exactly one request; no retries at this layer.

        Raises:
            GenerationFailure: On timeout, transport error or non-2xx status.
        """
        if not self.session:
            await self.connect()

        url = f"{self.base_url}{endpoint}"
        stage = self.stage

        try:
            async with self.session.post(
                url,
                json=payload,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            ) as response:
                raw_body = await response.read()

                if not 200 <= response.status < 300:
                    logger.error(
                        f"{stage.value} request to {url} returned status {response.status}: "
                        f"{raw_body.decode('utf-8', errors='replace')[:MAX_LOGGED_BODY_CHARS]}"
                    )
                    raise GenerationFailure(stage, FailureCause.HTTP_STATUS, status_code=response.status)

                try:
                    body = raw_body.decode("utf-8")
                except UnicodeDecodeError as e:
                    logger.error(f"{stage.value} response from {url} is not valid UTF-8: {e}")
                    raise GenerationFailure(stage, FailureCause.TRANSPORT, "response body is not valid UTF-8") from e

                logger.debug(f"{stage.value} request to {url} succeeded ({len(body)} chars)")
                return body

        except asyncio.TimeoutError as e:
            logger.error(f"{stage.value} request to {url} timed out after {timeout_seconds}s")
            raise GenerationFailure(stage, FailureCause.TIMEOUT, f"no response within {timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error during {stage.value} request to {url}: {e}")
            raise GenerationFailure(stage, FailureCause.TRANSPORT, type(e).__name__) from e
