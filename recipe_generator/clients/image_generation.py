"""Image generation client for recipe photos.

Every request runs under a hard deadline (IMAGE_TIMEOUT_SECONDS). When the
deadline elapses the in-flight request is abandoned and cancelled, and the
caller gets a TIMEOUT failure instead of blocking.
"""

import asyncio
from typing import Optional

import aiohttp

from recipe_generator.clients.base import GenerationServiceClient
from recipe_generator.utils.config import ALLOWED_IMAGE_SIZES, Config
from recipe_generator.utils.deadline import run_with_deadline
from recipe_generator.utils.errors import ClientStage, FailureCause, GenerationFailure
from recipe_generator.utils.logger import logger


MAX_IMAGE_COUNT = 10


class ImageGenerationClient(GenerationServiceClient):
    """Sends image-generation requests: {prompt, n, size} -> {data: [{url}]}."""

    stage = ClientStage.IMAGE

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None) -> None:
        super().__init__(config, session)
        self.endpoint = config.IMAGE_GENERATION_ENDPOINT
        self.timeout_seconds = config.IMAGE_TIMEOUT_SECONDS
        self.image_count = config.IMAGE_COUNT
        self.image_size = config.IMAGE_SIZE

    async def generate_image(self, prompt: str, count: Optional[int] = None, size: Optional[str] = None) -> str:
        """Request image generation and return the raw response body.

        Args:
            prompt: Image prompt (non-empty).
            count: Number of images, 1-10. Defaults to IMAGE_COUNT.
            size: One of ALLOWED_IMAGE_SIZES. Defaults to IMAGE_SIZE.

        Returns:
            Raw JSON response text.

        Raises:
            ValueError: If prompt is blank or count/size are out of bounds.
            GenerationFailure: stage=IMAGE, on deadline expiry, transport error or non-2xx status.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        count = self.image_count if count is None else count
        size = size or self.image_size
        if not 1 <= count <= MAX_IMAGE_COUNT:
            raise ValueError(f"count must be between 1 and {MAX_IMAGE_COUNT}, got: {count}")
        if size not in ALLOWED_IMAGE_SIZES:
            raise ValueError(f"size must be one of {', '.join(ALLOWED_IMAGE_SIZES)}, got: {size}")

        payload = {"prompt": prompt, "n": count, "size": size}

        logger.debug(f"Requesting {count} image(s) of size {size} (deadline {self.timeout_seconds}s)")
        try:
            return await run_with_deadline(
                self._post_json(self.endpoint, payload, self.timeout_seconds),
                self.timeout_seconds,
                operation_name="Image generation",
            )
        except asyncio.TimeoutError as e:
            raise GenerationFailure(
                self.stage, FailureCause.TIMEOUT, f"no response within {self.timeout_seconds}s"
            ) from e
