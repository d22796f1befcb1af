"""Chat completion client for recipe text generation."""

from typing import Optional

import aiohttp

from recipe_generator.clients.base import GenerationServiceClient
from recipe_generator.models.models import ChatModelParams
from recipe_generator.utils.config import Config
from recipe_generator.utils.errors import ClientStage
from recipe_generator.utils.logger import logger


class ChatCompletionClient(GenerationServiceClient):
    """Sends chat-style completion requests to the text-generation service.

    Request body:
        {model, messages: [{role: system}, {role: user}], max_tokens, temperature, top_p, n}
    """

    stage = ClientStage.CHAT

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None) -> None:
        super().__init__(config, session)
        self.endpoint = config.CHAT_COMPLETION_ENDPOINT
        self.timeout_seconds = config.API_TIMEOUT_SECONDS
        self.system_message = config.SYSTEM_MESSAGE
        self.model_params = ChatModelParams.from_config(config)

    def build_request(self, prompt: str, system_message: str, model_params: ChatModelParams) -> dict:
        return {
            "model": model_params.model,
            "messages": [
                {"role": "system", "content": system_message},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": model_params.max_tokens,
            "temperature": model_params.temperature,
            "top_p": model_params.top_p,
            "n": model_params.n,
        }

    async def complete(
        self,
        prompt: str,
        system_message: Optional[str] = None,
        model_params: Optional[ChatModelParams] = None,
    ) -> str:
        """Request a completion and return the raw response body.

        Args:
            prompt: User prompt (non-empty).
            system_message: System message. Defaults to the configured one.
            model_params: Model parameters. Defaults to the configured ones.

        Returns:
            Raw JSON response text, to be handed to the response parser.

        Raises:
            ValueError: If prompt is blank.
            GenerationFailure: stage=CHAT, on timeout, transport error or non-2xx status.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        params = model_params or self.model_params
        payload = self.build_request(prompt, system_message or self.system_message, params)

        logger.debug(f"Requesting chat completion (model={params.model}, max_tokens={params.max_tokens})")
        return await self._post_json(self.endpoint, payload, self.timeout_seconds)
