"""Pipeline initialization factory.

Wires the clients, the durable image store and the relocation service from
one validated Config.
"""

from typing import Optional

from recipe_generator.clients.chat_completion import ChatCompletionClient
from recipe_generator.clients.image_generation import ImageGenerationClient
from recipe_generator.pipeline.orchestrator import RecipeGenerationOrchestrator
from recipe_generator.storage.relocation import ImageStore, LocalImageStore, StorageImageRelocationService
from recipe_generator.utils.config import Config
from recipe_generator.utils.logger import logger


def initialize_orchestrator(config: Config, image_store: Optional[ImageStore] = None) -> RecipeGenerationOrchestrator:
    """Build a ready-to-use orchestrator.

    Args:
        config: Validated configuration (see load_config).
        image_store: Durable store for generated images. Defaults to a
            LocalImageStore under IMAGE_STORAGE_DIR.

    Returns:
        Orchestrator. Use it as an async context manager, or call aclose(),
        to release HTTP sessions.
    """
    logger.info("Initializing recipe generation pipeline...")

    chat_client = ChatCompletionClient(config)
    image_client = ImageGenerationClient(config)
    logger.info(
        f"✓ Clients configured (chat model: {config.CHAT_MODEL}, image size: {config.IMAGE_SIZE}, "
        f"timeouts: chat {config.API_TIMEOUT_SECONDS}s / image {config.IMAGE_TIMEOUT_SECONDS}s)"
    )

    if image_store is None:
        image_store = LocalImageStore(config.IMAGE_STORAGE_DIR, config.IMAGE_PUBLIC_BASE_URL)
        logger.info(f"✓ Using local image storage: {config.IMAGE_STORAGE_DIR}")

    relocation_service = StorageImageRelocationService(config, image_store)

    return RecipeGenerationOrchestrator(chat_client, image_client, relocation_service)
