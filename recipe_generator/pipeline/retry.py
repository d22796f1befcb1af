"""Calling-layer retry for generate_meal.

The pipeline itself never retries. Re-running a whole pipeline is safe
because generate_meal persists nothing, so retries live here and apply
uniformly to every stage.

**Retry Strategy:**
- Transient failures (timeouts, transport errors, HTTP 429/5xx): retry with
  a fixed or exponential delay
- Invalid input and parse failures: fail immediately without retry
"""

import asyncio
from typing import Sequence

from recipe_generator.models.models import GeneratedMealResult
from recipe_generator.pipeline.orchestrator import RecipeGenerationOrchestrator
from recipe_generator.utils.errors import AIGenerationError
from recipe_generator.utils.logger import logger


async def generate_meal_with_retries(
    orchestrator: RecipeGenerationOrchestrator,
    ingredients: Sequence[str],
    max_retries: int = 1,
    delay_seconds: float = 2,
    exponential_backoff: bool = True,
) -> GeneratedMealResult:
    """Run generate_meal, re-running it on transient AIGenerationErrors.

    Args:
        orchestrator: Pipeline to run.
        ingredients: Ingredient list, passed through unchanged.
        max_retries: Total attempts (1 = no retry).
        delay_seconds: Delay before the second attempt.
        exponential_backoff: Double the delay after each failed attempt.

    Raises:
        InvalidIngredientsError: Immediately, never retried.
        AIGenerationError: The last failure when attempts are exhausted or it is not transient.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got: {max_retries}")

    delay = delay_seconds
    for attempt in range(1, max_retries + 1):
        try:
            return await orchestrator.generate_meal(ingredients)
        except AIGenerationError as e:
            if not e.is_transient or attempt >= max_retries:
                raise
            logger.warning(
                f"Transient failure at stage {e.stage.value} ({e.cause.value}), "
                f"retrying in {delay}s... (attempt {attempt}/{max_retries})"
            )
            await asyncio.sleep(delay)
            if exponential_backoff:
                delay *= 2

    # Unreachable: the loop either returns or raises
    raise RuntimeError("retry loop exited without a result")
