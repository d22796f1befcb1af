"""Recipe generation pipeline.

One generate_meal() call is one pipeline run, a linear state machine:

    VALIDATING -> PROMPTING -> GENERATING_TEXT -> PARSING_TEXT -> GENERATING_IMAGE
      -> PARSING_IMAGE -> RELOCATING_IMAGE -> ASSEMBLED

Any state can end in FAILED. Failures after validation are raised as
AIGenerationError carrying the stage; no partial result is ever returned.

Image policy:
- A meal name that sanitizes to blank skips the three image states and the
  run succeeds with durable_image_url=None.
- An image-generation timeout fails the run (stage=IMAGE, cause=TIMEOUT).

The orchestrator holds no per-run state, so concurrent runs are independent.
"""

import asyncio
import uuid
from enum import Enum
from typing import Optional, Sequence

from recipe_generator.clients.chat_completion import ChatCompletionClient
from recipe_generator.clients.image_generation import ImageGenerationClient
from recipe_generator.models.models import GeneratedMealResult, ParsedRecipe
from recipe_generator.parsing.response_parser import extract_image_url, parse_recipe_response
from recipe_generator.pipeline.validation import validate_ingredients
from recipe_generator.prompts.prompts import build_image_prompt, build_recipe_prompt, sanitize_meal_name
from recipe_generator.storage.relocation import ImageRelocationService
from recipe_generator.utils.errors import (
    AIGenerationError,
    ErrorStage,
    FailureCause,
    GenerationFailure,
    InvalidIngredientsError,
    ParseFailure,
    RelocationError,
)
from recipe_generator.utils.logger import logger


class PipelineStage(str, Enum):
    VALIDATING = "VALIDATING"
    PROMPTING = "PROMPTING"
    GENERATING_TEXT = "GENERATING_TEXT"
    PARSING_TEXT = "PARSING_TEXT"
    GENERATING_IMAGE = "GENERATING_IMAGE"
    PARSING_IMAGE = "PARSING_IMAGE"
    RELOCATING_IMAGE = "RELOCATING_IMAGE"
    ASSEMBLED = "ASSEMBLED"
    FAILED = "FAILED"


class PipelineRun:
    """Position of a single run in the state machine."""

    def __init__(self) -> None:
        self.run_id = uuid.uuid4().hex[:12]
        self.stage = PipelineStage.VALIDATING
        self.history: list[PipelineStage] = [PipelineStage.VALIDATING]

    def advance(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.history.append(stage)
        logger.debug(f"Pipeline stage -> {stage.value}", extra={"run_id": self.run_id, "stage": stage.value})


class RecipeGenerationOrchestrator:
    """Turns an ingredient list into a GeneratedMealResult."""

    def __init__(
        self,
        chat_client: ChatCompletionClient,
        image_client: ImageGenerationClient,
        relocation_service: ImageRelocationService,
    ) -> None:
        self.chat_client = chat_client
        self.image_client = image_client
        self.relocation_service = relocation_service

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP sessions held by the clients and the relocation service."""
        await self.chat_client.disconnect()
        await self.image_client.disconnect()
        disconnect = getattr(self.relocation_service, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    def _fail(self, run: PipelineRun, stage: ErrorStage, cause: FailureCause, error: Exception) -> AIGenerationError:
        failed_at = run.stage
        run.advance(PipelineStage.FAILED)
        logger.error(
            f"Pipeline failed in {failed_at.value} (stage={stage.value}, cause={cause.value}): {error}",
            extra={"run_id": run.run_id, "stage": failed_at.value},
        )
        return AIGenerationError(stage, cause, status_code=getattr(error, "status_code", None))

    async def generate_meal(self, ingredients: Sequence[str]) -> GeneratedMealResult:
        """Run the full pipeline for one ingredient list.

        Args:
            ingredients: Ingredient strings, in the order they should appear in the prompt.

        Returns:
            The assembled result. durable_image_url is None only when the meal
            name sanitizes to blank.

        Raises:
            InvalidIngredientsError: Before any network call, if the list is invalid.
            AIGenerationError: If generation, parsing or relocation fails.
        """
        run = PipelineRun()
        try:
            return await self._run(run, ingredients)
        except asyncio.CancelledError:
            logger.warning(
                f"Pipeline cancelled in {run.stage.value}",
                extra={"run_id": run.run_id, "stage": run.stage.value},
            )
            run.advance(PipelineStage.FAILED)
            raise

    async def _run(self, run: PipelineRun, ingredients: Sequence[str]) -> GeneratedMealResult:
        try:
            valid_ingredients = validate_ingredients(ingredients)
        except InvalidIngredientsError as e:
            run.advance(PipelineStage.FAILED)
            logger.warning(f"Rejected ingredients: {e}", extra={"run_id": run.run_id, "stage": "VALIDATING"})
            raise

        logger.info(
            f"Generating meal for {len(valid_ingredients)} ingredient(s): {', '.join(valid_ingredients)}",
            extra={"run_id": run.run_id},
        )

        run.advance(PipelineStage.PROMPTING)
        prompt = build_recipe_prompt(valid_ingredients)

        run.advance(PipelineStage.GENERATING_TEXT)
        try:
            raw_text = await self.chat_client.complete(prompt)
        except GenerationFailure as e:
            raise self._fail(run, ErrorStage.TEXT, e.cause, e) from e

        run.advance(PipelineStage.PARSING_TEXT)
        try:
            recipe = parse_recipe_response(raw_text)
        except ParseFailure as e:
            raise self._fail(run, ErrorStage.PARSE_TEXT, FailureCause.PARSE, e) from e

        logger.info(
            f"Recipe parsed: {recipe.meal_name} ({recipe.content_shape.value})",
            extra={"run_id": run.run_id},
        )

        durable_image_url = await self._generate_durable_image(run, recipe)

        run.advance(PipelineStage.ASSEMBLED)
        return GeneratedMealResult(
            meal_name=recipe.meal_name,
            original_ingredients=valid_ingredients,
            parsed_recipe=recipe,
            durable_image_url=durable_image_url,
        )

    async def _generate_durable_image(self, run: PipelineRun, recipe: ParsedRecipe) -> Optional[str]:
        if not sanitize_meal_name(recipe.meal_name):
            logger.warning(
                f"Meal name {recipe.meal_name!r} has no usable characters, skipping image generation",
                extra={"run_id": run.run_id},
            )
            return None

        run.advance(PipelineStage.GENERATING_IMAGE)
        try:
            raw_image = await self.image_client.generate_image(build_image_prompt(recipe.meal_name))
        except GenerationFailure as e:
            raise self._fail(run, ErrorStage.IMAGE, e.cause, e) from e

        run.advance(PipelineStage.PARSING_IMAGE)
        try:
            transient_url = extract_image_url(raw_image)
        except ParseFailure as e:
            raise self._fail(run, ErrorStage.PARSE_IMAGE, FailureCause.PARSE, e) from e

        run.advance(PipelineStage.RELOCATING_IMAGE)
        try:
            return await self.relocation_service.relocate(transient_url)
        except RelocationError as e:
            raise self._fail(run, ErrorStage.RELOCATE, FailureCause.RELOCATION, e) from e
