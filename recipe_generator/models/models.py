"""Data models for the recipe generation pipeline.

Defines Pydantic models for the values that flow through a pipeline run.
All models use Pydantic v2 and are frozen: once a run assembles a result,
nothing downstream can mutate it.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recipe_generator.utils.config import Config


class RawContentShape(str, Enum):
    """Shape of the model-authored `content` string, resolved by the parser."""

    STRUCTURED_JSON = "STRUCTURED_JSON"
    FENCED_JSON = "FENCED_JSON"
    LEGACY_LINES = "LEGACY_LINES"


class ChatModelParams(BaseModel):
    """Chat completion parameters, derived once from Config."""

    model_config = ConfigDict(frozen=True)

    model: Annotated[str, Field(min_length=1, description="Chat model identifier")]
    max_tokens: Annotated[int, Field(ge=1, description="Maximum tokens in the completion")]
    temperature: Annotated[float, Field(ge=0.0, le=2.0)]
    top_p: Annotated[float, Field(gt=0.0, le=1.0)]
    n: Annotated[int, Field(ge=1, le=10, description="Number of choices requested")]

    @classmethod
    def from_config(cls, config: Config) -> "ChatModelParams":
        return cls(
            model=config.CHAT_MODEL,
            max_tokens=config.MAX_TOKENS,
            temperature=config.TEMPERATURE,
            top_p=config.TOP_P,
            n=config.CHOICES_COUNT,
        )


class MacrosPerServing(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    protein: str
    carbohydrates: str
    fat: str


class NutritionalInformation(BaseModel):
    """Nutrition block of a generated recipe. Amounts are free text (e.g. "32 g")."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    calories: Annotated[int, Field(ge=0, description="Calories per serving")] = 0
    protein: Annotated[str, Field(min_length=1)]
    carbohydrates: Annotated[str, Field(min_length=1)]
    fat: Annotated[str, Field(min_length=1)]
    macros_per_serving: Optional[MacrosPerServing] = None


class ParsedRecipe(BaseModel):
    """Structured recipe extracted from the chat completion response.

    List fields are never None; an empty list is a valid value. Recipes parsed
    from the legacy line format carry their body in `recipe_details` and have
    empty list fields.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    meal_name: Annotated[str, Field(min_length=1, description="Name of the dish (non-blank)")]
    ingredients_list: List[str] = Field(default_factory=list)
    equipment_needed: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    serving_suggestions: List[str] = Field(default_factory=list)
    nutrition: Optional[NutritionalInformation] = None
    recipe_details: Optional[str] = Field(None, description="Unstructured body (legacy format only)")
    content_shape: RawContentShape = RawContentShape.STRUCTURED_JSON


class GeneratedMealResult(BaseModel):
    """Outcome of one successful pipeline run. Owned by the caller."""

    model_config = ConfigDict(frozen=True)

    meal_name: Annotated[str, Field(min_length=1)]
    original_ingredients: List[str]
    parsed_recipe: ParsedRecipe
    durable_image_url: Optional[str] = Field(
        None, description="Permanent image URL, None when image generation was skipped"
    )

    @field_validator("original_ingredients")
    @classmethod
    def copy_ingredients(cls, v: List[str]) -> List[str]:
        """Detach from the caller's list so later edits to it cannot leak in."""
        return list(v)
