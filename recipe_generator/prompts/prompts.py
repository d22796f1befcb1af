"""Prompt templates for recipe text and recipe image generation.

Both builders are pure functions: the same input always yields the same
prompt string, and nothing is persisted.
"""

import re
from typing import Sequence


RECIPE_PROMPT_TEMPLATE = """You are a professional chef with expertise in creating delicious and nutritious recipes.
Generate a detailed recipe with exact measurements, clear cooking steps and nutritional information per serving.
Include a creative name for the dish that reflects its ingredients and style.

Create a recipe using these ingredients: {ingredients}.

Respond with a JSON object only, using exactly this structure:
{{
    "mealName": "name of the dish",
    "ingredientsList": ["each ingredient with its measurement"],
    "equipmentNeeded": ["required kitchen equipment"],
    "instructions": ["step by step instructions"],
    "servingSuggestions": ["serving suggestions"],
    "nutritionalInformation": {{
        "calories": 0,
        "protein": "amount in grams",
        "carbohydrates": "amount in grams",
        "fat": "amount in grams"
    }}
}}"""

IMAGE_PROMPT_TEMPLATE = (
    "Professional food photography of {meal_name}, on a beautiful plate, "
    "restaurant quality, high resolution"
)

_MEAL_NAME_DISALLOWED = re.compile(r"[^A-Za-z0-9 -]")


def build_recipe_prompt(ingredients: Sequence[str]) -> str:
    """Build the chat prompt asking for a JSON recipe.

    Ingredients are joined with ", " in input order; duplicates are kept.

    Args:
        ingredients: Validated ingredient strings.

    Returns:
        Prompt text.
    """
    return RECIPE_PROMPT_TEMPLATE.format(ingredients=", ".join(ingredients))


def sanitize_meal_name(meal_name: str) -> str:
    """Drop everything outside [A-Za-z0-9 -] and trim."""
    return _MEAL_NAME_DISALLOWED.sub("", meal_name or "").strip()


def build_image_prompt(meal_name: str) -> str:
    """Build the image-generation prompt for a meal.

    Never fails: an empty sanitized name still yields a prompt. Callers check
    sanitize_meal_name() first to decide whether to request an image at all.
    """
    return IMAGE_PROMPT_TEMPLATE.format(meal_name=sanitize_meal_name(meal_name))
