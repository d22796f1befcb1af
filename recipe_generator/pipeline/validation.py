"""Ingredient list validation."""

import re
from typing import Sequence

from recipe_generator.utils.errors import InvalidIngredientsError


# Letters, digits, space, comma, period, hyphen, parentheses, percent, ampersand; 1-50 chars
VALID_INGREDIENT_PATTERN = re.compile(r"^[A-Za-z0-9 ,.\-()%&]{1,50}$")

INVALID_INGREDIENTS_MESSAGE = "Ingredients list cannot be empty."
INVALID_INGREDIENT_FORMAT = "Invalid ingredient format: '{ingredient}'"


def validate_ingredients(ingredients: Sequence[str]) -> list[str]:
    """Check an ingredient list before any network call is made.

    Elements are kept as given: not trimmed, not deduplicated, order preserved.

    Returns:
        A new list with the same elements.

    Raises:
        InvalidIngredientsError: If the list is empty or an element is not a
            non-blank string matching VALID_INGREDIENT_PATTERN.
    """
    if ingredients is None or isinstance(ingredients, (str, bytes)) or len(ingredients) == 0:
        raise InvalidIngredientsError(INVALID_INGREDIENTS_MESSAGE)

    for ingredient in ingredients:
        if (
            not isinstance(ingredient, str)
            or not ingredient.strip()
            or not VALID_INGREDIENT_PATTERN.fullmatch(ingredient)
        ):
            raise InvalidIngredientsError(INVALID_INGREDIENT_FORMAT.format(ingredient=ingredient), ingredient)

    return list(ingredients)
