"""Unit tests for Pydantic models validation."""

import pytest
from pydantic import ValidationError

from recipe_generator.models.models import (
    ChatModelParams,
    GeneratedMealResult,
    NutritionalInformation,
    ParsedRecipe,
    RawContentShape,
)


class TestChatModelParams:
    """Test ChatModelParams model validation."""

    def test_from_config(self, config):
        """Test that parameters are copied from Config."""
        params = ChatModelParams.from_config(config)

        assert params.model == "gpt-4o-mini"
        assert params.max_tokens == config.MAX_TOKENS
        assert params.n == config.CHOICES_COUNT

    @pytest.mark.parametrize(
        "field, value",
        [("model", ""), ("max_tokens", 0), ("temperature", 2.5), ("top_p", 0.0), ("n", 11)],
    )
    def test_rejects_out_of_range(self, field, value):
        """Test bounds on each parameter."""
        values = {"model": "gpt-4o-mini", "max_tokens": 1500, "temperature": 0.7, "top_p": 1.0, "n": 1}
        values[field] = value

        with pytest.raises(ValidationError):
            ChatModelParams(**values)


class TestParsedRecipe:
    """Test ParsedRecipe model validation."""

    def test_list_fields_default_to_empty(self):
        """Test that list fields are never None."""
        recipe = ParsedRecipe(meal_name="Toast")

        assert recipe.ingredients_list == []
        assert recipe.instructions == []
        assert recipe.nutrition is None
        assert recipe.content_shape is RawContentShape.STRUCTURED_JSON

    @pytest.mark.parametrize("meal_name", ["", "   "])
    def test_rejects_blank_meal_name(self, meal_name):
        with pytest.raises(ValidationError):
            ParsedRecipe(meal_name=meal_name)

    def test_is_frozen(self):
        recipe = ParsedRecipe(meal_name="Toast")

        with pytest.raises(ValidationError):
            recipe.meal_name = "Bagel"

    def test_nutrition_rejects_negative_calories(self):
        with pytest.raises(ValidationError):
            NutritionalInformation(calories=-1, protein="1 g", carbohydrates="1 g", fat="1 g")


class TestGeneratedMealResult:
    """Test GeneratedMealResult model validation."""

    def test_ingredients_are_copied(self):
        """Test that the result does not share the caller's list."""
        ingredients = ["bread"]
        result = GeneratedMealResult(
            meal_name="Toast", original_ingredients=ingredients, parsed_recipe=ParsedRecipe(meal_name="Toast")
        )

        ingredients.append("butter")

        assert result.original_ingredients == ["bread"]
        assert result.durable_image_url is None

    def test_serializes_to_json(self):
        result = GeneratedMealResult(
            meal_name="Toast",
            original_ingredients=["bread"],
            parsed_recipe=ParsedRecipe(meal_name="Toast"),
            durable_image_url="https://cdn.example.com/t.png",
        )

        data = result.model_dump(mode="json")

        assert data["parsed_recipe"]["content_shape"] == "STRUCTURED_JSON"
        assert data["durable_image_url"] == "https://cdn.example.com/t.png"
