"""Unit tests for the command-line runner."""

from unittest.mock import AsyncMock, patch

import pytest

from query import render_markdown, run_query
from recipe_generator.models.models import GeneratedMealResult, NutritionalInformation, ParsedRecipe, RawContentShape
from recipe_generator.utils.errors import AIGenerationError, ErrorStage, FailureCause, InvalidIngredientsError


@pytest.fixture
def result():
    recipe = ParsedRecipe(
        meal_name="Chicken Rice Bowl",
        ingredients_list=["200 g chicken", "150 g rice"],
        instructions=["Cook rice.", "Fry chicken."],
        nutrition=NutritionalInformation(calories=620, protein="45 g", carbohydrates="70 g", fat="14 g"),
    )
    return GeneratedMealResult(
        meal_name="Chicken Rice Bowl",
        original_ingredients=["chicken", "rice"],
        parsed_recipe=recipe,
        durable_image_url="https://cdn.example.com/abc.png",
    )


class TestRenderMarkdown:
    """Test render_markdown()."""

    def test_renders_sections(self, result):
        markdown = render_markdown(result)

        assert markdown.startswith("# Chicken Rice Bowl")
        assert "![Chicken Rice Bowl](https://cdn.example.com/abc.png)" in markdown
        assert "_Made with: chicken, rice_" in markdown
        assert "## Ingredients\n- 200 g chicken\n- 150 g rice" in markdown
        assert "1. Cook rice." in markdown
        assert "- Calories: 620" in markdown
        assert "## Equipment" not in markdown

    def test_legacy_recipe_without_image(self):
        recipe = ParsedRecipe(
            meal_name="Toast",
            recipe_details="Toast the bread.",
            content_shape=RawContentShape.LEGACY_LINES,
        )
        result = GeneratedMealResult(meal_name="Toast", original_ingredients=["bread"], parsed_recipe=recipe)

        markdown = render_markdown(result)

        assert "![" not in markdown
        assert "## Recipe\nToast the bread." in markdown


class TestRunQuery:
    """Test run_query() exit behaviour."""

    @pytest.fixture(autouse=True)
    def config(self):
        with patch("query.load_config") as load_config:
            yield load_config.return_value

    def test_prints_recipe(self, result, config):
        generate = AsyncMock(return_value=result)
        with patch("query._generate", new=generate), patch("query.console") as console:
            run_query(["chicken", "rice"])

        generate.assert_awaited_once_with(config, ["chicken", "rice"])
        assert console.print.called

    @pytest.mark.parametrize(
        "error",
        [
            InvalidIngredientsError("Ingredients list cannot be empty."),
            AIGenerationError(ErrorStage.IMAGE, FailureCause.TIMEOUT),
            AIGenerationError(ErrorStage.TEXT, FailureCause.TRANSPORT),
        ],
    )
    def test_pipeline_failures_exit_with_status_1(self, error):
        with patch("query._generate", new=AsyncMock(side_effect=error)), patch("query.console") as console:
            with pytest.raises(SystemExit) as exc_info:
                run_query(["chicken"])

        assert exc_info.value.code == 1
        printed = console.print.call_args.args[0]
        assert "Configuration error" not in printed
        assert str(error) in printed

    def test_invalid_config_exits_before_generation(self):
        generate = AsyncMock()
        with patch("query.load_config", side_effect=ValueError("OPENAI_API_KEY environment variable is required")), \
                patch("query._generate", new=generate), patch("query.console") as console:
            with pytest.raises(SystemExit) as exc_info:
                run_query(["chicken"])

        assert exc_info.value.code == 1
        assert "Configuration error" in console.print.call_args.args[0]
        generate.assert_not_called()

    def test_unexpected_value_error_is_not_reported_as_config_error(self):
        """Test that only load_config() failures are labelled as configuration errors."""
        with patch("query._generate", new=AsyncMock(side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "bad"))), \
                patch("query.console"):
            with pytest.raises(UnicodeDecodeError):
                run_query(["chicken"])
