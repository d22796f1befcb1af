#!/usr/bin/env python3
"""Ad hoc runner for the recipe generation pipeline.

Generate one recipe directly from the command line.

Usage:
    python query.py chicken rice broccoli
    python query.py "green beans" "olive oil" garlic
    python query.py --debug chicken rice  # Show full JSON result

Features:
- One pipeline run per invocation (with the configured retry policy)
- Recipe rendered as markdown
- Debug mode to display the full result JSON
- Failures printed as the caller-facing error response, exit code 1
"""

import asyncio
import sys

from rich.console import Console
from rich.markdown import Markdown

from recipe_generator.models.models import GeneratedMealResult
from recipe_generator.pipeline.factory import initialize_orchestrator
from recipe_generator.pipeline.retry import generate_meal_with_retries
from recipe_generator.utils.config import Config, load_config
from recipe_generator.utils.errors import AIGenerationError, InvalidIngredientsError, to_error_response
from recipe_generator.utils.logger import logger

console = Console()


def render_markdown(result: GeneratedMealResult) -> str:
    """Render a generated meal as markdown."""
    recipe = result.parsed_recipe
    lines = [f"# {result.meal_name}", ""]

    if result.durable_image_url:
        lines += [f"![{result.meal_name}]({result.durable_image_url})", ""]

    lines += [f"_Made with: {', '.join(result.original_ingredients)}_", ""]

    sections = (
        ("Ingredients", recipe.ingredients_list, "-"),
        ("Equipment", recipe.equipment_needed, "-"),
        ("Instructions", recipe.instructions, "1."),
        ("Serving Suggestions", recipe.serving_suggestions, "-"),
    )
    for title, items, bullet in sections:
        if items:
            lines.append(f"## {title}")
            lines += [f"{bullet} {item}" for item in items]
            lines.append("")

    if recipe.nutrition:
        n = recipe.nutrition
        lines += [
            "## Nutrition (per serving)",
            f"- Calories: {n.calories}",
            f"- Protein: {n.protein}",
            f"- Carbohydrates: {n.carbohydrates}",
            f"- Fat: {n.fat}",
            "",
        ]

    if recipe.recipe_details:
        lines += ["## Recipe", recipe.recipe_details, ""]

    return "\n".join(lines)


async def _generate(config: Config, ingredients: list[str]) -> GeneratedMealResult:
    async with initialize_orchestrator(config) as orchestrator:
        return await generate_meal_with_retries(
            orchestrator,
            ingredients,
            max_retries=config.MAX_RETRIES,
            delay_seconds=config.DELAY_BETWEEN_RETRIES,
            exponential_backoff=config.EXPONENTIAL_BACKOFF,
        )


def run_query(ingredients: list[str], debug: bool = False) -> None:
    """Generate a recipe for the given ingredients and print it.

    Args:
        ingredients: Ingredient strings, one per command-line argument.
        debug: If True, display the full result JSON.
    """
    try:
        config = load_config()
    except ValueError as e:
        console.print(f"[red]✗ Configuration error: {e}[/red]")
        sys.exit(1)

    try:
        logger.info(f"Generating recipe for: {', '.join(ingredients)}")
        result = asyncio.run(_generate(config, ingredients))
    except KeyboardInterrupt:
        logger.info("\nGeneration interrupted by user.")
        sys.exit(0)
    except (InvalidIngredientsError, AIGenerationError) as e:
        error = to_error_response(e)
        stage = f" ({error.stage})" if error.stage else ""
        console.print(f"[red]✗ {error.status}{stage}: {error.message}[/red]")
        sys.exit(1)

    console.print()

    if debug:
        console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=result.model_dump(mode="json"))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    console.print(Markdown(render_markdown(result)))


if __name__ == "__main__":
    args = sys.argv[1:]
    debug_mode = False

    while args and args[0].startswith("--"):
        if args[0] == "--debug":
            debug_mode = True
            args = args[1:]
        else:
            print(f"Unknown flag: {args[0]}")
            sys.exit(1)

    if not args:
        print("Usage: python query.py [--debug] <ingredient> [<ingredient> ...]")
        print("")
        print("Examples:")
        print("  python query.py chicken rice broccoli")
        print("  python query.py --debug \"green beans\" garlic")
        sys.exit(1)

    run_query(args, debug=debug_mode)
