"""Parsing of raw generation-service responses into domain values.

Recipe text responses go through these steps:
1. Parse the raw body as JSON                       -> INVALID_JSON
2. Read choices[0].message.content                  -> NO_CHOICES / MISSING_CONTENT
3. Resolve the content shape in a fixed order:
   - strip a leading ```json fence and a trailing ``` fence, then trim
   - fenced, or starting with '{' / '[' -> must be a JSON object (INVALID_JSON otherwise)
   - a ```json block holding an object after leading prose -> that object
   - anything else -> legacy "Recipe Name: <name>\\n<details>" lines
4. Extract fields: mealName is required, the four list fields must be
   arrays, nutritionalInformation is optional.

Image responses: data must be a non-empty array whose first element has a
non-blank url.

Everything here is a pure function of its input: no state, no I/O.
"""

import json
import math
import re
from typing import Any, Optional

from recipe_generator.models.models import (
    MacrosPerServing,
    NutritionalInformation,
    ParsedRecipe,
    RawContentShape,
)
from recipe_generator.utils.errors import ParseFailure, ParseReason


LEADING_FENCE = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
TRAILING_FENCE = re.compile(r"\s*```\s*$")
# A fenced object somewhere inside prose ("Here is your recipe: ```json {...} ```")
EMBEDDED_FENCED_OBJECT = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.IGNORECASE | re.DOTALL)

LEGACY_NAME_PREFIXES = ("Recipe Name:", "Recipe:")

REQUIRED_ARRAY_FIELDS = {
    "ingredientsList": "ingredients_list",
    "equipmentNeeded": "equipment_needed",
    "instructions": "instructions",
    "servingSuggestions": "serving_suggestions",
}


def _load_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseFailure(ParseReason.INVALID_JSON, f"{what} is not valid JSON: {e}") from e


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_text(value: Any) -> str:
    """Render a JSON scalar as text (numbers and booleans included)."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def extract_message_content(raw_response: str) -> str:
    """Return choices[0].message.content from a chat completion body.

    Raises:
        ParseFailure: INVALID_JSON, NO_CHOICES or MISSING_CONTENT.
    """
    root = _load_json(raw_response, "Chat completion response")
    if not isinstance(root, dict):
        raise ParseFailure(ParseReason.NO_CHOICES, "response is not a JSON object")

    choices = root.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ParseFailure(ParseReason.NO_CHOICES, "no choices found in the response")

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise ParseFailure(ParseReason.MISSING_CONTENT, "message node not found in choices[0]")

    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ParseFailure(ParseReason.MISSING_CONTENT, "content is missing or blank")

    return content


def strip_code_fences(content: str) -> tuple[str, bool]:
    """Remove markdown code fences around a JSON payload.

    Returns:
        (stripped content, whether a leading fence was found)
    """
    stripped, fenced = LEADING_FENCE.subn("", content, count=1)
    stripped = TRAILING_FENCE.sub("", stripped)
    return stripped.strip(), bool(fenced)


def resolve_content_shape(content: str) -> tuple[RawContentShape, str]:
    """Decide how model-authored content must be parsed.

    Returns:
        (shape, text to parse). For JSON shapes the text has its fences removed.
    """
    stripped, fenced = strip_code_fences(content)
    if fenced:
        return RawContentShape.FENCED_JSON, stripped
    if stripped.startswith(("{", "[")):
        return RawContentShape.STRUCTURED_JSON, stripped
    embedded = EMBEDDED_FENCED_OBJECT.search(content)
    if embedded:
        return RawContentShape.FENCED_JSON, embedded.group(1)
    return RawContentShape.LEGACY_LINES, content.strip()


def _extract_string_list(node: dict, field: str) -> list[str]:
    value = node.get(field)
    if not isinstance(value, list):
        raise ParseFailure(ParseReason.MISSING_ARRAY_FIELD, f"expected an array for {field}", field=field)
    return [_as_text(item) for item in value]


def _extract_required_text(node: dict, field: str, reason: ParseReason) -> str:
    value = node.get(field)
    if _is_blank(value) or isinstance(value, (dict, list)):
        raise ParseFailure(reason, f"missing or blank field: {field}", field=field)
    return _as_text(value).strip()


def _tolerant_int(value: Any) -> int:
    """Read calories the lenient way: ints, floats and numeric strings; anything else is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str):
        match = re.match(r"^\s*(\d+)(?:\.\d+)?", value)
        if match:
            return int(match.group(1))
    return 0


def _parse_nutrition(node: Any) -> Optional[NutritionalInformation]:
    if node is None:
        return None
    if not isinstance(node, dict):
        raise ParseFailure(
            ParseReason.INVALID_NUTRITION, "expected an object", field="nutritionalInformation"
        )

    macros = None
    macros_node = node.get("macrosPerServing")
    if isinstance(macros_node, dict):
        macros = MacrosPerServing(
            protein=_extract_required_text(macros_node, "protein", ParseReason.INVALID_NUTRITION),
            carbohydrates=_extract_required_text(macros_node, "carbohydrates", ParseReason.INVALID_NUTRITION),
            fat=_extract_required_text(macros_node, "fat", ParseReason.INVALID_NUTRITION),
        )

    return NutritionalInformation(
        calories=_tolerant_int(node.get("calories")),
        protein=_extract_required_text(node, "protein", ParseReason.INVALID_NUTRITION),
        carbohydrates=_extract_required_text(node, "carbohydrates", ParseReason.INVALID_NUTRITION),
        fat=_extract_required_text(node, "fat", ParseReason.INVALID_NUTRITION),
        macros_per_serving=macros,
    )


def _parse_structured(text: str, shape: RawContentShape) -> ParsedRecipe:
    recipe = _load_json(text, "Recipe content")
    if not isinstance(recipe, dict):
        raise ParseFailure(ParseReason.INVALID_JSON, "recipe content is not a JSON object")

    meal_name = _extract_required_text(recipe, "mealName", ParseReason.MISSING_MEAL_NAME)
    lists = {attr: _extract_string_list(recipe, field) for field, attr in REQUIRED_ARRAY_FIELDS.items()}

    return ParsedRecipe(
        meal_name=meal_name,
        nutrition=_parse_nutrition(recipe.get("nutritionalInformation")),
        content_shape=shape,
        **lists,
    )


def _parse_legacy(text: str) -> ParsedRecipe:
    first_line, _, remainder = text.partition("\n")
    meal_name = first_line.strip()
    for prefix in LEGACY_NAME_PREFIXES:
        if meal_name.startswith(prefix):
            meal_name = meal_name[len(prefix):].strip()
            break

    if not meal_name:
        raise ParseFailure(ParseReason.MISSING_MEAL_NAME, "first line holds no recipe name", field="mealName")

    return ParsedRecipe(
        meal_name=meal_name,
        recipe_details=remainder.strip(),
        content_shape=RawContentShape.LEGACY_LINES,
    )


def parse_recipe_content(content: str) -> ParsedRecipe:
    """Parse the model-authored content string of a chat completion."""
    shape, text = resolve_content_shape(content)
    if shape is RawContentShape.LEGACY_LINES:
        return _parse_legacy(text)
    return _parse_structured(text, shape)


def parse_recipe_response(raw_response: str) -> ParsedRecipe:
    """Turn a raw chat completion body into a ParsedRecipe.

    Raises:
        ParseFailure: See module docstring for the reasons.
    """
    return parse_recipe_content(extract_message_content(raw_response))


def extract_image_url(raw_response: str) -> str:
    """Return data[0].url from an image generation body.

    Raises:
        ParseFailure: INVALID_JSON, NO_IMAGE_DATA or MISSING_IMAGE_URL.
    """
    root = _load_json(raw_response, "Image generation response")
    data = root.get("data") if isinstance(root, dict) else None
    if not isinstance(data, list) or not data:
        raise ParseFailure(ParseReason.NO_IMAGE_DATA, "no image data found in the response")

    first = data[0]
    url = first.get("url") if isinstance(first, dict) else None
    if not isinstance(url, str) or not url.strip():
        raise ParseFailure(ParseReason.MISSING_IMAGE_URL, "url is missing or blank", field="url")

    return url.strip()
