"""Turn raw model text into normalized recipe candidates.

Model output is usually close to JSON but not guaranteed valid, so the text
goes through a fixed sequence of repair stages, one strict ``json.loads``,
a shape check and finally per-field coercion:

    code fences -> comments -> fractions -> duplicate keys
    -> unquoted scalars -> trailing commas -> blank lines -> parse

Order matters. Fences are removed before comments because the fenced block
may hold the comments; comments go before fraction repair because a comment
can contain something that looks like ``1/2``; trailing commas are cleaned
after every stage that could leave one behind.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Callable

from whats_cooking.models.recipe import (
    DEFAULT_COOKING_TIME,
    DEFAULT_CUISINE,
    DEFAULT_DESCRIPTION,
    DEFAULT_DIFFICULTY,
    DEFAULT_RECIPE_NAME,
    DEFAULT_SERVINGS,
    DEFAULT_SPICE_LEVEL,
    DIFFICULTIES,
    SPICE_LEVELS,
    GenerationRequest,
    IngredientItem,
    InstructionStep,
    NutritionInfo,
    RecipeCandidate,
    match_choice,
)
from whats_cooking.utils.exceptions import EmptyRecipeList, IngestError, MalformedJson, NoJsonFound

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_+-]*")
_JSON_STRING = r'"(?:[^"\\]|\\.)*"'
_STRING_LITERAL = re.compile("(" + _JSON_STRING + ")")
_QUOTED_FRACTION_VALUE = re.compile(r'(:\s*)"\s*(?:(\d+)\s+)?(\d+)\s*/\s*(\d+)\s*"')
_LEADING_FRACTION = re.compile(r"^\s*(?:(\d+)\s+)?(\d+)\s*/\s*(\d+)(?=\s|$)(.*)$", re.DOTALL)
_DUPLICATE_KEY = re.compile(
    r'"([^"\\]+)"\s*:\s*(?:' + _JSON_STRING + r'|[^,{}\[\]"]*?)\s*,\s*(?="\1"\s*:)'
)
_UNQUOTED_STRING_FIELD = re.compile(
    r'("(?:amount|unit)"\s*:\s*)(?![\s"\[{]|null\b|true\b|false\b)([^,}\]\n"]+?)(\s*)(?=[,}\]\n])'
)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_LEADING_INT = re.compile(r"\s*(\d+)")


def _format_decimal(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _fraction_to_decimal(whole: str | None, numerator: str, denominator: str) -> str | None:
    if int(denominator) == 0:
        return None
    value = int(numerator) / int(denominator)
    if whole:
        value += int(whole)
    return _format_decimal(value)


def extract_json_object(text: str) -> str:
    """Drop markdown fences and surrounding prose; keep first ``{`` .. last ``}``."""
    cleaned = _FENCE_PATTERN.sub("", text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonFound("No JSON object found in model response", raw=text)
    return cleaned[start : end + 1]


def strip_comments(text: str) -> str:
    """Remove ``//`` line and ``/* */`` block comments outside string literals."""
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue
        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = length if close == -1 else close + 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def repair_fractions(text: str) -> str:
    """``"amount": "1/2"`` -> ``"amount": "0.5"`` (mixed numbers too)."""

    def _replace(match: re.Match[str]) -> str:
        decimal = _fraction_to_decimal(match.group(2), match.group(3), match.group(4))
        if decimal is None:
            return match.group(0)
        return f'{match.group(1)}"{decimal}"'

    return _QUOTED_FRACTION_VALUE.sub(_replace, text)


def remove_duplicate_keys(text: str) -> str:
    """Keep the last of a key repeated back-to-back in one object."""
    return _DUPLICATE_KEY.sub("", text)


def quote_bare_scalars(text: str) -> str:
    """Wrap unquoted ``amount``/``unit`` values in quotes."""
    return _UNQUOTED_STRING_FIELD.sub(lambda m: f'{m.group(1)}"{m.group(2).strip()}"{m.group(3)}', text)


def _sub_outside_strings(pattern: re.Pattern[str], repl: str, text: str) -> str:
    # split() with a capturing group puts string literals at odd indexes.
    parts = _STRING_LITERAL.split(text)
    return "".join(part if index % 2 else pattern.sub(repl, part) for index, part in enumerate(parts))


def remove_trailing_commas(text: str) -> str:
    return _sub_outside_strings(_TRAILING_COMMA, r"\1", text)


def drop_blank_lines(text: str) -> str:
    return "\n".join(line for line in text.splitlines() if line.strip())


REPAIR_STAGES: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("code_fences", extract_json_object),
    ("comments", strip_comments),
    ("fractions", repair_fractions),
    ("duplicate_keys", remove_duplicate_keys),
    ("unquoted_scalars", quote_bare_scalars),
    ("trailing_commas", remove_trailing_commas),
    ("blank_lines", drop_blank_lines),
)


def repair_json_text(raw: str) -> str:
    text = raw
    for _name, stage in REPAIR_STAGES:
        text = stage(text)
    return text


def parse_recipe_payload(raw: str) -> Any:
    repaired = repair_json_text(raw)
    try:
        return json.loads(repaired)
    except json.JSONDecodeError as exc:
        raise MalformedJson(
            f"Invalid JSON after repair: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            raw=raw,
        ) from exc


def normalize_amount(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_decimal(value) if math.isfinite(value) else ""
    text = str(value).strip()
    match = _LEADING_FRACTION.match(text)
    if not match:
        return text
    decimal = _fraction_to_decimal(match.group(1), match.group(2), match.group(3))
    if decimal is None:
        return text
    return f"{decimal}{match.group(4)}".strip()


def _clean_str(value: Any, default: str = "") -> str:
    if value is None or isinstance(value, (dict, list, bool)):
        return default
    text = str(value).strip()
    return text or default


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        # json.loads accepts NaN, Infinity and 1e400.
        if not math.isfinite(value):
            return None
        rounded = int(round(value))
        return rounded if rounded > 0 else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            parsed = int(match.group(1))
            return parsed if parsed > 0 else None
    return None


def coerce_ingredients(value: Any) -> list[IngredientItem]:
    if not isinstance(value, list):
        return []
    items: list[IngredientItem] = []
    for entry in value:
        if isinstance(entry, str):
            name = entry.strip()
            if name:
                items.append(IngredientItem(name=name))
            continue
        if not isinstance(entry, dict):
            continue
        name = _clean_str(entry.get("name"))
        if not name:
            continue
        items.append(
            IngredientItem(
                name=name,
                amount=normalize_amount(entry.get("amount")),
                unit=_clean_str(entry.get("unit")) or None,
            )
        )
    return items


def coerce_instructions(value: Any) -> list[InstructionStep]:
    """Normalize steps and renumber them 1..n.

    When every entry carries an integer step number the model's ordering is
    honoured; otherwise list order wins.
    """
    if not isinstance(value, list):
        return []
    entries: list[tuple[int | None, str, int | None]] = []
    for entry in value:
        if isinstance(entry, str):
            text = entry.strip()
            if text:
                entries.append((None, text, None))
            continue
        if not isinstance(entry, dict):
            continue
        text = _clean_str(entry.get("instruction") or entry.get("text") or entry.get("description"))
        if not text:
            continue
        step = entry.get("step")
        order = step if isinstance(step, int) and not isinstance(step, bool) else None
        entries.append((order, text, _positive_int(entry.get("time"))))

    if entries and all(order is not None for order, _, _ in entries):
        entries.sort(key=lambda item: item[0])
    return [
        InstructionStep(step=index, instruction=text, time=minutes)
        for index, (_, text, minutes) in enumerate(entries, start=1)
    ]


def coerce_nutrition(value: Any) -> NutritionInfo | None:
    if not isinstance(value, dict):
        return None
    fields: dict[str, Any] = {}
    for key in ("calories", "protein", "carbs", "fat"):
        item = value.get(key)
        if isinstance(item, bool) or item is None:
            continue
        if isinstance(item, float) and not math.isfinite(item):
            continue
        if isinstance(item, (int, float)):
            fields[key] = item
        elif isinstance(item, str) and item.strip():
            fields[key] = item.strip()
    if not fields:
        return None
    return NutritionInfo(**fields)


def coerce_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    tags: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        tag = item.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def coerce_recipe(data: dict[str, Any], request: GenerationRequest) -> RecipeCandidate:
    """Fill every field; never raises for bad or missing values."""
    return RecipeCandidate(
        name=_clean_str(data.get("name"), DEFAULT_RECIPE_NAME),
        description=_clean_str(data.get("description"), DEFAULT_DESCRIPTION),
        cuisine_type=_clean_str(data.get("cuisine_type")) or request.cuisine_type or DEFAULT_CUISINE,
        spice_level=(
            match_choice(data.get("spice_level"), SPICE_LEVELS)
            or request.spice_level
            or DEFAULT_SPICE_LEVEL
        ),
        difficulty=match_choice(data.get("difficulty"), DIFFICULTIES) or DEFAULT_DIFFICULTY,
        servings=_positive_int(data.get("servings")) or DEFAULT_SERVINGS,
        cooking_time=(
            _positive_int(data.get("cooking_time"))
            or request.cooking_time
            or DEFAULT_COOKING_TIME
        ),
        ingredients=coerce_ingredients(data.get("ingredients")),
        instructions=coerce_instructions(data.get("instructions")),
        nutrition_info=coerce_nutrition(data.get("nutrition_info")),
        tags=coerce_tags(data.get("tags")),
    )


def ingest(raw: str, request: GenerationRequest) -> list[RecipeCandidate]:
    """Raw model text -> recipe candidates.

    Raises NoJsonFound, MalformedJson or EmptyRecipeList. Every failure is
    logged with a bounded prefix of the raw response before it propagates.
    """
    try:
        payload = parse_recipe_payload(raw)
        recipes = payload.get("recipes") if isinstance(payload, dict) else None
        if not isinstance(recipes, list) or not recipes:
            raise EmptyRecipeList("Model response contained no recipes", raw=raw)
        candidates = [coerce_recipe(item, request) for item in recipes if isinstance(item, dict)]
        if not candidates:
            raise EmptyRecipeList("Model response recipes were not objects", raw=raw)
    except IngestError as exc:
        logger.error(
            "Failed to ingest model response",
            extra={
                "error_kind": type(exc).__name__,
                "diagnostic": exc.diagnostic,
                "session_id": request.session_id,
                "raw_prefix": exc.raw_prefix,
            },
        )
        raise
    logger.info(
        "Ingested model response",
        extra={"session_id": request.session_id, "recipe_count": len(candidates)},
    )
    return candidates
