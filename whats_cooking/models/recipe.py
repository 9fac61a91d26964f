# whats_cooking/models/recipe.py — Recipe schemas

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from whats_cooking.utils.identifiers import new_session_id

SPICE_LEVELS = ("Mild", "Medium", "Hot", "Extra Hot")
DIFFICULTIES = ("Easy", "Medium", "Hard")

DEFAULT_CUISINE = "Any"
DEFAULT_SPICE_LEVEL = "Medium"
DEFAULT_DIFFICULTY = "Medium"
DEFAULT_COOKING_TIME = 60
DEFAULT_SERVINGS = 4
DEFAULT_RECIPE_NAME = "Untitled Recipe"
DEFAULT_DESCRIPTION = "A delicious recipe"

Difficulty = Literal["Easy", "Medium", "Hard"]


def match_choice(value: Any, choices: tuple[str, ...]) -> str | None:
    """Case- and separator-insensitive lookup of ``value`` in ``choices``."""
    if not isinstance(value, str):
        return None
    key = re.sub(r"[\s_-]+", " ", value).strip().lower()
    for choice in choices:
        if choice.lower() == key:
            return choice
    return None


class GenerationRequest(BaseModel):
    """One user submission. Accepts the web form's camelCase field names."""

    model_config = ConfigDict(populate_by_name=True)

    ingredients: list[str] = Field(default_factory=list)
    cuisine_type: str = Field(default=DEFAULT_CUISINE, alias="cuisineType")
    spice_level: str = Field(default=DEFAULT_SPICE_LEVEL, alias="spiceLevel")
    dietary_restrictions: list[str] = Field(default_factory=list, alias="dietaryRestrictions")
    cooking_time: int = Field(default=DEFAULT_COOKING_TIME, alias="cookingTime", gt=0)
    session_id: str = Field(default_factory=new_session_id, alias="sessionId")

    @field_validator("ingredients", mode="before")
    @classmethod
    def _split_ingredients(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = re.split(r"[,\n]", value)
        if not isinstance(value, (list, tuple)):
            raise ValueError("ingredients must be a list of strings")
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @field_validator("cuisine_type", mode="before")
    @classmethod
    def _default_cuisine(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_CUISINE
        return str(value).strip()

    @field_validator("spice_level", mode="before")
    @classmethod
    def _normalize_spice_level(cls, value: Any) -> str:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_SPICE_LEVEL
        matched = match_choice(value, SPICE_LEVELS)
        if matched is None:
            raise ValueError(f"spice_level must be one of: {', '.join(SPICE_LEVELS)}")
        return matched

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def _clean_restrictions(cls, value: Any) -> list[str]:
        if not value:
            return []
        if isinstance(value, str):
            value = [value]
        cleaned: list[str] = []
        for item in value:
            label = str(item).strip()
            if label and label not in cleaned:
                cleaned.append(label)
        return cleaned

    @field_validator("cooking_time", mode="before")
    @classmethod
    def _default_cooking_time(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_COOKING_TIME
        return value

    @field_validator("session_id", mode="before")
    @classmethod
    def _default_session_id(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return new_session_id()
        return str(value).strip()


class IngredientItem(BaseModel):
    name: str
    amount: str = ""
    unit: str | None = None


class InstructionStep(BaseModel):
    step: int
    instruction: str
    time: int | None = None


class NutritionInfo(BaseModel):
    calories: int | float | str | None = None
    protein: int | float | str | None = None
    carbs: int | float | str | None = None
    fat: int | float | str | None = None


class RecipeCandidate(BaseModel):
    name: str = DEFAULT_RECIPE_NAME
    description: str = DEFAULT_DESCRIPTION
    cuisine_type: str = DEFAULT_CUISINE
    spice_level: str = DEFAULT_SPICE_LEVEL
    difficulty: Difficulty = DEFAULT_DIFFICULTY
    servings: int = DEFAULT_SERVINGS
    cooking_time: int = DEFAULT_COOKING_TIME
    ingredients: list[IngredientItem] = Field(default_factory=list)
    instructions: list[InstructionStep] = Field(default_factory=list)
    nutrition_info: NutritionInfo | None = None
    tags: list[str] = Field(default_factory=list)


class PersistedRecipe(RecipeCandidate):
    id: str
    image_url: str
    dietary_restrictions: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None
    created_at: datetime | None = None
    is_saved: bool | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PersistedRecipe":
        data = dict(row)
        # Stored rows predate coercion rules in some environments.
        if not isinstance(data.get("nutrition_info"), dict) or not data.get("nutrition_info"):
            data["nutrition_info"] = None
        if match_choice(data.get("difficulty"), DIFFICULTIES) is None:
            data["difficulty"] = DEFAULT_DIFFICULTY
        else:
            data["difficulty"] = match_choice(data["difficulty"], DIFFICULTIES)
        for key in ("ingredients", "instructions", "tags", "dietary_restrictions"):
            if data.get(key) is None:
                data[key] = []
        return cls.model_validate(data)


class SavedRecipe(BaseModel):
    id: str | None = None
    user_id: str
    recipe_id: str
    saved_at: datetime | None = None
    recipe: PersistedRecipe | None = None


class GenerationRecord(BaseModel):
    session_id: str
    ingredients: list[str]
    cuisine_type: str
    spice_level: str
    dietary_restrictions: list[str]
    cooking_time: int
    generated_recipe_ids: list[str]
