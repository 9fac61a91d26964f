from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any
from urllib.parse import quote

from whats_cooking.database import get_supabase_client
from whats_cooking.models.recipe import (
    GenerationRecord,
    GenerationRequest,
    PersistedRecipe,
    RecipeCandidate,
    SavedRecipe,
)
from whats_cooking.utils.exceptions import StoreError
from whats_cooking.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_PATH = "/placeholder.svg?height=300&width=400&query="

# Columns joined into saved-recipe listings.
_SAVED_RECIPE_SELECT = (
    "id, user_id, recipe_id, saved_at, "
    "recipe:recipes(id, name, description, cuisine_type, spice_level, cooking_time, difficulty, "
    "servings, ingredients, instructions, nutrition_info, tags, image_url, dietary_restrictions, "
    "expires_at, created_at)"
)


def placeholder_image_url(name: str, cuisine_type: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent.
    return PLACEHOLDER_IMAGE_PATH + quote(f"{name} {cuisine_type}", safe="-_.!~*'()")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecipeStore:
    """Row access for recipes, recipe_generations and user_saved_recipes."""

    def __init__(self, client: Any):
        self._client = client

    def insert_recipes(
        self,
        candidates: list[RecipeCandidate],
        *,
        dietary_restrictions: list[str] | None = None,
        expires_at: datetime | None = None,
    ) -> list[PersistedRecipe]:
        """Insert one row per candidate, in order.

        No transaction: when an insert fails, the rows already written stay
        and are reported on the raised StoreError.
        """
        persisted: list[PersistedRecipe] = []
        for candidate in candidates:
            row = candidate.model_dump(mode="json")
            row["dietary_restrictions"] = list(dietary_restrictions or [])
            row["image_url"] = placeholder_image_url(candidate.name, candidate.cuisine_type)
            row["expires_at"] = expires_at.isoformat() if expires_at else None
            try:
                result = self._client.table("recipes").insert(row).execute()
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "Failed to insert recipe",
                    extra={"recipe_name": candidate.name, "inserted_count": len(persisted)},
                )
                raise StoreError(
                    f"Recipe insert failed: {exc}",
                    persisted=persisted,
                    public_message="Failed to save recipes to database.",
                ) from exc
            if not result.data:
                raise StoreError(
                    "Recipe insert returned no row",
                    persisted=persisted,
                    public_message="Failed to save recipes to database.",
                )
            persisted.append(PersistedRecipe.from_row({**row, **result.data[0]}))
        return persisted

    def insert_generation_record(self, request: GenerationRequest, recipe_ids: list[str]) -> GenerationRecord:
        record = GenerationRecord(
            session_id=request.session_id,
            ingredients=request.ingredients,
            cuisine_type=request.cuisine_type,
            spice_level=request.spice_level,
            dietary_restrictions=request.dietary_restrictions,
            cooking_time=request.cooking_time,
            generated_recipe_ids=list(recipe_ids),
        )
        try:
            self._client.table("recipe_generations").insert(record.model_dump()).execute()
        except Exception as exc:  # noqa: BLE001
            raise StoreError(f"Generation record insert failed: {exc}") from exc
        return record

    def get_recipe(self, recipe_id: str) -> PersistedRecipe | None:
        result = self._client.table("recipes").select("*").eq("id", recipe_id).limit(1).execute()
        if not result.data:
            return None
        return PersistedRecipe.from_row(result.data[0])

    def get_recipes(self, recipe_ids: list[str]) -> list[PersistedRecipe]:
        """Fetch several recipes, returned in the order of ``recipe_ids``."""
        if not recipe_ids:
            return []
        result = self._client.table("recipes").select("*").in_("id", recipe_ids).execute()
        by_id = {row["id"]: row for row in result.data or []}
        return [PersistedRecipe.from_row(by_id[rid]) for rid in recipe_ids if rid in by_id]

    def get_session_recipe_ids(self, session_id: str) -> list[str]:
        result = (
            self._client.table("recipe_generations")
            .select("generated_recipe_ids, created_at")
            .eq("session_id", session_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not result.data:
            return []
        return list(result.data[0].get("generated_recipe_ids") or [])

    def saved_recipe_ids(self, user_id: str, recipe_ids: list[str]) -> set[str]:
        if not recipe_ids:
            return set()
        result = (
            self._client.table("user_saved_recipes")
            .select("recipe_id")
            .eq("user_id", user_id)
            .in_("recipe_id", recipe_ids)
            .execute()
        )
        return {row["recipe_id"] for row in result.data or []}

    def save_recipe(self, user_id: str, recipe_id: str) -> SavedRecipe:
        """Idempotent: saving twice leaves one row."""
        row = {"user_id": user_id, "recipe_id": recipe_id, "saved_at": _utc_now().isoformat()}
        try:
            result = (
                self._client.table("user_saved_recipes")
                .upsert(row, on_conflict="user_id,recipe_id")
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            raise StoreError(f"Save failed: {exc}", public_message="Failed to save recipe") from exc
        saved = result.data[0] if result.data else row
        return SavedRecipe.model_validate(saved)

    def unsave_recipe(self, user_id: str, recipe_id: str) -> None:
        """Filtered delete; deleting a row that is not there is a no-op."""
        try:
            (
                self._client.table("user_saved_recipes")
                .delete()
                .eq("user_id", user_id)
                .eq("recipe_id", recipe_id)
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            raise StoreError(f"Unsave failed: {exc}", public_message="Failed to remove saved recipe") from exc

    def list_saved_recipes(
        self,
        user_id: str,
        pagination: PaginationParams,
    ) -> tuple[list[SavedRecipe], int]:
        result = (
            self._client.table("user_saved_recipes")
            .select(_SAVED_RECIPE_SELECT, count="exact")
            .eq("user_id", user_id)
            .order("saved_at", desc=True)
            .range(*pagination.range_bounds())
            .execute()
        )
        saved: list[SavedRecipe] = []
        for row in result.data or []:
            recipe_row = row.get("recipe")
            saved.append(
                SavedRecipe(
                    id=row.get("id"),
                    user_id=row["user_id"],
                    recipe_id=row["recipe_id"],
                    saved_at=row.get("saved_at"),
                    recipe=PersistedRecipe.from_row(recipe_row) if recipe_row else None,
                )
            )
        total = result.count if getattr(result, "count", None) is not None else len(saved)
        return saved, total


@lru_cache
def get_recipe_store() -> RecipeStore:
    return RecipeStore(get_supabase_client())
